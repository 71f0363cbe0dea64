# app/api/v1/services.py
"""
Service catalog: categories, services and their approval chains.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from app.api.deps import Actor, get_current_actor, require_staff
from app.schemas.catalog import (
    CategoryDelete,
    Service,
    ServiceCategoryCreate,
    ServiceCategoryUpdate,
    ServiceCreate,
    ServiceUpdate,
)
from app.schemas.service_request import ApprovalLevel, ApprovalLevelsUpdate
from app.services import approval_levels, catalog
from app.services.errors import as_http_error
from app.services.supabase_client import get_supabase

categories_router = APIRouter(prefix="/service-categories", tags=["Service Categories"])
router = APIRouter(prefix="/services", tags=["Services"])


# ===============================
# categories
# ===============================
@categories_router.get("/")
def list_categories(supabase: Client = Depends(get_supabase), actor: Actor = Depends(get_current_actor)):
    try:
        return catalog.get_service_categories(supabase)
    except Exception as e:
        raise as_http_error("Listing service categories", e)


@categories_router.get("/next-code")
def next_category_code(supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_staff)):
    try:
        return {"code": catalog.get_next_category_code(supabase)}
    except Exception as e:
        raise as_http_error("Computing next category code", e)


@categories_router.post("/cleanup")
def cleanup_categories(supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_staff)):
    try:
        return {"success": True, "count": catalog.cleanup_orphaned_categories(supabase)}
    except Exception as e:
        raise as_http_error("Cleaning up service categories", e)


@categories_router.get("/{category_id}")
def get_category(category_id: str, supabase: Client = Depends(get_supabase), actor: Actor = Depends(get_current_actor)):
    try:
        return catalog.get_service_category_by_id(supabase, category_id)
    except Exception as e:
        raise as_http_error("Fetching service category", e)


@categories_router.post("/", status_code=201)
def create_category(
    body: ServiceCategoryCreate,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    try:
        return catalog.create_service_category(supabase, body.model_dump())
    except Exception as e:
        raise as_http_error("Creating service category", e)


@categories_router.put("/{category_id}")
def update_category(
    category_id: str,
    body: ServiceCategoryUpdate,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    try:
        return catalog.update_service_category(supabase, category_id, body.model_dump(exclude_unset=True))
    except Exception as e:
        raise as_http_error("Updating service category", e)


@categories_router.delete("/{category_id}")
def delete_category(
    category_id: str,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    """Refused while services still use the category."""
    try:
        catalog.delete_service_category(supabase, category_id)
        return {"success": True}
    except Exception as e:
        raise as_http_error("Deleting service category", e)


@categories_router.post("/{category_id}/delete-with-reassign")
def delete_category_with_reassign(
    category_id: str,
    body: CategoryDelete,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    try:
        moved = catalog.delete_service_category_with_reassign(supabase, category_id, body.reassign_to)
        return {"success": True, "reassigned": moved}
    except Exception as e:
        raise as_http_error("Deleting service category", e)


# ===============================
# services
# ===============================
@router.get("/", response_model=List[Service])
def list_services(supabase: Client = Depends(get_supabase), actor: Actor = Depends(get_current_actor)):
    try:
        return catalog.get_services(supabase)
    except Exception as e:
        raise as_http_error("Listing services", e)


@router.get("/next-request-no")
def next_request_no(supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_staff)):
    try:
        return {"request_no": catalog.get_next_service_request_no(supabase)}
    except Exception as e:
        raise as_http_error("Computing next request number", e)


@router.get("/{service_id}", response_model=Service)
def get_service(service_id: str, supabase: Client = Depends(get_supabase), actor: Actor = Depends(get_current_actor)):
    try:
        return catalog.get_service_by_id(supabase, service_id)
    except Exception as e:
        raise as_http_error("Fetching service", e)


@router.post("/", response_model=Service, status_code=201)
def create_service(
    body: ServiceCreate,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    try:
        return catalog.create_service(supabase, body.model_dump())
    except Exception as e:
        raise as_http_error("Creating service", e)


@router.put("/{service_id}", response_model=Service)
def update_service(
    service_id: str,
    body: ServiceUpdate,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    try:
        return catalog.update_service(supabase, service_id, body.model_dump(exclude_unset=True))
    except Exception as e:
        raise as_http_error("Updating service", e)


@router.delete("/{service_id}")
def delete_service(service_id: str, supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_staff)):
    try:
        catalog.delete_service(supabase, service_id)
        return {"success": True}
    except Exception as e:
        raise as_http_error("Deleting service", e)


# ===============================
# approval chain
# ===============================
@router.get("/{service_id}/approval-levels", response_model=List[ApprovalLevel])
def get_approval_levels(service_id: str, supabase: Client = Depends(get_supabase), actor: Actor = Depends(require_staff)):
    try:
        return approval_levels.get_service_approval_levels(supabase, service_id)
    except Exception as e:
        raise as_http_error("Fetching approval levels", e)


@router.put("/{service_id}/approval-levels")
def save_approval_levels(
    service_id: str,
    body: ApprovalLevelsUpdate,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    try:
        levels = [level.model_dump() for level in body.levels]
        return approval_levels.save_service_approval_levels(supabase, service_id, levels)
    except Exception as e:
        raise as_http_error("Saving approval levels", e)


@router.get("/{service_id}/approval-levels/{level}")
def get_level_approver(
    service_id: str,
    level: int,
    supabase: Client = Depends(get_supabase),
    actor: Actor = Depends(require_staff),
):
    try:
        approver = approval_levels.get_approver_for_level(supabase, service_id, level)
    except Exception as e:
        raise as_http_error("Fetching approver", e)
    if approver is None:
        raise HTTPException(status_code=404, detail=f"No approver for level {level}")
    return approver
