# app/api/v1/myjkkn.py
"""
MyJKKN directory: paginated students, staff, institutions, departments and
programs, plus the API configuration and user verification endpoints.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import (
    Actor,
    get_config_store,
    get_myjkkn_api,
    get_myjkkn_client,
    get_verification_service,
    require_admin,
)
from app.schemas.myjkkn import ApiConfigInfo, ApiConfigUpdate, VerificationResult, VerifyRequest
from app.services.myjkkn.browser import BROWSERS, build_browser
from app.services.myjkkn.client import MyJkknClient, is_valid_api_key
from app.services.myjkkn.config_store import ConfigStore
from app.services.myjkkn.resources import MyJkknApi
from app.services.myjkkn.verification import UserVerificationService

router = APIRouter(prefix="/myjkkn", tags=["MyJKKN"])
logger = logging.getLogger(__name__)


# ===============================
# helpers
# ===============================
def browse(api: MyJkknApi, resource: str, page: int, limit: int, search: Optional[str], **filters) -> Dict[str, Any]:
    browser = build_browser(resource, api, page=page, limit=limit, search=search or "", **filters)
    try:
        browser.refetch()
    finally:
        browser.close()

    if browser.error:
        raise HTTPException(status_code=502, detail=browser.error)

    snapshot = browser.snapshot()
    return {
        "data": snapshot["data"],
        "metadata": snapshot["metadata"],
        "start_item": snapshot["start_item"],
        "end_item": snapshot["end_item"],
    }


# ===============================
# configuration
# ===============================
@router.get("/config", response_model=ApiConfigInfo)
def get_config(
    client: MyJkknClient = Depends(get_myjkkn_client),
    actor: Actor = Depends(require_admin),
):
    return client.get_config_info()


@router.put("/config", response_model=ApiConfigInfo)
def update_config(
    update: ApiConfigUpdate,
    store: ConfigStore = Depends(get_config_store),
    client: MyJkknClient = Depends(get_myjkkn_client),
    actor: Actor = Depends(require_admin),
):
    if update.api_key is not None and update.api_key != "" and not is_valid_api_key(update.api_key):
        raise HTTPException(
            status_code=400,
            detail="Invalid API key format. Expected jk_xxxxx_xxxxx or jkkn_xxxxx_xxxxx",
        )

    try:
        store.save(
            api_key=update.api_key,
            mock_mode=update.mock_mode,
            proxy_mode=update.proxy_mode,
            base_url=update.base_url,
        )
    except OSError as e:
        logger.error(f"Saving MyJKKN configuration failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to save configuration: {str(e)}")

    logger.info(f"MyJKKN configuration updated by {actor.id}")
    return client.get_config_info()


@router.post("/test-connection")
def test_connection(
    client: MyJkknClient = Depends(get_myjkkn_client),
    actor: Actor = Depends(require_admin),
):
    return client.test_connection()


# ===============================
# verification
# ===============================
# open to signed-out callers: sign-in checks the email before a profile exists
@router.post("/verify", response_model=VerificationResult)
def verify_user(
    body: VerifyRequest,
    service: UserVerificationService = Depends(get_verification_service),
):
    if not body.email:
        raise HTTPException(status_code=400, detail="Email is required")
    try:
        return service.verify_user(body.email)
    except Exception as e:
        logger.error(f"MyJKKN verification failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Verification failed: {str(e)}")


@router.get("/verify", response_model=VerificationResult)
def verify_user_by_query(
    email: Optional[str] = Query(None),
    service: UserVerificationService = Depends(get_verification_service),
):
    if not email:
        raise HTTPException(status_code=400, detail="Email parameter is required")
    try:
        return service.verify_user(email)
    except Exception as e:
        logger.error(f"MyJKKN verification failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Verification failed")


# ===============================
# directory listings
# ===============================
@router.get("/students")
def list_students(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1),
    search: Optional[str] = None,
    institution: Optional[str] = None,
    department: Optional[str] = None,
    program: Optional[str] = None,
    profile_complete: Optional[bool] = None,
    api: MyJkknApi = Depends(get_myjkkn_api),
    actor: Actor = Depends(require_admin),
):
    return browse(
        api, "students", page, limit, search,
        institution=institution, department=department,
        program=program, profile_complete=profile_complete,
    )


@router.get("/staff")
def list_staff(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1),
    search: Optional[str] = None,
    institution: Optional[str] = None,
    department: Optional[str] = None,
    designation: Optional[str] = None,
    gender: Optional[str] = None,
    is_active: Optional[bool] = None,
    api: MyJkknApi = Depends(get_myjkkn_api),
    actor: Actor = Depends(require_admin),
):
    return browse(
        api, "staff", page, limit, search,
        institution=institution, department=department,
        designation=designation, gender=gender, is_active=is_active,
    )


@router.get("/institutions")
def list_institutions(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1),
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    category: Optional[str] = None,
    institution_type: Optional[str] = None,
    api: MyJkknApi = Depends(get_myjkkn_api),
    actor: Actor = Depends(require_admin),
):
    return browse(
        api, "institutions", page, limit, search,
        is_active=is_active, category=category, institution_type=institution_type,
    )


@router.get("/departments")
def list_departments(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1),
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    institution_id: Optional[str] = None,
    degree_id: Optional[str] = None,
    api: MyJkknApi = Depends(get_myjkkn_api),
    actor: Actor = Depends(require_admin),
):
    return browse(
        api, "departments", page, limit, search,
        is_active=is_active, institution_id=institution_id, degree_id=degree_id,
    )


@router.get("/programs")
def list_programs(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1),
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    api: MyJkknApi = Depends(get_myjkkn_api),
    actor: Actor = Depends(require_admin),
):
    return browse(api, "programs", page, limit, search, is_active=is_active)


@router.get("/{resource}/{item_id}")
def get_record(
    resource: str,
    item_id: str,
    api: MyJkknApi = Depends(get_myjkkn_api),
    actor: Actor = Depends(require_admin),
):
    if resource not in BROWSERS:
        raise HTTPException(status_code=404, detail=f"Unknown MyJKKN resource: {resource}")

    result = getattr(api, BROWSERS[resource].get_method)(item_id)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error)
    return result.data
