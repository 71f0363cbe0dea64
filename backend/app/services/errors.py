# app/services/errors.py
"""
Exceptions raised by the database-access services.

Routers translate them into HTTP errors with to_http_exception();
anything else that escapes a service is treated as a 500.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base error for the service layer"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(PortalError):
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class AuthenticationError(PortalError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="AUTH_REQUIRED")


class AuthorizationError(PortalError):
    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class NotFoundError(PortalError):
    status_code = 404

    def __init__(self, message: str):
        super().__init__(message, code="NOT_FOUND")


class ConflictError(PortalError):
    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFLICT", details=details)


class UnknownShapeError(PortalError):
    """A MyJKKN relation object matched none of the known shapes"""

    status_code = 502

    def __init__(self, field: str, keys):
        super().__init__(
            f"Unrecognized object shape for field '{field}'",
            code="UNKNOWN_SHAPE",
            details={"field": field, "keys": sorted(keys)}
        )


def to_http_exception(error: PortalError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


def as_http_error(action: str, error: Exception) -> HTTPException:
    """
    HTTPException for a failed route: passes HTTPException through, maps
    PortalError to its status and logs anything else as a 500.
    """
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, PortalError):
        return to_http_exception(error)
    logger.error(f"{action} failed: {error}", exc_info=True)
    return HTTPException(status_code=500, detail=f"{action} failed: {str(error)}")
