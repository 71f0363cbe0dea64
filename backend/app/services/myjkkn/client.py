# app/services/myjkkn/client.py
"""
MyJKKN API client
Performs one authenticated call against myadmin.jkkn.ac.in (directly or via
the local proxy route) and returns a tagged ApiResult instead of raising.
"""
import logging
import math
import re
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from app.schemas.myjkkn import ApiResult
from app.services.myjkkn.config_store import ConfigStore
from app.services.myjkkn.normalizer import normalize

logger = logging.getLogger(__name__)

API_KEY_PATTERN = re.compile(r"^(jk_[a-zA-Z0-9]+_[a-zA-Z0-9]+|jkkn_[a-zA-Z0-9]+_[a-zA-Z0-9]+)$")

MOCK_DISABLED_ERROR = (
    "Mock mode is disabled. Please configure a real MyJKKN API key to fetch live data. "
    "Visit the API Configuration page to set up your credentials."
)
INVALID_KEY_ERROR = "Invalid or missing API key. Please check your configuration."

STATUS_MESSAGES = {
    401: "Authentication failed. Please check your API key.",
    403: "Access forbidden. Please check your API permissions.",
    404: "API endpoint not found. Please check your configuration.",
    429: "Rate limit exceeded. Please try again later.",
}
SERVER_ERROR = "Server error. Please try again later."


def is_valid_api_key(api_key: Optional[str]) -> bool:
    return bool(api_key) and API_KEY_PATTERN.match(api_key) is not None


def key_preview(api_key: Optional[str]) -> str:
    return f"{api_key[:8]}..." if api_key else "Not set"


def status_error(status_code: int, reason: str = "") -> str:
    """Human-readable message for a non-2xx status."""
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    if status_code >= 500:
        return SERVER_ERROR
    return f"HTTP {status_code}: {reason}".strip()


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def reshape_paginated(
    payload: Dict[str, Any],
    limit: Optional[int] = None,
    page: int = 1,
) -> Dict[str, Any]:
    """
    Turn the MyJKKN top-level envelope {data, total, page, totalPages}
    into {data, metadata: {page, totalPages, total}}.
    Only the records are normalized; metadata is left as computed.
    A missing upstream page falls back to the requested one.
    """
    total = payload.get("total") or 0
    total_pages = payload.get("totalPages")
    if not total_pages:
        total_pages = max(1, math.ceil(total / limit)) if limit else 1
    return {
        "data": normalize(payload.get("data") or []),
        "metadata": {
            "page": payload.get("page") or page,
            "totalPages": total_pages,
            "total": total,
        },
    }


class MyJkknClient:
    def __init__(
        self,
        config_store: ConfigStore,
        http_client: Optional[httpx.Client] = None,
        proxy_url: str = "http://localhost:8000/api/myjkkn",
        timeout: float = 30.0,
    ):
        self.config_store = config_store
        self.proxy_url = proxy_url.rstrip("/")
        self.http = http_client or httpx.Client(timeout=timeout)

    def close(self):
        self.http.close()

    # ===============================
    # core request
    # ===============================
    def request(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> ApiResult:
        config = self.config_store.get()

        if config.mock_mode:
            logger.warning("Mock mode is disabled. Please configure a real MyJKKN API key.")
            return ApiResult.fail(MOCK_DISABLED_ERROR)

        if not is_valid_api_key(config.api_key):
            return ApiResult.fail(INVALID_KEY_ERROR)

        if not config.base_url:
            return ApiResult.fail("Base URL not configured")

        base_url = self.proxy_url if config.proxy_mode else config.base_url.rstrip("/")
        url = f"{base_url}{endpoint}"

        query = {k: _query_value(v) for k, v in (params or {}).items() if v is not None}
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.api_key}",
        }
        json_body = body if method in ("POST", "PUT") else None

        logger.debug(f"MyJKKN API {method} {url} params={query}")

        try:
            response = self.http.request(method, url, params=query or None, headers=headers, json=json_body)
        except httpx.HTTPError as e:
            logger.error(f"MyJKKN API request failed: {e}")
            if config.proxy_mode:
                return ApiResult.fail("Unable to connect to API proxy. Please check your network connection.")
            return ApiResult.fail("Network failure. Try enabling proxy mode or check your network connection.")

        if response.is_error:
            logger.warning(f"MyJKKN API {method} {endpoint} returned {response.status_code}")
            return ApiResult.fail(status_error(response.status_code, response.reason_phrase))

        try:
            payload = response.json()
        except ValueError:
            return ApiResult.fail("Invalid JSON response from server")

        if isinstance(payload, dict) and "data" in payload and "total" in payload:
            limit = query.get("limit")
            page = query.get("page")
            return ApiResult.ok(reshape_paginated(
                payload,
                int(limit) if limit else None,
                int(page) if page else 1,
            ))

        return ApiResult.ok(normalize(payload))

    # ===============================
    # connection helpers
    # ===============================
    def test_connection(self) -> ApiResult:
        config = self.config_store.get()
        if config.mock_mode:
            return ApiResult.ok({
                "message": "Mock mode connection test successful",
                "timestamp": datetime.now().isoformat(),
                "mode": "mock",
            })

        result = self.request("/api-management/students", params={"page": 1, "limit": 1})
        if not result.success:
            return result

        return ApiResult.ok({
            "message": "MyJKKN API connection successful",
            "timestamp": datetime.now().isoformat(),
            "mode": "proxy" if config.proxy_mode else "direct",
            "endpoint": config.base_url,
        })

    def is_configured(self) -> bool:
        if self.config_store.configured_via_env:
            return True
        return is_valid_api_key(self.config_store.get().api_key)

    def get_config_info(self) -> Dict[str, Any]:
        config = self.config_store.get()
        return {
            "base_url": config.base_url,
            "has_api_key": bool(config.api_key),
            "is_valid_key": is_valid_api_key(config.api_key),
            "key_preview": key_preview(config.api_key),
            "mock_mode": config.mock_mode,
            "proxy_mode": config.proxy_mode,
            "configured_via_env": self.config_store.configured_via_env,
        }
