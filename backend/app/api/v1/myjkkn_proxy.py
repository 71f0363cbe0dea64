# app/api/v1/myjkkn_proxy.py
"""
Same-origin pass-through to the MyJKKN host, for browsers that cannot call
it directly because of CORS.
"""
import logging
from datetime import datetime

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.api.deps import get_config_store, get_upstream_http
from app.services.myjkkn.client import is_valid_api_key
from app.services.myjkkn.config_store import ConfigStore

router = APIRouter(prefix="/api/myjkkn", tags=["MyJKKN Proxy"])
logger = logging.getLogger(__name__)

USER_AGENT = "MyJKKN-Service-Proxy/1.0"


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE"])
async def proxy(
    path: str,
    request: Request,
    store: ConfigStore = Depends(get_config_store),
    http: httpx.Client = Depends(get_upstream_http),
):
    auth_header = request.headers.get("authorization") or ""
    if not auth_header.startswith("Bearer "):
        return JSONResponse({"error": "Missing or invalid authorization header"}, status_code=401)

    api_key = auth_header[len("Bearer "):]
    if not is_valid_api_key(api_key):
        return JSONResponse({"error": "Invalid API key format"}, status_code=401)

    target_url = f"{store.get().base_url.rstrip('/')}/{path}"
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }
    body = await request.body() if request.method not in ("GET", "HEAD") else None

    logger.info(f"MyJKKN proxy: {request.method} {target_url}")

    try:
        upstream = await run_in_threadpool(
            http.request,
            request.method,
            target_url,
            params=request.query_params.multi_items() or None,
            headers=headers,
            content=body or None,
        )
    except httpx.HTTPError as e:
        logger.error(f"MyJKKN proxy request failed: {e}", exc_info=True)
        return JSONResponse(
            {
                "error": "Proxy request failed",
                "details": str(e) or e.__class__.__name__,
                "timestamp": datetime.now().isoformat(),
            },
            status_code=500,
        )

    logger.info(f"MyJKKN proxy response: {upstream.status_code} {upstream.reason_phrase}")
    try:
        payload = upstream.json()
    except ValueError:
        payload = {"error": "Invalid JSON response from MyJKKN API"}

    return JSONResponse(payload, status_code=upstream.status_code)
