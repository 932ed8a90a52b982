"""
Route Map Backend: Frontend Routes
===================================

GET /share and /share.html: the share page with per-route preview tags.
GET /config.js: public client configuration for the browser app.
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from routemap.exceptions import ConfigurationError
from routemap.routes.deps import get_http_client
from routemap.services.share_service import config_script, share_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Frontend"])


@router.get("/share", response_class=HTMLResponse, summary="Share page with route preview tags")
@router.get("/share.html", response_class=HTMLResponse, include_in_schema=False)
async def share_page(
    request: Request,
    camp: Optional[str] = Query(default=None),
    code: Optional[str] = Query(default=None),
    v: Optional[str] = Query(default=None, description="Preview image cache-bust token"),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> HTMLResponse:
    document = await share_service.render(
        client, str(request.url), camp=camp, code=code, version=v
    )
    return HTMLResponse(content=document, headers={"Cache-Control": "public, max-age=300"})


@router.get("/config.js", summary="Browser client configuration")
async def frontend_config() -> Response:
    try:
        script = config_script()
    except ConfigurationError as e:
        logger.error("Cannot serve /config.js: %s", e.message)
        return PlainTextResponse(
            content=e.message, status_code=500, headers={"Cache-Control": "no-store"}
        )
    return Response(
        content=script,
        media_type="application/javascript; charset=utf-8",
        headers={"Cache-Control": "no-store"},
    )
