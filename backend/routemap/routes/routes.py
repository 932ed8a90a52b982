"""
Route Map Backend: Route Record Handlers
=========================================

What:  GET / POST / DELETE /route, the endpoints the map editor uses to load,
       save and clear route polygons.
How:   Reads parameters or the JSON body, delegates to RouteService, and
       answers with enriched rows. Responses are never cached: the editor
       reloads right after saving.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from routemap.routes.deps import get_store, parse_body, read_json_body
from routemap.schemas.common import ErrorResponse, RowResponse, RowsResponse
from routemap.schemas.route import RouteDeleteRequest, RouteUpsertRequest
from routemap.services.route_service import route_service
from routemap.services.store_client import StoreClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Routes"])

NO_STORE = "no-store"

ERROR_RESPONSES = {
    400: {"description": "Missing or invalid parameter", "model": ErrorResponse},
    500: {"description": "Store unreachable or misconfigured", "model": ErrorResponse},
}


@router.get(
    "/route",
    response_model=RowsResponse,
    responses=ERROR_RESPONSES,
    summary="List the routes of a camp",
    description=(
        "Routes of one camp ordered by full_code. `code` narrows the list: "
        "`mode=prefix` (default) matches every full_code starting with it, "
        "`mode=exact` only the identical one."
    ),
)
async def list_routes(
    response: Response,
    camp: Optional[str] = Query(default=None, description="Camp name (required)"),
    code: Optional[str] = Query(default=None, description="Route code or code prefix"),
    mode: Optional[str] = Query(default=None, description="exact | prefix"),
    store: StoreClient = Depends(get_store),
) -> RowsResponse:
    rows = await route_service.list_routes(store, camp, code, mode)
    response.headers["Cache-Control"] = NO_STORE
    return RowsResponse(rows=rows)


@router.post(
    "/route",
    response_model=RowResponse,
    responses={**ERROR_RESPONSES, 404: {"description": "id not found", "model": ErrorResponse}},
    summary="Create or update a route",
    description=(
        "Upsert by `id`, else by (camp, code). Only the fields present in the "
        "body are written; an explicit null clears a field."
    ),
)
async def save_route(
    request: Request,
    response: Response,
    store: StoreClient = Depends(get_store),
) -> RowResponse:
    body = parse_body(RouteUpsertRequest, await read_json_body(request))
    row = await route_service.save_route(store, body)
    response.headers["Cache-Control"] = NO_STORE
    return RowResponse(row=row)


@router.delete(
    "/route",
    response_model=RowResponse,
    responses={**ERROR_RESPONSES, 404: {"description": "Route not found", "model": ErrorResponse}},
    summary="Clear a route polygon",
    description=(
        "Soft delete: sets polygon_wgs84 to null and keeps the route. The "
        "route is addressed by `id` or `camp` + `code`, in the JSON body or, "
        "for clients that cannot send a DELETE body, the query string."
    ),
)
async def delete_route(
    request: Request,
    response: Response,
    store: StoreClient = Depends(get_store),
) -> RowResponse:
    data = await read_json_body(request)
    if not data:
        data = {key: request.query_params.get(key) for key in ("id", "camp", "code")}
    body = parse_body(RouteDeleteRequest, data)
    row = await route_service.delete_route(store, body)
    response.headers["Cache-Control"] = NO_STORE
    return RowResponse(row=row)
