"""
Route Map Backend: Camp Location Routes
========================================

GET /camps searches the camp delivery locations; POST /camps upserts one
location by (camp, mb_camp).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from routemap.routes.deps import get_store, parse_body, read_json_body
from routemap.schemas.common import ErrorResponse, RowResponse, RowsResponse
from routemap.schemas.directory import CampUpsertRequest
from routemap.services.camp_service import camp_service
from routemap.services.store_client import StoreClient

router = APIRouter(tags=["Camps"])


@router.get(
    "/camps",
    response_model=RowsResponse,
    summary="Search camp delivery locations",
    description=(
        "With `q`: locations whose camp, mb_camp or address contains q, "
        "exact matches first. Without `q`: all locations matching the "
        "optional camp / mb_camp filters."
    ),
)
async def search_camps(
    response: Response,
    q: Optional[str] = Query(default=None, description="Search text"),
    camp: Optional[str] = Query(default=None, description="Exact camp filter"),
    mb_camp: Optional[str] = Query(default=None, description="Exact location-name filter"),
    limit: Optional[int] = Query(default=None, description="Max rows (1-200, default 50)"),
    store: StoreClient = Depends(get_store),
) -> RowsResponse:
    rows = await camp_service.search_camps(store, q=q, camp=camp, mb_camp=mb_camp, limit=limit)
    response.headers["Cache-Control"] = "no-store"
    return RowsResponse(rows=rows)


@router.post(
    "/camps",
    response_model=RowResponse,
    responses={400: {"description": "Required field missing", "model": ErrorResponse}},
    summary="Create or update a camp location",
)
async def upsert_camp(
    request: Request,
    response: Response,
    store: StoreClient = Depends(get_store),
) -> RowResponse:
    body = parse_body(CampUpsertRequest, await read_json_body(request))
    row = await camp_service.upsert_camp(store, body)
    response.headers["Cache-Control"] = "no-store"
    return RowResponse(row=row)
