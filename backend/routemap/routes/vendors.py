"""
Route Map Backend: Vendor Routes
=================================

GET /vendors searches vendors by name, business number or vendor code;
POST /vendors registers or renames a vendor by business number.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from routemap.routes.deps import get_store, parse_body, read_json_body
from routemap.schemas.common import ErrorResponse, RowResponse, RowsResponse
from routemap.schemas.directory import VendorUpsertRequest
from routemap.services.store_client import StoreClient
from routemap.services.vendor_service import vendor_service

router = APIRouter(tags=["Vendors"])


@router.get(
    "/vendors",
    response_model=RowsResponse,
    responses={400: {"description": "q missing", "model": ErrorResponse}},
    summary="Search vendors",
)
async def search_vendors(
    response: Response,
    q: Optional[str] = Query(default=None, description="Name, business number or vendor code"),
    limit: Optional[int] = Query(default=None, description="Max rows (1-200, default 50)"),
    store: StoreClient = Depends(get_store),
) -> RowsResponse:
    rows = await vendor_service.search_vendors(store, q, limit)
    response.headers["Cache-Control"] = "no-store"
    return RowsResponse(rows=rows)


@router.post(
    "/vendors",
    response_model=RowResponse,
    responses={400: {"description": "Required field missing", "model": ErrorResponse}},
    summary="Create or rename a vendor",
)
async def upsert_vendor(
    request: Request,
    response: Response,
    store: StoreClient = Depends(get_store),
) -> RowResponse:
    body = parse_body(VendorUpsertRequest, await read_json_body(request))
    row = await vendor_service.upsert_vendor(store, body)
    response.headers["Cache-Control"] = "no-store"
    return RowResponse(row=row)
