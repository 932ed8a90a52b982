"""
Route Map Backend: Address Listing Route
=========================================

GET /addresses: raw delivery addresses of a camp, for the address overlay.
A failed lookup still answers 200 with an empty list and the error message,
so the map renders without the overlay.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from routemap.routes.deps import get_store
from routemap.schemas.common import ErrorResponse, RowsResponse
from routemap.services.address_service import address_service
from routemap.services.store_client import StoreClient

router = APIRouter(tags=["Addresses"])


@router.get(
    "/addresses",
    response_model=RowsResponse,
    responses={400: {"description": "camp missing", "model": ErrorResponse}},
    summary="List the delivery addresses of a camp",
)
async def list_addresses(
    camp: Optional[str] = Query(default=None, description="Camp name (required)"),
    code: Optional[str] = Query(default=None, description="Route code prefix"),
    store: StoreClient = Depends(get_store),
):
    listing = await address_service.list_addresses(store, camp, code)
    content = {"rows": listing.rows}
    if listing.error is not None:
        content["error"] = listing.error
    return JSONResponse(content=content, headers={"Cache-Control": "no-store"})
