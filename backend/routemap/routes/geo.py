"""
Route Map Backend: Geography Routes
====================================

GET /osm proxies Overpass for the road/building layers of the visible map.
GET / and /zip proxy the postal boundary service.

Neither touches the store, so both work when the store is misconfigured.
"""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Response

from routemap.routes.deps import get_http_client
from routemap.schemas.common import ErrorResponse, OsmResponse, ZipBoundaryResponse
from routemap.services.geo_service import osm_service, zipcode_service

router = APIRouter(tags=["Geography"])

UPSTREAM_ERRORS = {
    400: {"description": "Missing or malformed parameter", "model": ErrorResponse},
    502: {"description": "Upstream service failed", "model": ErrorResponse},
}


@router.get(
    "/osm",
    response_model=OsmResponse,
    responses=UPSTREAM_ERRORS,
    summary="Roads and buildings inside a bounding box",
)
async def osm_features(
    response: Response,
    bbox: Optional[str] = Query(default=None, description="minLng,minLat,maxLng,maxLat"),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> OsmResponse:
    layers = await osm_service.fetch_features(client, bbox)
    response.headers["Cache-Control"] = "public, max-age=60"
    return OsmResponse(**layers)


@router.get(
    "/",
    response_model=ZipBoundaryResponse,
    responses={**UPSTREAM_ERRORS, 404: {"description": "Unknown zipcode", "model": ErrorResponse}},
    summary="Postal boundary of a zipcode",
)
@router.get("/zip", response_model=ZipBoundaryResponse, include_in_schema=False)
async def zipcode_boundary(
    zipcode: Optional[str] = Query(default=None, description="5-digit postal code"),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> ZipBoundaryResponse:
    boundary = await zipcode_service.fetch_boundary(client, zipcode)
    return ZipBoundaryResponse(**boundary)
