"""
Route Map Backend: Response Schemas
====================================

What:  Envelopes shared by the JSON endpoints, used as `response_model`
       and for the OpenAPI docs.

Rows are passed through as dicts: their columns are defined by the store
tables, and the proxy must not drop columns it does not know about.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RowsResponse(BaseModel):
    rows: List[Dict[str, Any]] = Field(description="Matching rows, possibly empty")


class RowResponse(BaseModel):
    row: Optional[Dict[str, Any]] = Field(description="The created or updated row")


class OsmResponse(BaseModel):
    """Overpass ways reshaped into the two layers the map draws."""

    roads: List[Dict[str, Any]] = Field(description="[{id, coords: [[lon, lat], ...]}]")
    buildings: List[Dict[str, Any]] = Field(description="[{id, coords: [[lon, lat], ...]}]")


class ZipBoundaryResponse(BaseModel):
    zipcode: str
    srid: int = Field(description="Coordinate system of center/polygon (EPSG:5179)")
    center: Optional[List[float]] = Field(description="Mean of the first ring, or null")
    polygon: List[Any] = Field(description="MultiPolygon coordinates")
    metadata: Dict[str, Any]


class ErrorResponse(BaseModel):
    """
    Error format for every JSON endpoint.

    Example:
        {"error": "camp is required", "request_id": "1f2e3d4c"}
    """

    error: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Third-party error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    ok: bool
    version: str
    time: int = Field(description="Server time in epoch milliseconds")
