"""
Route Map Backend: Route Request Schemas
=========================================

What:  Pydantic models for the bodies of POST /route and DELETE /route.
How:   Scalars go through `clean_str` / `to_float` / `parse_json_field` in
       before-validators, so `{"code": 101}` and `{"code": " 101 "}` both
       arrive as `"101"` and a garbled polygon string arrives as None.

Partial patch semantics:
    Pydantic records which fields the client actually sent in
    `model_fields_set`. That gives the three states every patchable field
    needs without a sentinel type:

        field absent from body      → not in model_fields_set → left untouched
        field sent as null          → in model_fields_set, None → cleared
        field sent with a value     → in model_fields_set, value → written
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from routemap.services.normalizer import (
    clean_str,
    normalize_business_number,
    parse_json_field,
    to_float,
)

# Columns a client may write on a route, besides camp/code
PATCHABLE_ROUTE_FIELDS = (
    "polygon_wgs84",
    "center_wgs84",
    "vendor_business_number_1w",
    "vendor_business_number_2w",
    "delivery_location_name",
    "delivery_location_address",
    "delivery_location_lat",
    "delivery_location_lng",
)


class RouteUpsertRequest(BaseModel):
    """
    Body of POST /route (create-or-update).

    `camp` and `code` are required but declared optional here so the handler
    can answer with the plain `"camp is required"` message instead of a
    schema error.
    """

    id: Optional[int] = Field(default=None, description="Storage id; update this row directly")
    camp: Optional[str] = Field(default=None, description="Camp the route belongs to")
    code: Optional[str] = Field(default=None, description="Route code (stored as code and full_code)")

    polygon_wgs84: Any = Field(default=None, description="[[lng, lat], ...] rings or null")
    center_wgs84: Any = Field(default=None, description="[lng, lat] or null")
    vendor_business_number_1w: Optional[str] = None
    vendor_business_number_2w: Optional[str] = None
    delivery_location_name: Optional[str] = None
    delivery_location_address: Optional[str] = None
    delivery_location_lat: Optional[float] = None
    delivery_location_lng: Optional[float] = None

    model_config = {"extra": "ignore"}

    @field_validator("camp", "code", "delivery_location_name", "delivery_location_address", mode="before")
    @classmethod
    def _clean_text(cls, v: Any) -> Optional[str]:
        return clean_str(v)

    @field_validator("vendor_business_number_1w", "vendor_business_number_2w", mode="before")
    @classmethod
    def _canonical_business_number(cls, v: Any) -> Optional[str]:
        return normalize_business_number(v)

    @field_validator("delivery_location_lat", "delivery_location_lng", mode="before")
    @classmethod
    def _coerce_float(cls, v: Any) -> Optional[float]:
        return to_float(v)

    @field_validator("polygon_wgs84", "center_wgs84", mode="before")
    @classmethod
    def _parse_geometry(cls, v: Any) -> Any:
        return parse_json_field(v)

    def patch_values(self) -> Dict[str, Any]:
        """Columns to write: identity columns plus every field the client sent."""
        values: Dict[str, Any] = {
            "camp": self.camp,
            "code": self.code,
            "full_code": self.code,
        }
        for field in PATCHABLE_ROUTE_FIELDS:
            if field in self.model_fields_set:
                values[field] = getattr(self, field)
        return values


class RouteDeleteRequest(BaseModel):
    """Body (or query) of DELETE /route: `id`, or `camp` + `code`."""

    id: Optional[int] = None
    camp: Optional[str] = None
    code: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("camp", "code", mode="before")
    @classmethod
    def _clean_text(cls, v: Any) -> Optional[str]:
        return clean_str(v)

    @field_validator("id", mode="before")
    @classmethod
    def _blank_id(cls, v: Any) -> Any:
        # Query-string fallback sends "" for an empty id
        if isinstance(v, str) and not v.strip():
            return None
        return v
