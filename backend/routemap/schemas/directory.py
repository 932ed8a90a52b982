"""
Route Map Backend: Camp and Vendor Request Schemas
===================================================

What:  Bodies of POST /camps and POST /vendors.
How:   Same before-validator conventions as schemas/route.py; required
       fields are checked by the services so they can raise the plain
       `"<field> is required"` error.
"""

from typing import Any, Optional

from pydantic import BaseModel, field_validator

from routemap.services.normalizer import clean_str, to_float


class CampUpsertRequest(BaseModel):
    """Camp delivery location, upserted by (camp, mb_camp)."""

    camp: Optional[str] = None
    mb_camp: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = {"extra": "ignore"}

    @field_validator("camp", "mb_camp", "address", mode="before")
    @classmethod
    def _clean_text(cls, v: Any) -> Optional[str]:
        return clean_str(v)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_float(cls, v: Any) -> Optional[float]:
        return to_float(v)


class VendorUpsertRequest(BaseModel):
    """Vendor, upserted by business number (any stored variant)."""

    name: Optional[str] = None
    business_number: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("name", "business_number", mode="before")
    @classmethod
    def _clean_text(cls, v: Any) -> Optional[str]:
        return clean_str(v)
