"""
Route Map Backend: Address Service
===================================

What:  Read-only listing of raw delivery addresses (table `addresses`) for a
       camp, optionally narrowed to a route-code prefix.

The address table is optional per deployment: when it is missing or its
columns differ, the listing degrades to `{rows: [], error: <message>}` with
HTTP 200 so the map still loads. See `AddressListing.error`.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from routemap.config import settings
from routemap.exceptions import UpstreamError, ValidationError
from routemap.services.normalizer import clean_str, parse_json_field
from routemap.services.store_client import Row, StoreClient, like_prefix

logger = logging.getLogger(__name__)

ADDRESS_COLUMNS = "id,camp,full_code,address,center_wgs84,zipcode,detail,dong,created_at"


@dataclass
class AddressListing:
    rows: List[Row] = field(default_factory=list)
    error: Optional[str] = None


class AddressService:

    def __init__(self, table: Optional[str] = None):
        self.table = table or settings.address_table

    async def list_addresses(
        self, store: StoreClient, camp: Optional[str], code: Optional[str] = None
    ) -> AddressListing:
        camp = clean_str(camp)
        code = clean_str(code)
        if not camp:
            raise ValidationError.required("camp")

        params = {
            "select": ADDRESS_COLUMNS,
            "camp": f"eq.{camp}",
            "order": "full_code.asc,address.asc",
        }
        if code:
            params["full_code"] = like_prefix(code)

        try:
            rows = await store.select(self.table, params)
        except UpstreamError as e:
            logger.warning("Address lookup for camp=%s failed: %s", camp, e.message)
            return AddressListing(rows=[], error=e.message)

        for row in rows:
            if "center_wgs84" in row:
                row["center_wgs84"] = parse_json_field(row["center_wgs84"])
        return AddressListing(rows=rows)


address_service = AddressService()
