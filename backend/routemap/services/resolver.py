"""
Route Map Backend: Vendor and Camp Resolvers
=============================================

What:  Batch lookups for the auxiliary tables joined onto route rows.
How:   Each resolver takes the full key set of a request and issues ONE
       store call (`in.(...)` filter), returning a plain dict. Nothing is
       cached between requests.
Who:   RouteEnricher (enrichment.py).

Failure policy:
    Both resolvers are auxiliary. A store failure is logged as a warning and
    produces an empty map; the route rows are returned without the derived
    fields instead of failing the request.
"""

import logging
from typing import Dict, Iterable, List, Optional

import httpx

from routemap.config import settings
from routemap.exceptions import UpstreamError
from routemap.services.normalizer import business_number_variants, clean_str, lookup_key
from routemap.services.store_client import Row, StoreClient, in_filter

logger = logging.getLogger(__name__)

VENDOR_COLUMNS = "id,business_number,name,vendor_code"
CAMP_COLUMNS = "id,camp,mb_camp,address,latitude,longitude"


class VendorResolver:
    """Resolves business numbers (any stored variant) to vendor names."""

    def __init__(self, table: Optional[str] = None):
        self.table = table or settings.vendor_table

    async def resolve_many(
        self, store: StoreClient, business_numbers: Iterable[str]
    ) -> Dict[str, str]:
        """
        Map every variant of every known business number to its vendor name.

        Args:
            business_numbers: Values as stored on route rows (any format)

        Returns:
            {variant: name}. A row's business number resolves if ANY of its
            variants is a key. Empty when nothing matched or the lookup failed.
        """
        variants = set()
        for value in business_numbers:
            variants |= business_number_variants(value)
        if not variants:
            return {}

        try:
            vendors = await store.select(
                self.table,
                {"select": VENDOR_COLUMNS, "business_number": in_filter(variants)},
            )
        except (UpstreamError, httpx.HTTPError) as e:
            logger.warning("Vendor lookup failed, leaving vendor names unset: %s", e)
            return {}

        names: Dict[str, str] = {}
        for vendor in vendors:
            name = clean_str(vendor.get("name"))
            if not name:
                continue
            for variant in business_number_variants(vendor.get("business_number")):
                # First stored vendor wins when two rows share a variant
                names.setdefault(variant, name)
        return names


class CampResolver:
    """Resolves (camp, delivery-location name) pairs to camp location rows."""

    def __init__(self, table: Optional[str] = None):
        self.table = table or settings.camp_table

    async def resolve_many(
        self, store: StoreClient, camps: Iterable[str]
    ) -> Dict[str, Dict[str, Row]]:
        """
        Fetch the location list of every distinct camp in one call.

        Returns:
            {camp: {lookup_key(mb_camp): camp_row}}
        """
        wanted = {c for c in (clean_str(camp) for camp in camps) if c}
        if not wanted:
            return {}

        try:
            rows: List[Row] = await store.select(
                self.table,
                {"select": CAMP_COLUMNS, "camp": in_filter(wanted)},
            )
        except (UpstreamError, httpx.HTTPError) as e:
            logger.warning("Camp lookup failed, leaving delivery locations as stored: %s", e)
            return {}

        by_camp: Dict[str, Dict[str, Row]] = {camp: {} for camp in wanted}
        for row in rows:
            camp = clean_str(row.get("camp"))
            key = lookup_key(row.get("mb_camp"))
            if camp in by_camp and key:
                by_camp[camp].setdefault(key, row)
        return by_camp
