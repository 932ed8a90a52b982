"""
Route Map Backend: Route Enrichment Pipeline
=============================================

What:  Turns raw route rows from the store into the shape the map renders.
How:   A linear pipeline over the whole batch:

    ┌──────────┐   ┌──────────────┐   ┌──────────────────────────────┐
    │  color   │──▶│  geometry    │──▶│ vendor names ║ camp locations│
    │ (per row)│   │  (per row)   │   │ (one lookup each, concurrent)│
    └──────────┘   └──────────────┘   └──────────────────────────────┘

    1. `color` from (camp, full_code) unless the row already carries one
    2. `polygon_wgs84` / `center_wgs84` strings parsed into structures
    3. `vendor_name_1w` / `vendor_name_2w` from the vendor table
    4. delivery address/coordinates overwritten from the camp table when
       the row's `delivery_location_name` names a known camp location

Guarantee: the output has the same rows in the same order. Enrichment
failures only leave derived fields unset.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from routemap.services.colors import route_color
from routemap.services.normalizer import (
    business_number_variants,
    clean_str,
    lookup_key,
    parse_json_field,
    to_float,
)
from routemap.services.resolver import CampResolver, VendorResolver
from routemap.services.store_client import Row, StoreClient

logger = logging.getLogger(__name__)

GEOMETRY_FIELDS = ("polygon_wgs84", "center_wgs84")

# (stored business number column, derived display column)
VENDOR_SLOTS = (
    ("vendor_business_number_1w", "vendor_name_1w"),
    ("vendor_business_number_2w", "vendor_name_2w"),
)


def apply_color(row: Row) -> None:
    full_code = clean_str(row.get("full_code"))
    if full_code and not row.get("color"):
        row["color"] = route_color(row.get("camp"), full_code)


def parse_geometry(row: Row) -> None:
    for field in GEOMETRY_FIELDS:
        if field in row:
            row[field] = parse_json_field(row[field])


def apply_vendor_names(row: Row, names: Dict[str, str]) -> None:
    for number_field, name_field in VENDOR_SLOTS:
        for variant in business_number_variants(row.get(number_field)):
            if variant in names:
                row[name_field] = names[variant]
                break


def apply_camp_location(row: Row, camps: Dict[str, Dict[str, Row]]) -> None:
    locations = camps.get(clean_str(row.get("camp")) or "")
    key = lookup_key(row.get("delivery_location_name"))
    if not locations or not key or key not in locations:
        return
    location = locations[key]
    # Camp data is authoritative over values copied onto the route earlier
    row["delivery_location_address"] = location.get("address")
    row["delivery_location_lat"] = to_float(location.get("latitude"))
    row["delivery_location_lng"] = to_float(location.get("longitude"))


class RouteEnricher:
    """Runs the enrichment pipeline against one store client per call."""

    def __init__(
        self,
        vendors: Optional[VendorResolver] = None,
        camps: Optional[CampResolver] = None,
    ):
        self.vendors = vendors or VendorResolver()
        self.camps = camps or CampResolver()

    async def enrich(self, store: StoreClient, rows: List[Row]) -> List[Row]:
        """
        Enrich a batch of route rows in place and return it.

        Both auxiliary lookups are issued concurrently; each degrades to an
        empty map on failure (see resolver.py), so this never raises for
        auxiliary errors.
        """
        for row in rows:
            apply_color(row)
            parse_geometry(row)

        business_numbers = {
            row.get(number_field)
            for row in rows
            for number_field, _ in VENDOR_SLOTS
            if clean_str(row.get(number_field))
        }
        camps_with_locations = {
            row.get("camp")
            for row in rows
            if clean_str(row.get("camp")) and lookup_key(row.get("delivery_location_name"))
        }

        vendor_names, camp_locations = await asyncio.gather(
            self.vendors.resolve_many(store, business_numbers),
            self.camps.resolve_many(store, camps_with_locations),
        )

        for row in rows:
            apply_vendor_names(row, vendor_names)
            apply_camp_location(row, camp_locations)

        logger.debug(
            "Enriched %d route rows (%d vendor keys, %d camps)",
            len(rows),
            len(vendor_names),
            len(camp_locations),
        )
        return rows

    async def enrich_one(self, store: StoreClient, row: Row) -> Row:
        await self.enrich(store, [row])
        return row


# Stateless apart from table names, so one instance serves every request
route_enricher = RouteEnricher()
