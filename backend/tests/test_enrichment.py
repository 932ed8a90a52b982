"""
Route Map Backend: Enrichment Pipeline Unit Tests
==================================================

What:  Tests for RouteEnricher and the resolvers it runs.
How:   `mock_store.select` dispatches on the table name, so each test sets
       up exactly the vendor / camp rows it needs.

Test Strategy:
    ✅ Color derived from (camp, full_code), stored color kept
    ✅ Geometry text parsed, garbage becomes null
    ✅ Vendor names resolve through any business-number variant
    ✅ Camp location overrides delivery address and coordinates
    ✅ Auxiliary lookup failures leave rows intact
    ✅ One store call per auxiliary table per batch
"""

from unittest.mock import AsyncMock

import pytest

from routemap.exceptions import UpstreamError
from routemap.services.colors import route_color
from routemap.services.enrichment import RouteEnricher
from routemap.services.resolver import CampResolver, VendorResolver


def store_with(tables, failing=()):
    async def select(table, params=None):
        if table in failing:
            raise UpstreamError(message=f"{table} down", status=503)
        return [dict(row) for row in tables.get(table, [])]

    store = AsyncMock()
    store.select = AsyncMock(side_effect=select)
    return store


VENDORS = [
    {"id": 1, "business_number": "1234567890", "name": "Acme Logistics", "vendor_code": "bn_1"},
    {"id": 2, "business_number": "987-65-43210", "name": "Fast Freight", "vendor_code": "bn_2"},
]

CAMPS = [
    {"id": 10, "camp": "C", "mb_camp": "North Gate", "address": "Camp Rd 1",
     "latitude": "37.5", "longitude": "127.0"},
    {"id": 11, "camp": "D", "mb_camp": "North Gate", "address": "Other Rd 9",
     "latitude": 35.1, "longitude": 129.0},
]


class TestRouteEnricher:

    def setup_method(self):
        self.enricher = RouteEnricher(VendorResolver("vendors"), CampResolver("camps"))

    @pytest.mark.asyncio
    async def test_color_and_geometry(self):
        store = store_with({})
        rows = [
            {"camp": "C", "full_code": "101", "polygon_wgs84": "[[1, 2], [3, 4]]",
             "center_wgs84": "not json"},
            {"camp": "C", "full_code": "102", "color": "#000000", "polygon_wgs84": None},
        ]

        result = await self.enricher.enrich(store, rows)

        assert result[0]["color"] == route_color("C", "101")
        assert result[0]["polygon_wgs84"] == [[1, 2], [3, 4]]
        assert result[0]["center_wgs84"] is None
        assert result[1]["color"] == "#000000"
        assert result[1]["polygon_wgs84"] is None
        store.select.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_vendor_names_match_any_variant(self):
        store = store_with({"vendors": VENDORS})
        rows = [{
            "camp": "C", "full_code": "101",
            "vendor_business_number_1w": "123-45-67890",
            "vendor_business_number_2w": "9876543210",
        }]

        await self.enricher.enrich(store, rows)

        assert rows[0]["vendor_name_1w"] == "Acme Logistics"
        assert rows[0]["vendor_name_2w"] == "Fast Freight"

    @pytest.mark.asyncio
    async def test_unknown_vendor_leaves_name_unset(self):
        store = store_with({"vendors": VENDORS})
        rows = [{"camp": "C", "full_code": "101", "vendor_business_number_1w": "111-11-11111"}]

        await self.enricher.enrich(store, rows)

        assert "vendor_name_1w" not in rows[0]

    @pytest.mark.asyncio
    async def test_camp_location_overrides_stored_values(self):
        store = store_with({"camps": CAMPS})
        rows = [{
            "camp": "C", "full_code": "101",
            "delivery_location_name": " north gate ",
            "delivery_location_address": "stale address",
            "delivery_location_lat": 1.0,
            "delivery_location_lng": 2.0,
        }]

        await self.enricher.enrich(store, rows)

        assert rows[0]["delivery_location_address"] == "Camp Rd 1"
        assert rows[0]["delivery_location_lat"] == 37.5
        assert rows[0]["delivery_location_lng"] == 127.0

    @pytest.mark.asyncio
    async def test_location_of_other_camp_not_used(self):
        store = store_with({"camps": CAMPS})
        rows = [{"camp": "E", "full_code": "1", "delivery_location_name": "North Gate",
                 "delivery_location_address": "kept"}]

        await self.enricher.enrich(store, rows)

        assert rows[0]["delivery_location_address"] == "kept"

    @pytest.mark.asyncio
    async def test_auxiliary_failures_keep_rows(self):
        store = store_with({}, failing=("vendors", "camps"))
        rows = [
            {"camp": "C", "full_code": "101", "vendor_business_number_1w": "1234567890",
             "delivery_location_name": "North Gate"},
            {"camp": "C", "full_code": "102"},
        ]

        result = await self.enricher.enrich(store, rows)

        assert len(result) == 2
        assert [r["full_code"] for r in result] == ["101", "102"]
        assert "vendor_name_1w" not in result[0]
        assert result[0]["color"] == route_color("C", "101")

    @pytest.mark.asyncio
    async def test_one_lookup_per_table(self):
        store = store_with({"vendors": VENDORS, "camps": CAMPS})
        rows = [
            {"camp": camp, "full_code": str(n), "vendor_business_number_1w": "1234567890",
             "delivery_location_name": "North Gate"}
            for camp in ("C", "D") for n in range(5)
        ]

        await self.enricher.enrich(store, rows)

        tables = [call.args[0] for call in store.select.await_args_list]
        assert sorted(tables) == ["camps", "vendors"]
        camp_params = store.select.await_args_list[tables.index("camps")].args[1]
        assert camp_params["camp"] == 'in.("C","D")'

    @pytest.mark.asyncio
    async def test_enrich_one_returns_the_row(self):
        store = store_with({})
        row = {"camp": "C", "full_code": "7"}
        assert await self.enricher.enrich_one(store, row) is row
        assert row["color"] == route_color("C", "7")


class TestVendorResolver:

    @pytest.mark.asyncio
    async def test_no_numbers_no_query(self):
        store = store_with({"vendors": VENDORS})
        assert await VendorResolver("vendors").resolve_many(store, []) == {}
        store.select.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_queries_every_variant(self):
        store = store_with({"vendors": VENDORS})
        names = await VendorResolver("vendors").resolve_many(store, ["1234567890"])

        params = store.select.await_args.args[1]
        assert params["business_number"] == 'in.("123-45-67890","1234567890")'
        assert names["123-45-67890"] == "Acme Logistics"
        assert names["1234567890"] == "Acme Logistics"
