"""
Route Map Backend: Store Client Unit Tests
===========================================

What:  Tests for StoreClient (PostgREST over httpx) and its filter helpers.
How:   Requests go through httpx.MockTransport: either the in-memory
       FakePostgrest from conftest or a one-off handler.

Test Strategy:
    ✅ Auth headers and Prefer header on writes
    ✅ Non-2xx → UpstreamError with the store's message, else "HTTP <status>"
    ✅ Transport failure → UpstreamError
    ✅ Missing settings → ConfigurationError on the first request, nothing sent
    ✅ LIKE wildcards escaped in prefix filters
    ✅ "list, object or nothing" payloads normalized by as_rows
"""

import httpx
import pytest

from routemap.config import Settings
from routemap.exceptions import ConfigurationError, UpstreamError
from routemap.services.store_client import (
    StoreClient,
    as_rows,
    first_row,
    in_filter,
    like_prefix,
    quote_value,
)
from routemap.services.search import ilike_any


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHelpers:

    def test_as_rows(self):
        assert as_rows([{"a": 1}, "junk", {"b": 2}]) == [{"a": 1}, {"b": 2}]
        assert as_rows({"a": 1}) == [{"a": 1}]
        assert as_rows(None) == []
        assert as_rows("text") == []

    def test_first_row(self):
        assert first_row([{"a": 1}, {"a": 2}]) == {"a": 1}
        assert first_row([]) is None

    def test_quote_value_escapes(self):
        assert quote_value('a"b') == '"a\\"b"'
        assert quote_value("x,y") == '"x,y"'

    def test_in_filter_is_sorted_and_deduplicated(self):
        assert in_filter(["b", "a", "b"]) == 'in.("a","b")'

    def test_like_prefix_escapes_wildcards(self):
        assert like_prefix("126") == "like.126*"
        assert like_prefix("12_3") == "like.12\\_3*"
        assert like_prefix("5%") == "like.5\\%*"
        assert like_prefix("a\\b") == "like.a\\\\b*"


class TestRequests:

    @pytest.mark.asyncio
    async def test_or_filter_keeps_any_match(self, store_client, fake_store):
        fake_store.tables["vendors"].extend([
            {"id": 1, "name": "Acme", "vendor_code": "a"},
            {"id": 2, "name": "Other", "vendor_code": "ACME-2"},
            {"id": 3, "name": "Unrelated", "vendor_code": "z"},
        ])

        rows = await store_client.select(
            "vendors", {"or": ilike_any([("name", "acme"), ("vendor_code", "acme")])}
        )

        assert sorted(row["id"] for row in rows) == [1, 2]

    @pytest.mark.asyncio
    async def test_like_prefix_matches_underscore_literally(self, store_client, fake_store):
        fake_store.tables["vendors"].extend([
            {"id": 1, "vendor_code": "bn_123"},
            {"id": 2, "vendor_code": "bnX123"},
        ])

        rows = await store_client.select("vendors", {"vendor_code": like_prefix("bn_1")})

        assert [row["id"] for row in rows] == [1]

    @pytest.mark.asyncio
    async def test_select_sends_auth_headers(self, store_client, fake_store):
        fake_store.tables["camps"].append({"id": 1, "camp": "C"})

        rows = await store_client.select("camps", {"select": "id,camp", "camp": "eq.C"})

        assert rows == [{"id": 1, "camp": "C"}]
        sent = fake_store.requests[-1]
        assert sent.headers["apikey"] == "service-key-not-real"
        assert sent.headers["Authorization"] == "Bearer service-key-not-real"
        assert sent.url.path == "/rest/v1/camps"

    @pytest.mark.asyncio
    async def test_insert_and_update_return_representation(self, store_client, fake_store):
        created = await store_client.insert("camps", {"camp": "C", "mb_camp": "Gate"})
        assert fake_store.requests[-1].headers["Prefer"] == "return=representation"
        assert created[0]["camp"] == "C"

        updated = await store_client.update(
            "camps", {"id": f"eq.{created[0]['id']}"}, {"address": "Main St 1"}
        )
        assert updated[0]["address"] == "Main St 1"
        assert fake_store.requests[-1].method == "PATCH"

    @pytest.mark.asyncio
    async def test_store_message_is_passed_through(self, store_client, fake_store):
        fake_store.unreachable.add("vendors")

        with pytest.raises(UpstreamError) as exc_info:
            await store_client.select("vendors")

        assert exc_info.value.message == "relation vendors unavailable"
        assert exc_info.value.status == 503

    @pytest.mark.asyncio
    async def test_error_without_body_reports_status(self):
        async with client_for(lambda request: httpx.Response(500)) as client:
            store = StoreClient(client, "http://store.test", "k")
            with pytest.raises(UpstreamError, match="HTTP 500"):
                await store.select("routes")

    @pytest.mark.asyncio
    async def test_error_with_plain_text_body(self):
        async with client_for(lambda request: httpx.Response(400, text="bad filter")) as client:
            store = StoreClient(client, "http://store.test", "k")
            with pytest.raises(UpstreamError, match="bad filter"):
                await store.select("routes")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(refuse) as client:
            store = StoreClient(client, "http://store.test", "k")
            with pytest.raises(UpstreamError, match="connection refused"):
                await store.select("routes")

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self):
        async with client_for(lambda request: httpx.Response(204)) as client:
            store = StoreClient(client, "http://store.test/", "k")
            assert await store.request("PATCH", "routes", body={}) is None
            assert await store.update("routes", {"id": "eq.1"}, {}) == []

    @pytest.mark.asyncio
    async def test_single_object_payload(self):
        async with client_for(lambda request: httpx.Response(200, json={"id": 7})) as client:
            store = StoreClient(client, "http://store.test", "k")
            assert await store.select("routes") == [{"id": 7}]


class TestFromSettings:

    @pytest.mark.asyncio
    async def test_missing_url(self, fake_store):
        config = Settings(supabase_url="", supabase_service_role_key="k")
        async with client_for(fake_store) as client:
            store = StoreClient.from_settings(client, config)
            with pytest.raises(ConfigurationError, match="Missing ENV: SUPABASE_URL"):
                await store.select("routes")
        assert fake_store.requests == []

    @pytest.mark.asyncio
    async def test_missing_key(self, fake_store):
        config = Settings(supabase_url="http://store.test", supabase_service_role_key="")
        async with client_for(fake_store) as client:
            store = StoreClient.from_settings(client, config)
            with pytest.raises(ConfigurationError, match="SUPABASE_SERVICE_ROLE_KEY"):
                await store.insert("routes", {"camp": "C"})
        assert fake_store.requests == []

    @pytest.mark.asyncio
    async def test_trailing_slash_stripped(self):
        config = Settings(supabase_url="http://store.test/", supabase_service_role_key="k")
        async with httpx.AsyncClient() as client:
            store = StoreClient.from_settings(client, config)
        assert store.base_url == "http://store.test"
