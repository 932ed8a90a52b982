"""
Route Map Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the whole suite.
How:   Unit tests drive services with `mock_store` (an AsyncMock standing in
       for StoreClient). Endpoint tests run the real app over ASGITransport
       with its httpx client swapped for one backed by `FakePostgrest`, an
       in-memory stand-in for the store's REST dialect.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_store:     AsyncMock with select/insert/update/request
    ├── fake_store:     FakePostgrest seeded with empty tables
    ├── store_client:   real StoreClient talking to fake_store
    ├── test_client:    httpx AsyncClient against the FastAPI app
    └── lenient_client: same, with unhandled errors answered as 500
"""

import json
import os
import re
from typing import Any, Dict, List, Optional, Set
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before any routemap import: settings are read at import time
os.environ["SUPABASE_URL"] = "http://store.test"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-key-not-real"
os.environ["SUPABASE_ANON_KEY"] = "anon-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

STORE_URL = "http://store.test"


# ══════════════════════════════════════════════════════════════════════════
# In-memory PostgREST
# ══════════════════════════════════════════════════════════════════════════

_QUOTED = re.compile(r'"((?:[^"\\]|\\.)*)"')
_ILIKE_TERM = re.compile(r'(\w+)\.ilike\."((?:[^"\\]|\\.)*)"')


def _unquote(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


def _like_regex(pattern: str, ignore_case: bool = False) -> "re.Pattern[str]":
    """LIKE pattern (`*` or `%` any run, `_` one char, `\\` escapes) → regex."""
    parts = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            parts.append(re.escape(next(chars, "\\")))
        elif char in "*%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL | (re.IGNORECASE if ignore_case else 0))


def _in_values(expr: str) -> Set[str]:
    inner = expr[len("in.("):-1]
    quoted = _QUOTED.findall(inner)
    if quoted:
        return {_unquote(value) for value in quoted}
    return {part for part in inner.split(",") if part}


def _matches(row: Dict[str, Any], column: str, expr: str) -> bool:
    value = row.get(column)
    text = "" if value is None else str(value)
    if expr.startswith("eq."):
        return value is not None and text == expr[3:]
    if expr.startswith("like."):
        return value is not None and _like_regex(expr[5:]).fullmatch(text) is not None
    if expr.startswith("in.("):
        return value is not None and text in _in_values(expr)
    if expr == "is.null":
        return value is None
    raise AssertionError(f"FakePostgrest: unsupported filter {column}={expr}")


def _matches_any(row: Dict[str, Any], expr: str) -> bool:
    """`or=(col.ilike."*term*",...)`: true when any term matches."""
    terms = _ILIKE_TERM.findall(expr)
    if not terms:
        raise AssertionError(f"FakePostgrest: unsupported or={expr}")
    for column, pattern in terms:
        value = row.get(column)
        if value is not None and _like_regex(_unquote(pattern), ignore_case=True).fullmatch(str(value)):
            return True
    return False


class FakePostgrest:
    """
    Enough of PostgREST for the backend's queries.

    Supports `eq.`, `like.` (with LIKE wildcards and escapes), `in.(...)`
    and `is.null` filters, `or=(col.ilike."...",...)`, `select`, `order`
    and `limit`, and POST / PATCH with `Prefer: return=representation`.
    Tables listed in `unreachable` answer 503.
    """

    RESERVED = {"select", "order", "limit"}

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "subsubroutes": [], "addresses": [], "vendors": [], "camps": [],
        }
        self.tables.update(tables or {})
        self.unreachable: Set[str] = set()
        self.requests: List[httpx.Request] = []
        self._next_id = 1000

    # ── helpers ───────────────────────────────────────────────────────────
    def _filtered(self, table: str, params: httpx.QueryParams) -> List[Dict[str, Any]]:
        rows = self.tables.setdefault(table, [])
        for column, expr in params.multi_items():
            if column in self.RESERVED:
                continue
            if column == "or":
                rows = [row for row in rows if _matches_any(row, expr)]
                continue
            rows = [row for row in rows if _matches(row, column, expr)]
        return rows

    @staticmethod
    def _project(rows: List[Dict[str, Any]], select: Optional[str]) -> List[Dict[str, Any]]:
        if not select or select == "*":
            return [dict(row) for row in rows]
        columns = [c.strip() for c in select.split(",") if c.strip()]
        return [{c: row.get(c) for c in columns} for row in rows]

    @staticmethod
    def _ordered(rows: List[Dict[str, Any]], order: Optional[str]) -> List[Dict[str, Any]]:
        if not order:
            return list(rows)
        result = list(rows)
        for part in reversed(order.split(",")):
            column, _, direction = part.partition(".")
            result.sort(
                key=lambda r: (r.get(column) is None, str(r.get(column) or "")),
                reverse=direction == "desc",
            )
        return result

    # ── transport handler ─────────────────────────────────────────────────
    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = "/rest/v1/"
        if not request.url.path.startswith(prefix):
            return httpx.Response(404, json={"message": "not a store path"})
        table = request.url.path[len(prefix):]
        if table in self.unreachable:
            return httpx.Response(503, json={"message": f"relation {table} unavailable"})

        params = request.url.params
        select = params.get("select")

        if request.method == "GET":
            rows = self._ordered(self._filtered(table, params), params.get("order"))
            if params.get("limit"):
                rows = rows[: int(params["limit"])]
            return httpx.Response(200, json=self._project(rows, select))

        body = json.loads(request.content) if request.content else {}

        if request.method == "POST":
            created = []
            for values in body if isinstance(body, list) else [body]:
                row = dict(values)
                if row.get("id") is None:
                    self._next_id += 1
                    row["id"] = self._next_id
                self.tables.setdefault(table, []).append(row)
                created.append(row)
            return httpx.Response(201, json=self._project(created, select))

        if request.method == "PATCH":
            rows = self._filtered(table, params)
            for row in rows:
                row.update(body)
            return httpx.Response(200, json=self._project(rows, select))

        return httpx.Response(405, json={"message": "method not allowed"})


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_store():
    """
    AsyncMock standing in for StoreClient.

    Usage:
        mock_store.select.return_value = [{"id": 1, "camp": "C"}]
        rows = await route_service.list_routes(mock_store, "C")
    """
    store = AsyncMock()
    store.select = AsyncMock(return_value=[])
    store.insert = AsyncMock(return_value=[])
    store.update = AsyncMock(return_value=[])
    store.request = AsyncMock(return_value=None)
    return store


@pytest.fixture
def fake_store():
    return FakePostgrest()


@pytest_asyncio.fixture
async def store_client(fake_store):
    """Real StoreClient against the in-memory store."""
    from routemap.services.store_client import StoreClient

    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_store)) as client:
        yield StoreClient(client, STORE_URL, "service-key-not-real")


@pytest_asyncio.fixture
async def test_client(fake_store):
    """
    HTTPX AsyncClient talking to the FastAPI app, whose upstream calls all
    land in `fake_store`.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from routemap.main import app
    from routemap.routes.deps import get_http_client

    upstream = httpx.AsyncClient(transport=httpx.MockTransport(fake_store))
    app.dependency_overrides[get_http_client] = lambda: upstream
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
        await upstream.aclose()


@pytest_asyncio.fixture
async def lenient_client(fake_store):
    """
    Like `test_client`, but unhandled exceptions come back as the app's 500
    response instead of being re-raised into the test.
    """
    from routemap.main import app
    from routemap.routes.deps import get_http_client

    upstream = httpx.AsyncClient(transport=httpx.MockTransport(fake_store))
    app.dependency_overrides[get_http_client] = lambda: upstream
    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
        await upstream.aclose()
