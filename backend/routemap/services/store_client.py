"""
Route Map Backend: Store Client (PostgREST over HTTP)
======================================================

What:  Authenticated requests against the backing store's REST dialect
       (`/rest/v1/<table>?column=op.value&select=...&order=...`).
How:   Wraps a shared `httpx.AsyncClient`. Every call sends the service key
       as `apikey` and bearer token, decodes the JSON body, and turns any
       transport or HTTP failure into a single `UpstreamError`.
Who:   Every service that reads or writes store tables.

Response shapes:
    PostgREST answers with a JSON array for reads and for writes made with
    `Prefer: return=representation`, but a single object (or an empty body)
    shows up often enough that nothing downstream should guess. `as_rows()`
    is the only place that normalizes "list, object or nothing" into
    `List[Row]`.

Filter helpers:
    PostgREST values inside `in.(...)` and `or=(...)` must be double-quoted
    when they contain reserved characters (commas, parentheses, dots).
    `in_filter()` and `quote_value()` always quote. `like_prefix()` escapes
    the LIKE wildcards `%` and `_` so a prefix match stays a plain prefix.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from routemap.config import Settings, settings
from routemap.exceptions import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Params = Dict[str, str]


def as_rows(data: Any) -> List[Row]:
    """Normalize an upstream payload into a list of row dicts."""
    if isinstance(data, list):
        return [row for row in data if isinstance(row, dict)]
    if isinstance(data, dict):
        return [data]
    return []


def first_row(data: Any) -> Optional[Row]:
    rows = as_rows(data)
    return rows[0] if rows else None


def quote_value(value: Any) -> str:
    """Double-quote a value for use inside PostgREST list/logic syntax."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def in_filter(values: Iterable[Any]) -> str:
    """`in.("a","b")` filter for a set of values (sorted for stable URLs)."""
    return "in.(" + ",".join(quote_value(v) for v in sorted({str(v) for v in values})) + ")"


def like_prefix(value: Any) -> str:
    """`like.<value>*` with LIKE wildcards (`%`, `_`) in value escaped."""
    text = str(value).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"like.{text}*"


def _error_message(response: httpx.Response) -> str:
    text = response.text
    message = text or f"HTTP {response.status_code}"
    try:
        body = json.loads(text)
    except ValueError:
        return message
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or message
    return message


class StoreClient:
    """
    Thin async client for one store project.

    Args:
        client:   Shared httpx.AsyncClient (connection pool owned by the app)
        base_url: Store base URL, e.g. https://<project>.supabase.co
        api_key:  Service-role key
        timeout:  Per-request timeout in seconds
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        timeout: float = 5.0,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, client: httpx.AsyncClient, config: Settings = settings
    ) -> "StoreClient":
        """
        Build a client from settings.

        Missing store settings raise ConfigurationError on the first request,
        not here.
        """
        return cls(
            client=client,
            base_url=config.supabase_url,
            api_key=config.supabase_service_role_key,
            timeout=config.store_timeout,
        )

    def _headers(self, prefer: Optional[str]) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def request(
        self,
        method: str,
        table: str,
        params: Optional[Params] = None,
        body: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """
        Issue one request against `/rest/v1/<table>`.

        Returns:
            Decoded JSON, the raw text when the body is not JSON, or None for
            an empty body.

        Raises:
            ConfigurationError: store URL or key not set
            UpstreamError:      transport failure or non-2xx status.
        """
        if not self.base_url:
            raise ConfigurationError("SUPABASE_URL")
        if not self.api_key:
            raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY")

        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = await self.client.request(
                method,
                url,
                params=params,
                content=json.dumps(body) if body is not None else None,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Store %s %s failed: %s", method, table, e)
            raise UpstreamError(
                message=str(e) or f"Store request failed: {type(e).__name__}",
                context={"table": table, "method": method},
            )

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Store %s %s returned %d: %s", method, table, response.status_code, message
            )
            raise UpstreamError(
                message=message,
                status=response.status_code,
                context={"table": table, "method": method},
            )

        text = response.text
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    async def select(self, table: str, params: Optional[Params] = None) -> List[Row]:
        return as_rows(await self.request("GET", table, params=params))

    async def insert(self, table: str, values: Row, select: Optional[str] = None) -> List[Row]:
        params = {"select": select} if select else None
        data = await self.request(
            "POST", table, params=params, body=values, prefer="return=representation"
        )
        return as_rows(data)

    async def update(
        self, table: str, filters: Params, values: Row, select: Optional[str] = None
    ) -> List[Row]:
        params = dict(filters)
        if select:
            params["select"] = select
        data = await self.request(
            "PATCH", table, params=params, body=values, prefer="return=representation"
        )
        return as_rows(data)
