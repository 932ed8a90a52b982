"""
Route Map Backend: Vendor Service
==================================

What:  Search and upsert of delivery vendors (table `vendors`).
Who:   Called by routes/vendors.py. The same table feeds VendorResolver.

Business numbers are written in the canonical hyphenated form
(normalizer.normalize_business_number) but matched through every variant,
so a vendor stored as `1234567890` is found and updated by
`123-45-67890` instead of being duplicated.

Vendor codes:
    New vendors get `bn_<digits>`. When that code is taken (e.g. by a
    legacy row whose number was stored differently) the first free suffix
    is appended: `bn_1234567890_2`, `bn_1234567890_3`, ...
"""

import logging
import re
from typing import List, Optional

from routemap.config import settings
from routemap.exceptions import ValidationError
from routemap.schemas.directory import VendorUpsertRequest
from routemap.services.normalizer import (
    business_number_digits,
    business_number_variants,
    clean_str,
    lookup_key,
    normalize_business_number,
)
from routemap.services.resolver import VENDOR_COLUMNS
from routemap.services.search import (
    clamp_limit,
    ilike_any,
    match_score,
    rank_rows,
)
from routemap.services.store_client import Row, StoreClient, in_filter, like_prefix

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = ("name", "business_number", "vendor_code")

_NUMERIC_QUERY = re.compile(r"^[\d\s-]+$")


def is_numeric_query(query: str) -> bool:
    return bool(_NUMERIC_QUERY.match(query)) and bool(business_number_digits(query))


def vendor_score(query: str, row: Row) -> int:
    """
    Best of the name / vendor_code text match and the business-number match.

    Numeric queries (`123-45`, `12345`) compare digits only, so hyphenation
    on either side does not matter.
    """
    score = max(match_score(query, row.get("name")), match_score(query, row.get("vendor_code")))
    if is_numeric_query(query):
        digits = business_number_digits(row.get("business_number"))
        return max(score, match_score(business_number_digits(query), digits))
    return max(score, match_score(query, row.get("business_number")))


def vendor_code_base(business_number: str) -> str:
    digits = business_number_digits(business_number)
    return f"bn_{digits}" if digits else f"bn_{lookup_key(business_number).replace(' ', '_')}"


def next_free_code(base: str, taken: List[str]) -> str:
    used = set(taken)
    if base not in used:
        return base
    suffix = 2
    while f"{base}_{suffix}" in used:
        suffix += 1
    return f"{base}_{suffix}"


class VendorService:

    def __init__(self, table: Optional[str] = None):
        self.table = table or settings.vendor_table

    async def search_vendors(
        self, store: StoreClient, q: Optional[str], limit: Optional[int] = None
    ) -> List[Row]:
        """
        Partial search on name, business number and vendor code.

        Raises:
            ValidationError: q missing
        """
        q = clean_str(q)
        if not q:
            raise ValidationError.required("q")
        limit = clamp_limit(limit)

        terms = [(column, q) for column in SEARCH_COLUMNS]
        if is_numeric_query(q) and business_number_digits(q) != q:
            # `123-45` should also find `1234567890`
            terms.append(("business_number", business_number_digits(q)))
        params = {
            "select": VENDOR_COLUMNS,
            "or": ilike_any(terms),
            "order": "name.asc",
            "limit": str(settings.search_max_limit * 2),
        }
        candidates = await store.select(self.table, params)
        rows = rank_rows(
            candidates, q, SEARCH_COLUMNS, limit,
            composite_key=("business_number",), scorer=vendor_score,
        )
        logger.info("Vendor search q=%r: %d candidates, %d returned", q, len(candidates), len(rows))
        return rows

    async def upsert_vendor(self, store: StoreClient, body: VendorUpsertRequest) -> Row:
        """
        Insert or rename the vendor with this business number.

        Raises:
            ValidationError: name or business_number missing
        """
        if not body.name:
            raise ValidationError.required("name")
        if not body.business_number:
            raise ValidationError.required("business_number")

        canonical = normalize_business_number(body.business_number)
        existing = await store.select(
            self.table,
            {
                "select": VENDOR_COLUMNS,
                "business_number": in_filter(business_number_variants(body.business_number)),
                "order": "id.asc",
            },
        )
        if existing:
            vendor_id = existing[0].get("id")
            rows = await store.update(
                self.table,
                {"id": f"eq.{vendor_id}"},
                {"name": body.name, "business_number": canonical},
                select=VENDOR_COLUMNS,
            )
            logger.info("Updated vendor %s (id=%s)", canonical, vendor_id)
            return rows[0] if rows else existing[0]

        base = vendor_code_base(canonical)
        taken = await store.select(
            self.table, {"select": "vendor_code", "vendor_code": like_prefix(base)}
        )
        code = next_free_code(base, [row.get("vendor_code") for row in taken if row.get("vendor_code")])
        values = {"business_number": canonical, "name": body.name, "vendor_code": code}
        rows = await store.insert(self.table, values, select=VENDOR_COLUMNS)
        logger.info("Created vendor %s as %s", canonical, code)
        return rows[0] if rows else values


vendor_service = VendorService()
