"""
Route Map Backend: Camp Service
================================

What:  Search and upsert of camp delivery locations (table `camps`).
Who:   Called by routes/camps.py. The same table feeds CampResolver.

Search:
    With `q`: candidates whose camp, mb_camp or address contains q
    (case-insensitive), ranked exact > prefix > substring.
    Without `q`: a plain listing ordered by camp, mb_camp.
    `camp` / `mb_camp` parameters are exact filters in both cases.
"""

import logging
from typing import List, Optional

from routemap.config import settings
from routemap.exceptions import ValidationError
from routemap.schemas.directory import CampUpsertRequest
from routemap.services.normalizer import clean_str
from routemap.services.resolver import CAMP_COLUMNS
from routemap.services.search import clamp_limit, ilike_any, rank_rows
from routemap.services.store_client import Row, StoreClient

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = ("camp", "mb_camp", "address")


class CampService:

    def __init__(self, table: Optional[str] = None):
        self.table = table or settings.camp_table

    async def search_camps(
        self,
        store: StoreClient,
        q: Optional[str] = None,
        camp: Optional[str] = None,
        mb_camp: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        q = clean_str(q)
        camp = clean_str(camp)
        mb_camp = clean_str(mb_camp)
        limit = clamp_limit(limit)

        params = {"select": CAMP_COLUMNS, "order": "camp.asc,mb_camp.asc"}
        if camp:
            params["camp"] = f"eq.{camp}"
        if mb_camp:
            params["mb_camp"] = f"eq.{mb_camp}"

        if not q:
            params["limit"] = str(limit)
            return await store.select(self.table, params)

        params["or"] = ilike_any((column, q) for column in SEARCH_COLUMNS)
        # Fetch past the limit so ranking can promote exact matches
        params["limit"] = str(settings.search_max_limit * 2)
        candidates = await store.select(self.table, params)
        rows = rank_rows(candidates, q, SEARCH_COLUMNS, limit, composite_key=("camp", "mb_camp"))
        logger.info("Camp search q=%r: %d candidates, %d returned", q, len(candidates), len(rows))
        return rows

    async def upsert_camp(self, store: StoreClient, body: CampUpsertRequest) -> Row:
        """
        Insert or update the location named (camp, mb_camp).

        latitude/longitude are written only when the body carries them.
        """
        for field in ("camp", "mb_camp", "address"):
            if not getattr(body, field):
                raise ValidationError.required(field)

        values = {"camp": body.camp, "mb_camp": body.mb_camp, "address": body.address}
        for field in ("latitude", "longitude"):
            if field in body.model_fields_set:
                values[field] = getattr(body, field)

        existing = await store.select(
            self.table,
            {"select": "id", "camp": f"eq.{body.camp}", "mb_camp": f"eq.{body.mb_camp}"},
        )
        if existing:
            rows = await store.update(
                self.table, {"id": f"eq.{existing[0].get('id')}"}, values, select=CAMP_COLUMNS
            )
            logger.info("Updated camp location %s/%s", body.camp, body.mb_camp)
        else:
            rows = await store.insert(self.table, values, select=CAMP_COLUMNS)
            logger.info("Created camp location %s/%s", body.camp, body.mb_camp)
        return rows[0] if rows else values


camp_service = CampService()
