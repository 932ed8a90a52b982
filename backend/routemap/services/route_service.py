"""
Route Map Backend: Route Service
=================================

What:  Read and write operations on route records (table `subsubroutes`).
How:   Builds PostgREST queries, calls the store, then runs every resulting
       row through the enrichment pipeline so GET, POST and DELETE answer
       with the same row shape.
Who:   Called by routes/routes.py.

Operations:
    list_routes   GET    camp required; optional code + mode (exact|prefix)
    save_route    POST   create-or-update by id, else by (camp, full_code)
    delete_route  DELETE soft delete: polygon_wgs84 set to null, row kept

Prefix matching is a plain string prefix on full_code: `126` matches
`126`, `126A` and also `1260`. Codes are not tokenized.
"""

import logging
from typing import List, Optional

from routemap.config import settings
from routemap.exceptions import NotFoundError, ValidationError
from routemap.schemas.route import RouteDeleteRequest, RouteUpsertRequest
from routemap.services.enrichment import RouteEnricher, route_enricher
from routemap.services.normalizer import clean_str
from routemap.services.store_client import Row, StoreClient, like_prefix

logger = logging.getLogger(__name__)

ROUTE_COLUMNS = ",".join([
    "id",
    "camp",
    "code",
    "full_code",
    "polygon_wgs84",
    "center_wgs84",
    "vendor_business_number_1w",
    "vendor_business_number_2w",
    "delivery_location_name",
    "delivery_location_address",
    "delivery_location_lat",
    "delivery_location_lng",
    "created_at",
    "updated_at",
])

MATCH_MODES = ("exact", "prefix")


class RouteService:
    """Stateless; receives the store client on every call."""

    def __init__(self, enricher: Optional[RouteEnricher] = None, table: Optional[str] = None):
        self.enricher = enricher or route_enricher
        self.table = table or settings.route_table

    async def list_routes(
        self,
        store: StoreClient,
        camp: Optional[str],
        code: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> List[Row]:
        """
        Routes of one camp ordered by full_code, optionally filtered by code.

        Raises:
            ValidationError: camp missing
            UpstreamError:   store failure (primary data, not degraded)
        """
        camp = clean_str(camp)
        code = clean_str(code)
        mode = (clean_str(mode) or "prefix").lower()
        if not camp:
            raise ValidationError.required("camp")
        if mode not in MATCH_MODES:
            logger.debug("Unknown match mode %r, using prefix", mode)
            mode = "prefix"

        params = {
            "select": ROUTE_COLUMNS,
            "camp": f"eq.{camp}",
            "order": "full_code.asc",
        }
        if code:
            params["full_code"] = f"eq.{code}" if mode == "exact" else like_prefix(code)

        rows = await store.select(self.table, params)
        logger.info("Listed %d routes for camp=%s code=%s mode=%s", len(rows), camp, code, mode)
        return await self.enricher.enrich(store, rows)

    async def save_route(self, store: StoreClient, body: RouteUpsertRequest) -> Row:
        """
        Create-or-update a route with partial patch semantics.

        Flow:
            1. id given           → PATCH id=eq.<id>
            2. (camp, code) found → PATCH that id
            3. otherwise          → POST a new row

        Raises:
            ValidationError: camp or code missing
            NotFoundError:   PATCH by id matched no row
        """
        if not body.camp:
            raise ValidationError.required("camp")
        if not body.code:
            raise ValidationError.required("code")

        values = body.patch_values()

        if body.id is not None:
            row = await self._update_one(store, {"id": f"eq.{body.id}"}, values, str(body.id))
            logger.info("Updated route id=%s (%s/%s)", body.id, body.camp, body.code)
            return await self.enricher.enrich_one(store, row)

        existing = await store.select(
            self.table,
            {"select": "id", "camp": f"eq.{body.camp}", "full_code": f"eq.{body.code}"},
        )
        if existing:
            existing_id = existing[0].get("id")
            row = await self._update_one(
                store, {"id": f"eq.{existing_id}"}, values, f"{body.camp}/{body.code}"
            )
            logger.info("Updated route %s/%s (id=%s)", body.camp, body.code, existing_id)
        else:
            inserted = await store.insert(self.table, values, select=ROUTE_COLUMNS)
            if not inserted:
                # return=representation should always echo the row
                raise NotFoundError(resource="route", resource_id=f"{body.camp}/{body.code}")
            row = inserted[0]
            logger.info("Created route %s/%s (id=%s)", body.camp, body.code, row.get("id"))

        return await self.enricher.enrich_one(store, row)

    async def delete_route(self, store: StoreClient, body: RouteDeleteRequest) -> Row:
        """
        Soft delete: clear the drawn polygon, keep the route metadata.

        Raises:
            ValidationError: neither id nor (camp + code) given
            NotFoundError:   no matching route
        """
        if body.id is not None:
            filters = {"id": f"eq.{body.id}"}
            label = str(body.id)
        elif body.camp and body.code:
            filters = {"camp": f"eq.{body.camp}", "full_code": f"eq.{body.code}"}
            label = f"{body.camp}/{body.code}"
        else:
            raise ValidationError(message="id OR (camp + code) is required", field="id")

        row = await self._update_one(store, filters, {"polygon_wgs84": None}, label)
        logger.info("Cleared polygon of route %s", label)
        return await self.enricher.enrich_one(store, row)

    async def _update_one(self, store: StoreClient, filters, values, label: str) -> Row:
        updated = await store.update(self.table, filters, values, select=ROUTE_COLUMNS)
        if not updated:
            raise NotFoundError(resource="route", resource_id=label)
        return updated[0]


route_service = RouteService()
