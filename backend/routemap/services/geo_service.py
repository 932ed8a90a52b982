"""
Route Map Backend: Geography Proxies
=====================================

What:  Pass-through calls to the two geographic services the map uses:

    OsmService      Overpass API → roads and buildings inside a bbox
    ZipcodeService  juso.go.kr postal boundary API → zipcode polygon

How:   Request, reshape, respond. Nothing is cached. Failures are raised as
       ExternalServiceError with the status the failure mode calls for:

    ┌──────────────────────────────────────┬────────┐
    │ transport error / upstream non-2xx   │  502   │
    │ invalid JSON from Overpass           │  502   │
    │ boundary payload breaks the schema   │  500   │
    │ boundary result set empty            │  404   │
    └──────────────────────────────────────┴────────┘
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from routemap.config import settings
from routemap.exceptions import ExternalServiceError, ValidationError
from routemap.services.normalizer import clean_str

logger = logging.getLogger(__name__)

BBOX_HINT = "bbox is required: minLng,minLat,maxLng,maxLat"

# Korean national postal boundaries are published in EPSG:5179 (UTM-K)
ZIPCODE_SRID = 5179


def parse_bbox(value: Optional[str]) -> Tuple[float, float, float, float]:
    """`minLng,minLat,maxLng,maxLat` → 4 finite floats, else ValidationError."""
    parts = (value or "").strip().split(",")
    if len(parts) != 4:
        raise ValidationError(message=BBOX_HINT, field="bbox")
    try:
        numbers = [float(part) for part in parts]
    except ValueError:
        raise ValidationError(message=BBOX_HINT, field="bbox")
    if not all(math.isfinite(n) for n in numbers):
        raise ValidationError(message=BBOX_HINT, field="bbox")
    min_lng, min_lat, max_lng, max_lat = numbers
    return min_lng, min_lat, max_lng, max_lat


def overpass_query(bbox: Tuple[float, float, float, float]) -> str:
    min_lng, min_lat, max_lng, max_lat = bbox
    # Overpass order is (south, west, north, east)
    area = f"{min_lat},{min_lng},{max_lat},{max_lng}"
    return (
        "[out:json][timeout:25];\n"
        f'(\n  way["highway"]({area});\n);\nout geom;\n'
        f'(\n  way["building"]({area});\n);\nout geom;\n'
    )


def _coords(geometry: Sequence[Any]) -> List[List[float]]:
    coords = []
    for point in geometry:
        if not isinstance(point, dict):
            continue
        lat, lon = point.get("lat"), point.get("lon")
        if isinstance(lat, (int, float)) and isinstance(lon, (int, float)) \
                and not isinstance(lat, bool) and not isinstance(lon, bool):
            coords.append([lon, lat])
    return coords


def split_ways(elements: Sequence[Any]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Sort Overpass `out geom` ways into road and building layers.

    Ways with fewer than 2 usable points are dropped; buildings need 3 to
    form a ring. A way tagged both highway and building is a road.
    """
    roads: List[Dict[str, Any]] = []
    buildings: List[Dict[str, Any]] = []
    for element in elements:
        if not isinstance(element, dict) or not element.get("type"):
            continue
        geometry = element.get("geometry")
        if not isinstance(geometry, list):
            continue
        coords = _coords(geometry)
        if len(coords) < 2:
            continue
        tags = element.get("tags") or {}
        if tags.get("highway"):
            roads.append({"id": element.get("id"), "coords": coords})
        elif tags.get("building") and len(coords) >= 3:
            buildings.append({"id": element.get("id"), "coords": coords})
    return {"roads": roads, "buildings": buildings}


def ring_center(polygon: Any) -> Optional[List[float]]:
    """Mean of the finite points of the first ring of the first polygon."""
    try:
        ring = polygon[0][0]
    except (IndexError, KeyError, TypeError):
        return None
    if not isinstance(ring, list):
        return None
    xs, ys = [], []
    for point in ring:
        if not isinstance(point, (list, tuple)) or len(point) < 2:
            continue
        x, y = point[0], point[1]
        if isinstance(x, (int, float)) and isinstance(y, (int, float)) \
                and math.isfinite(x) and math.isfinite(y):
            xs.append(x)
            ys.append(y)
    if not xs:
        return None
    return [sum(xs) / len(xs), sum(ys) / len(ys)]


class OsmService:
    """Overpass proxy."""

    async def fetch_features(self, client: httpx.AsyncClient, bbox: Optional[str]) -> Dict[str, Any]:
        """
        Roads and buildings inside `bbox`.

        Raises:
            ValidationError:      bbox malformed
            ExternalServiceError: 502 on transport error, non-2xx or bad JSON
        """
        box = parse_bbox(bbox)
        try:
            response = await client.post(
                settings.overpass_url,
                data={"data": overpass_query(box)},
                headers={"User-Agent": settings.overpass_user_agent},
                timeout=settings.overpass_timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Overpass request failed: %s", e)
            raise ExternalServiceError(message=f"Overpass error: {str(e) or type(e).__name__}", status_code=502)

        if response.is_error:
            logger.warning("Overpass returned %d", response.status_code)
            raise ExternalServiceError(
                message=f"Overpass error: {response.text or response.status_code}",
                status_code=502,
                details={"status": response.status_code},
            )

        try:
            data = json.loads(response.text)
        except ValueError:
            raise ExternalServiceError(message="Overpass returned invalid JSON", status_code=502)

        elements = data.get("elements") if isinstance(data, dict) else None
        layers = split_ways(elements or [])
        logger.info(
            "Overpass bbox=%s: %d roads, %d buildings",
            bbox, len(layers["roads"]), len(layers["buildings"]),
        )
        return layers


class ZipcodeService:
    """Postal boundary proxy."""

    async def fetch_boundary(self, client: httpx.AsyncClient, zipcode: Optional[str]) -> Dict[str, Any]:
        """
        Boundary polygon (EPSG:5179) and metadata of one zipcode.

        Raises:
            ValidationError:      zipcode missing
            ExternalServiceError: 502 / 500 / 404, see module docstring
        """
        zipcode = clean_str(zipcode)
        if not zipcode:
            raise ValidationError.required("zipcode")

        try:
            response = await client.post(
                settings.zipcode_api_url,
                data={"sbdno": zipcode},
                headers={
                    "Referer": settings.zipcode_referer,
                    "Origin": settings.zipcode_origin,
                    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
                },
                timeout=settings.zipcode_timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Zipcode API request failed: %s", e)
            raise ExternalServiceError(message="Zipcode API request failed", status_code=502)

        if response.is_error:
            raise ExternalServiceError(
                message="Zipcode API request failed",
                status_code=502,
                details={"status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError:
            raise ExternalServiceError(message="Zipcode API returned invalid JSON", status_code=500)

        results = data.get("results") if isinstance(data, dict) else None
        content = results.get("content") if isinstance(results, dict) else None
        if not isinstance(content, list):
            raise ExternalServiceError(message="Unexpected zipcode API response format", status_code=500)
        if not content:
            raise ExternalServiceError(
                message="No boundary data for this zipcode",
                status_code=404,
                details={"zipcode": zipcode},
            )

        item = content[0] if isinstance(content[0], dict) else {}
        geom = item.get("geom")
        if not geom:
            raise ExternalServiceError(message="Boundary record has no geom field", status_code=500)
        if isinstance(geom, str):
            try:
                geom = json.loads(geom)
            except ValueError:
                raise ExternalServiceError(message="Boundary geom is not valid GeoJSON", status_code=500)

        if not isinstance(geom, dict) or geom.get("type") != "MultiPolygon" \
                or not isinstance(geom.get("coordinates"), list):
            geom_type = geom.get("type") if isinstance(geom, dict) else None
            raise ExternalServiceError(
                message="Unexpected geometry type",
                status_code=500,
                details={"type": geom_type},
            )

        polygon = geom["coordinates"]
        return {
            "zipcode": zipcode,
            "srid": ZIPCODE_SRID,
            "center": ring_center(polygon),
            "polygon": polygon,
            "metadata": {
                "ctprvNm": item.get("ctprvNm"),
                "sgnNm": item.get("sgnNm"),
                "sbdno": item.get("sbdno"),
                "lawneucod": item.get("lawneucod"),
            },
        }


osm_service = OsmService()
zipcode_service = ZipcodeService()
