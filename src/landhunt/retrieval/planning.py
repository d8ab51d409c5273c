"""PlanIt planning-application search.

Queries the PlanIt GeoJSON API for planning applications inside a bounding
box (or a polygon's bounding box). PlanIt rate-limits aggressively; a 429
is passed through as RateLimitedError rather than masked as a generic
upstream failure.
"""

import logging
from dataclasses import dataclass
from datetime import date

import httpx

from landhunt.core.errors import UpstreamFetchError
from landhunt.observability.tracing import trace
from landhunt.retrieval.fetch import ERROR_BODY_LIMIT, raise_for_upstream

logger = logging.getLogger(__name__)

PLANIT_GEOJSON_PATH = "/api/applics/geojson"
PLANIT_START_DATE = "2000-02-01"
PLANIT_PAGE_SIZE = 200


@dataclass
class BBox:
    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    def to_param(self) -> str:
        return f"{self.min_lon},{self.min_lat},{self.max_lon},{self.max_lat}"


def bbox_from_polygon(coordinates: list[list[list[float]]]) -> BBox:
    """Bounding box of a GeoJSON polygon's rings ([lon, lat] pairs)."""
    lons = [pt[0] for ring in coordinates for pt in ring]
    lats = [pt[1] for ring in coordinates for pt in ring]
    if not lons:
        raise ValueError("polygon has no coordinates")
    return BBox(min(lons), min(lats), max(lons), max(lats))


@trace(name="search_planning_applications", span_type="TOOL")
async def search_applications(
    client: httpx.AsyncClient,
    base_url: str,
    bbox: BBox,
    today: date | None = None,
) -> dict:
    """Fetch planning applications in a bbox as a GeoJSON FeatureCollection.

    Raises:
        RateLimitedError: PlanIt answered 429.
        UpstreamFetchError: any other non-2xx status, or a body that is not
            a JSON object.
    """
    end_date = (today or date.today()).isoformat()
    params = {
        "bbox": bbox.to_param(),
        "start_date": PLANIT_START_DATE,
        "end_date": end_date,
        "pg_sz": str(PLANIT_PAGE_SIZE),
        "compress": "on",
    }
    url = f"{base_url.rstrip('/')}{PLANIT_GEOJSON_PATH}"
    logger.info("Fetching PlanIt applications for bbox %s", params["bbox"])

    try:
        resp = await client.get(url, params=params)
    except httpx.HTTPError as e:
        logger.error("PlanIt request failed: %s", e)
        raise UpstreamFetchError(f"PlanIt unreachable: {e}") from e
    raise_for_upstream(resp, "PlanIt")

    try:
        geojson = resp.json()
    except ValueError as e:
        body = resp.text[:ERROR_BODY_LIMIT]
        logger.error("PlanIt returned invalid JSON: %s", body)
        raise UpstreamFetchError(
            "PlanIt returned invalid JSON", status=resp.status_code, body=body,
        ) from e
    if not isinstance(geojson, dict):
        raise UpstreamFetchError(
            "PlanIt returned a non-object payload", status=resp.status_code,
            body=resp.text[:ERROR_BODY_LIMIT],
        )

    features = geojson.get("features")
    logger.info(
        "PlanIt returned %s features",
        len(features) if isinstance(features, list) else "no",
    )
    return geojson
