"""API route handlers for landhunt.

POST /api/v1/ai/score-parcel       — AI suitability scores for a parcel
POST /api/v1/ai/planning-summary   — structured summary of a planning decision
POST /api/v1/passports/generate    — Digital Site Passport PDF
POST /api/v1/planning/search       — PlanIt applications in a bbox / polygon

Pipeline errors (LandhuntError) propagate to the app-level handler in
landhunt.api.main, which renders them with their own status code.
"""

import asyncio
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from landhunt.api.schemas import (
    BBoxBody,
    ErrorResponse,
    PassportRequest,
    PassportResponse,
    PlanningSearchRequest,
    PlanningSummaryRequest,
    PlanningSummaryResponse,
    ScoreParcelRequest,
    ScoreParcelResponse,
    ScoresResponse,
)
from landhunt.core.errors import RateLimitedError, ValidationError
from landhunt.pipeline.enrichment import score_parcel, summarize_planning
from landhunt.pipeline.passport import generate_passport
from landhunt.retrieval.planning import BBox, bbox_from_polygon, search_applications
from landhunt.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["enrichment"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid input"},
    404: {"model": ErrorResponse, "description": "Parcel not found"},
    500: {"model": ErrorResponse, "description": "Invalid model output or storage failure"},
    502: {"model": ErrorResponse, "description": "Upstream fetch or model failure"},
    504: {"model": ErrorResponse, "description": "Pipeline timeout"},
}


def get_services(request: Request) -> Services:
    """The process-wide service container built in the app lifespan."""
    return request.app.state.services


async def _bounded(services: Services, coro):
    """Await a pipeline call under the configured wall-clock budget."""
    timeout = services.settings.pipeline_timeout_s
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail=f"Pipeline timed out after {timeout:g}s")


@router.post("/ai/score-parcel", response_model=ScoreParcelResponse, responses=_ERROR_RESPONSES)
async def score_parcel_route(
    body: ScoreParcelRequest,
    services: Services = Depends(get_services),
):
    """Score a parcel's development suitability and store the scores."""
    result = await _bounded(services, score_parcel(services, body.parcel_id))
    return ScoreParcelResponse(
        parcel_id=result.parcel_id,
        scores=ScoresResponse(**asdict(result.scores)),
    )


@router.post(
    "/ai/planning-summary", response_model=PlanningSummaryResponse, responses=_ERROR_RESPONSES,
)
async def planning_summary_route(
    body: PlanningSummaryRequest,
    services: Services = Depends(get_services),
):
    """Summarise a planning application/decision from a URL or raw text."""
    summary = await _bounded(
        services,
        summarize_planning(
            services, url=body.url, raw_text=body.raw_text, parcel_id=body.parcel_id,
        ),
    )
    return PlanningSummaryResponse(**asdict(summary))


@router.post("/passports/generate", response_model=PassportResponse, responses=_ERROR_RESPONSES)
async def generate_passport_route(
    body: PassportRequest,
    services: Services = Depends(get_services),
):
    """Generate, upload and log a Digital Site Passport PDF."""
    result = await _bounded(services, generate_passport(services, body.parcel_id))
    return PassportResponse(parcel_id=result.parcel_id, url=result.url)


def _search_area(body: PlanningSearchRequest) -> BBox:
    if body.type == "bbox":
        if not body.bbox:
            raise ValidationError("bbox is required for type 'bbox'")
        if isinstance(body.bbox, BBoxBody):
            return BBox(body.bbox.min_lon, body.bbox.min_lat, body.bbox.max_lon, body.bbox.max_lat)
        return BBox(*body.bbox)
    if body.geometry is None:
        raise ValidationError("geometry is required for type 'polygon'")
    try:
        return bbox_from_polygon(body.geometry.coordinates)
    except ValueError as e:
        raise ValidationError(str(e)) from e


@router.post("/planning/search", responses={**_ERROR_RESPONSES, 429: {"model": ErrorResponse}})
async def planning_search_route(
    body: PlanningSearchRequest,
    services: Services = Depends(get_services),
):
    """Planning applications inside an area, as a GeoJSON FeatureCollection."""
    area = _search_area(body)
    try:
        return await _bounded(
            services,
            search_applications(services.http, services.settings.planit_base_url, area),
        )
    except RateLimitedError as e:
        logger.warning("PlanIt rate limited the search for %s", area.to_param())
        return JSONResponse(
            status_code=429,
            content={
                "detail": "PlanIt rate limit hit, try again shortly",
                "error_type": "planit_rate_limited",
                "body": e.body,
            },
        )
