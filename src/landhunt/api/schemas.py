"""Pydantic request/response models for the landhunt API.

These are the API contract, decoupled from the internal domain dataclasses.
Request bodies keep the camelCase keys the web client already sends
(parcelId, rawText); snake_case is accepted too.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ScoreParcelRequest(BaseModel):
    """Request body for POST /api/v1/ai/score-parcel."""

    model_config = ConfigDict(populate_by_name=True)

    parcel_id: str = Field(..., alias="parcelId", min_length=1, examples=["parcel-123"])


class PlanningSummaryRequest(BaseModel):
    """Request body for POST /api/v1/ai/planning-summary.

    At least one of url / rawText is required; rawText wins when both are given.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str | None = None
    raw_text: str | None = Field(None, alias="rawText")
    parcel_id: str | None = Field(None, alias="parcelId")


class PassportRequest(BaseModel):
    """Request body for POST /api/v1/passports/generate."""

    model_config = ConfigDict(populate_by_name=True)

    parcel_id: str = Field(..., alias="parcelId", min_length=1)


class PolygonGeometry(BaseModel):
    type: Literal["Polygon"] = "Polygon"
    coordinates: list[list[list[float]]]


class BBoxBody(BaseModel):
    """Bounding box in the object shape the web client sends."""

    model_config = ConfigDict(populate_by_name=True)

    min_lon: float = Field(..., alias="minLon")
    min_lat: float = Field(..., alias="minLat")
    max_lon: float = Field(..., alias="maxLon")
    max_lat: float = Field(..., alias="maxLat")


class PlanningSearchRequest(BaseModel):
    """Request body for POST /api/v1/planning/search.

    Either a bbox, as {minLon, minLat, maxLon, maxLat} or the list
    [minLon, minLat, maxLon, maxLat], or a GeoJSON polygon.
    """

    type: Literal["bbox", "polygon"]
    bbox: BBoxBody | Annotated[list[float], Field(min_length=4, max_length=4)] | None = None
    geometry: PolygonGeometry | None = None


class ScoresResponse(BaseModel):
    development_potential: float
    planning_probability: float
    access_quality: float
    constraint_severity: float
    marketability: float
    density_potential: float
    recommended_use: str
    rationale: str = ""


class ScoreParcelResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    parcel_id: str = Field(..., alias="parcelId")
    scores: ScoresResponse


class PlanningSummaryResponse(BaseModel):
    decision: str = "unknown"
    summary: str = ""
    policies: list[Any] = []
    material_issues: list[Any] = []
    risks: list[Any] = []
    approval_probability: float | None = None


class PassportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    parcel_id: str = Field(..., alias="parcelId")
    url: str


class ErrorResponse(BaseModel):
    detail: str
    error_type: str = ""
