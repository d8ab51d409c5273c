"""Domain types for the landhunt parcel enrichment pipeline.

All shared dataclasses live here to prevent circular imports and keep one
source of truth for the domain model. Every other module imports from here.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


# ---------------------------------------------------------------------------
# Parcel catalog (read-only to this package)
# ---------------------------------------------------------------------------

@dataclass
class Parcel:
    """A land parcel as stored by the external parcel catalog.

    Optional attributes are None when the catalog has no value.
    ``constraints`` and ``ppd_snapshot`` are opaque JSON blobs.
    """

    id: str
    address: str | None = None
    area_sq_m: float | None = None
    use_class: str | None = None
    local_plan_designation: str | None = None
    flood_zone: str | None = None
    constraints: Any = None
    ppd_snapshot: Any = None


# ---------------------------------------------------------------------------
# AI suitability scores
# ---------------------------------------------------------------------------

SCORE_FIELDS: tuple[str, ...] = (
    "development_potential",
    "planning_probability",
    "access_quality",
    "constraint_severity",
    "marketability",
    "density_potential",
)


@dataclass
class ParcelScores:
    """Normalized suitability scores. Numeric fields are always in [0, 100]."""

    development_potential: float = 0.0
    planning_probability: float = 0.0
    access_quality: float = 0.0
    constraint_severity: float = 0.0    # higher = more severe
    marketability: float = 0.0
    density_potential: float = 0.0
    recommended_use: str = "unspecified"
    rationale: str = ""


@dataclass
class ScoreRecord:
    """One live score record per parcel."""

    parcel_id: str
    scores: ParcelScores
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Planning-decision summaries
# ---------------------------------------------------------------------------

DECISIONS: tuple[str, ...] = ("approved", "refused", "pending", "unknown")


@dataclass
class PlanningSummary:
    """Normalized planning-decision summary.

    List fields are never None; approval_probability is None or in [0, 1].
    """

    decision: str = "unknown"
    summary: str = ""
    policies: list[Any] = field(default_factory=list)
    material_issues: list[Any] = field(default_factory=list)
    risks: list[Any] = field(default_factory=list)
    approval_probability: float | None = None


@dataclass
class PlanningSummaryRecord:
    """A stored summary keyed by exactly one of parcel_id or source_url."""

    summary: PlanningSummary
    parcel_id: str | None = None
    source_url: str | None = None
    origin_url: str | None = None   # where the text came from, when keyed by parcel
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Passport documents
# ---------------------------------------------------------------------------

@dataclass
class PassportDocument:
    """Append-only log entry for a synthesized passport."""

    parcel_id: str
    file_path: str
    url: str
    created_at: datetime | None = None


@dataclass
class StoredObject:
    """Result of a blob upload."""

    path: str
    url: str


# ---------------------------------------------------------------------------
# Pipeline values
# ---------------------------------------------------------------------------

class PersistencePolicy(enum.Enum):
    """What a store write does when the database rejects it.

    BEST_EFFORT logs and carries on: stored enrichment is a cacheable
    artifact, the caller still gets the computed result.
    REQUIRED raises PersistenceError.
    """

    BEST_EFFORT = "best_effort"
    REQUIRED = "required"


@dataclass
class Prompt:
    """A rendered system + user prompt pair for one structured completion."""

    name: str
    system: str
    user: str
    temperature: float


@dataclass
class ParcelContext:
    """Everything known about a parcel before prompting."""

    parcel: Parcel
    scores: ScoreRecord | None = None
    planning: PlanningSummaryRecord | None = None


@dataclass
class ScoreResult:
    parcel_id: str
    scores: ParcelScores


@dataclass
class PassportResult:
    parcel_id: str
    url: str


# ---------------------------------------------------------------------------
# Document layout
# ---------------------------------------------------------------------------

@dataclass
class Section:
    """A document section: a heading plus zero or more paragraphs."""

    heading: str
    paragraphs: list[str] = field(default_factory=list)
    kind: str = "section"   # "title" for the title block
