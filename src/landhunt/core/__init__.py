"""Core domain types and errors shared across all landhunt modules."""

from landhunt.core.errors import (
    LandhuntError,
    NotFoundError,
    PersistenceError,
    RateLimitedError,
    SchemaError,
    StorageError,
    UpstreamFetchError,
    UpstreamModelError,
    ValidationError,
)
from landhunt.core.types import (
    Parcel,
    ParcelContext,
    ParcelScores,
    PassportDocument,
    PersistencePolicy,
    PlanningSummary,
    PlanningSummaryRecord,
    ScoreRecord,
    Section,
)

__all__ = [
    "LandhuntError",
    "NotFoundError",
    "Parcel",
    "ParcelContext",
    "ParcelScores",
    "PassportDocument",
    "PersistenceError",
    "PersistencePolicy",
    "PlanningSummary",
    "PlanningSummaryRecord",
    "RateLimitedError",
    "SchemaError",
    "ScoreRecord",
    "Section",
    "StorageError",
    "UpstreamFetchError",
    "UpstreamModelError",
    "ValidationError",
]
