"""Validation of untrusted model output.

Two tiers:
  1. Structure: the text must parse as a JSON object, otherwise SchemaError
     (carrying the raw text). There is no safe default judgment to return.
  2. Fields: every field is coerced into its declared type and bounds.
     This tier never raises; noise is clamped or replaced with a fallback.
"""

import json
import logging
import math
from typing import Any

from landhunt.core.errors import SchemaError
from landhunt.core.types import DECISIONS, SCORE_FIELDS, ParcelScores, PlanningSummary

logger = logging.getLogger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def parse_model_json(raw: str) -> dict:
    """Parse completion text as a JSON object, stripping markdown fences if present.

    Raises:
        SchemaError: the text is not JSON, or its top level is not an object.
    """
    content = (raw or "").strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
    if content.endswith("```"):
        content = content[:-3]

    try:
        parsed = json.loads(content.strip())
    except json.JSONDecodeError as e:
        logger.error("Model returned invalid JSON: %s", e)
        raise SchemaError("AI returned invalid JSON", raw=raw) from e

    if not isinstance(parsed, dict):
        logger.error("Model returned JSON %s, expected an object", type(parsed).__name__)
        raise SchemaError("AI returned JSON that is not an object", raw=raw)
    return parsed


def _finite_number(value: Any) -> float | None:
    # bool is an int subclass; true/false are not scores
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def clamp_score(value: Any) -> float:
    """Clamp to [0, 100]; anything that is not a finite number becomes 0."""
    number = _finite_number(value)
    if number is None:
        return SCORE_MIN
    return max(SCORE_MIN, min(SCORE_MAX, number))


def clamp_probability(value: Any) -> float | None:
    """Clamp to [0, 1]; anything that is not a finite number becomes None."""
    number = _finite_number(value)
    if number is None:
        return None
    return max(0.0, min(1.0, number))


def coerce_str(value: Any, fallback: str) -> str:
    return value if isinstance(value, str) else fallback


def coerce_list(value: Any) -> list:
    """Lists pass through untouched (elements unchecked); anything else is []."""
    return value if isinstance(value, list) else []


def coerce_decision(value: Any) -> str:
    if not isinstance(value, str):
        return "unknown"
    decision = value.strip().lower()
    return decision if decision in DECISIONS else "unknown"


def normalize_scores(data: dict) -> ParcelScores:
    """Coerce a parsed scores object into ParcelScores. Never raises."""
    numeric = {name: clamp_score(data.get(name)) for name in SCORE_FIELDS}
    recommended_use = coerce_str(data.get("recommended_use"), "unspecified").strip()
    return ParcelScores(
        **numeric,
        recommended_use=recommended_use or "unspecified",
        rationale=coerce_str(data.get("rationale"), ""),
    )


def normalize_summary(data: dict) -> PlanningSummary:
    """Coerce a parsed planning-summary object into PlanningSummary. Never raises."""
    return PlanningSummary(
        decision=coerce_decision(data.get("decision")),
        summary=coerce_str(data.get("summary"), ""),
        policies=coerce_list(data.get("policies")),
        material_issues=coerce_list(data.get("material_issues")),
        risks=coerce_list(data.get("risks")),
        approval_probability=clamp_probability(data.get("approval_probability")),
    )
