"""Prompt rendering for the three structured completions."""

import json

from landhunt.config import settings
from landhunt.core.types import ParcelContext, Prompt
from landhunt.observability.prompts import get_active_prompt
from landhunt.pipeline.context import context_payload

SUMMARY_TEMPERATURE = 0.2
SCORES_TEMPERATURE = 0.3
NARRATIVE_TEMPERATURE = 0.4


def truncate_source(text: str, max_chars: int | None = None) -> str:
    """Keep the head of the text, drop the tail beyond the character budget."""
    limit = settings.summary_source_max_chars if max_chars is None else max_chars
    return text[:limit]


def _dump(data) -> str:
    return json.dumps(data, indent=2, default=str, ensure_ascii=False)


def build_scoring_prompt(context: ParcelContext) -> Prompt:
    user = (
        "Here is the parcel data (JSON):\n\n"
        f"{_dump(context_payload(context))}\n\n"
        "Return the JSON object described in your instructions."
    )
    return Prompt(
        name="parcel_scores",
        system=get_active_prompt("parcel_scores"),
        user=user,
        temperature=SCORES_TEMPERATURE,
    )


def build_summary_prompt(source_text: str, max_chars: int | None = None) -> Prompt:
    user = (
        "Here is the planning text:\n\n"
        f"{truncate_source(source_text, max_chars)}\n"
        "(Truncated if very long)"
    )
    return Prompt(
        name="planning_summary",
        system=get_active_prompt("planning_summary"),
        user=user,
        temperature=SUMMARY_TEMPERATURE,
    )


def build_narrative_prompt(context: ParcelContext) -> Prompt:
    payload = context_payload(context)
    scores = payload.get("existing_scores")
    planning = payload.get("planning_summary")
    parts = [f"Parcel data:\n{_dump(payload['parcel'])}"]
    parts.append(f"AI scores:\n{_dump(scores) if scores else 'none available'}")
    parts.append(f"Planning summary:\n{_dump(planning) if planning else 'none available'}")
    return Prompt(
        name="passport_narrative",
        system=get_active_prompt("passport_narrative"),
        user="\n\n".join(parts),
        temperature=NARRATIVE_TEMPERATURE,
    )
