"""Parcel enrichment pipelines: suitability scores and planning summaries.

Both follow the same path:
  context → prompt → structured completion → validation → upsert → result

Model output is untrusted. A response that is not a JSON object fails the
request with SchemaError and nothing is stored; field-level noise is
clamped or defaulted and never reaches the caller as an error.

Store writes are best-effort by default: the validated result is returned
even when the write fails, since stored enrichment is a derived artifact.
"""

import logging

from landhunt.core.errors import ValidationError
from landhunt.core.types import PersistencePolicy, PlanningSummary, Prompt, ScoreResult
from landhunt.observability.prompts import log_prompt_to_run
from landhunt.observability.tracing import set_tag, start_span, trace
from landhunt.pipeline.context import load_parcel_context, resolve_source_text
from landhunt.pipeline.prompting import build_scoring_prompt, build_summary_prompt
from landhunt.pipeline.validate import normalize_scores, normalize_summary, parse_model_json
from landhunt.services import Services

logger = logging.getLogger(__name__)


async def complete_prompt(services: Services, prompt: Prompt, json_mode: bool = False) -> str:
    """Send a rendered prompt to the completion client."""
    log_prompt_to_run(prompt.name)
    return await services.llm.complete(
        system_prompt=prompt.system,
        user_prompt=prompt.user,
        temperature=prompt.temperature,
        json_mode=json_mode,
    )


@trace(name="score_parcel", span_type="CHAIN")
async def score_parcel(
    services: Services,
    parcel_id: str,
    persistence: PersistencePolicy = PersistencePolicy.BEST_EFFORT,
) -> ScoreResult:
    """Score a parcel's development suitability and store the scores.

    Raises:
        ValidationError: parcel_id missing.
        NotFoundError: no such parcel.
        UpstreamModelError: the model call failed or returned nothing.
        SchemaError: the model output was not a JSON object.
    """
    if not parcel_id:
        raise ValidationError("parcelId is required")

    context = await load_parcel_context(services.store, parcel_id)
    prompt = build_scoring_prompt(context)

    raw = await complete_prompt(services, prompt, json_mode=True)

    with start_span(name="validate_scores", span_type="PARSER") as span:
        scores = normalize_scores(parse_model_json(raw))
        span.set_outputs({"recommended_use": scores.recommended_use})

    stored = await services.store.upsert_scores(context.parcel.id, scores, policy=persistence)
    set_tag("scores_stored", str(stored))

    logger.info(
        "Scored parcel (development_potential=%.0f, recommended_use=%s, stored=%s)",
        scores.development_potential, scores.recommended_use, stored,
        extra={"parcel_id": context.parcel.id, "step": "score_parcel"},
    )
    return ScoreResult(parcel_id=context.parcel.id, scores=scores)


@trace(name="summarize_planning", span_type="CHAIN")
async def summarize_planning(
    services: Services,
    url: str | None = None,
    raw_text: str | None = None,
    parcel_id: str | None = None,
    persistence: PersistencePolicy = PersistencePolicy.BEST_EFFORT,
) -> PlanningSummary:
    """Summarise a planning application/decision and store the summary.

    The summary is stored under parcel_id when given, else under the
    source URL. Raw text with no parcel has no key and is not stored.

    Raises:
        ValidationError: neither url nor raw_text, or no text obtained.
        UpstreamFetchError: the URL could not be fetched (RateLimitedError on 429).
        UpstreamModelError: the model call failed or returned nothing.
        SchemaError: the model output was not a JSON object. Nothing is stored.
    """
    if not url and not raw_text:
        raise ValidationError("Either url or rawText is required")

    source_text = await resolve_source_text(services.http, url=url, raw_text=raw_text)
    prompt = build_summary_prompt(source_text, services.settings.summary_source_max_chars)

    raw = await complete_prompt(services, prompt, json_mode=True)

    with start_span(name="validate_summary", span_type="PARSER") as span:
        summary = normalize_summary(parse_model_json(raw))
        span.set_outputs({"decision": summary.decision})

    if parcel_id or url:
        stored = await services.store.upsert_planning_summary(
            summary,
            parcel_id=parcel_id,
            source_url=None if parcel_id else url,
            origin_url=url,
            policy=persistence,
        )
        set_tag("summary_stored", str(stored))
    else:
        logger.info("Planning summary from raw text has no parcel or URL key; not stored")

    logger.info(
        "Summarised planning text (decision=%s, %d chars in)",
        summary.decision, len(source_text),
        extra={"parcel_id": parcel_id, "source_url": url, "step": "summarize_planning"},
    )
    return summary
