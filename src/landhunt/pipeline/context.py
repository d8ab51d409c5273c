"""Context assembly: the facts a prompt is built from.

Planning summaries take their source text either verbatim or from a URL.
Scoring and passports start from the parcel record plus any enrichment
already stored for it.
"""

import asyncio
import logging
from dataclasses import asdict

import httpx

from landhunt.core.errors import NotFoundError, ValidationError
from landhunt.core.types import Parcel, ParcelContext
from landhunt.ingestion.extract import html_to_text
from landhunt.retrieval.fetch import fetch_page
from landhunt.storage.repository import EnrichmentStore

logger = logging.getLogger(__name__)


async def resolve_source_text(
    client: httpx.AsyncClient,
    url: str | None = None,
    raw_text: str | None = None,
) -> str:
    """Return the planning text to summarise.

    Non-empty raw_text always wins and is used verbatim; the URL is then
    neither fetched nor run through the extractor.

    Raises:
        UpstreamFetchError: the URL fetch failed.
        ValidationError: no text could be obtained.
    """
    if raw_text:
        return raw_text

    text = ""
    if url:
        html = await fetch_page(client, url)
        text = html_to_text(html)
        logger.info("Extracted %d chars from %s", len(text), url, extra={"source_url": url})

    if not text:
        raise ValidationError("no text available")
    return text


def parcel_facts(parcel: Parcel) -> dict:
    """Parcel attributes as a dict, with absent (None) attributes left out."""
    return {key: value for key, value in asdict(parcel).items() if value is not None}


def context_payload(context: ParcelContext) -> dict:
    """Parcel facts plus whatever enrichment already exists."""
    payload: dict = {"parcel": parcel_facts(context.parcel)}
    if context.scores is not None:
        payload["existing_scores"] = asdict(context.scores.scores)
    if context.planning is not None:
        payload["planning_summary"] = asdict(context.planning.summary)
    return payload


async def load_parcel_context(
    store: EnrichmentStore,
    parcel_id: str,
    include_enrichment: bool = True,
) -> ParcelContext:
    """Load a parcel and, concurrently, its stored scores and planning summary.

    Raises:
        NotFoundError: no parcel with this id.
        PersistenceError: a read failed, raised once every read has settled.
    """
    if include_enrichment:
        results = await asyncio.gather(
            store.get_parcel(parcel_id),
            store.get_scores(parcel_id),
            store.get_planning_summary(parcel_id=parcel_id),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                raise result
        parcel, scores, planning = results
    else:
        parcel, scores, planning = await store.get_parcel(parcel_id), None, None

    if parcel is None:
        raise NotFoundError("Parcel not found")

    logger.info(
        "Loaded parcel context (scores=%s, planning=%s)",
        scores is not None, planning is not None,
        extra={"parcel_id": parcel_id},
    )
    return ParcelContext(parcel=parcel, scores=scores, planning=planning)
