"""Digital Site Passport synthesis.

Composes parcel facts, stored scores, the stored planning summary and a
freshly generated feasibility narrative into a PDF, uploads it, and logs
the upload in parcel_passports.

Failure handling differs per step:
  - narrative generation is best-effort: on failure the section is left out
  - the upload is fatal: without it there is no URL to return
  - the passport log row is best-effort: the document already exists
"""

import logging
import time

from landhunt.core.errors import UpstreamModelError, ValidationError
from landhunt.core.types import (
    Parcel,
    ParcelContext,
    PassportResult,
    PlanningSummaryRecord,
    ScoreRecord,
    Section,
)
from landhunt.observability.tracing import set_tag, start_span, trace
from landhunt.pipeline.context import load_parcel_context
from landhunt.pipeline.enrichment import complete_prompt
from landhunt.pipeline.layout import layout_sections, render_pdf
from landhunt.pipeline.prompting import build_narrative_prompt
from landhunt.services import Services

logger = logging.getLogger(__name__)

TITLE = "Landhunt – Digital Site Passport"
PLACEHOLDER_HEADING = "Additional Layers (beta)"
PLACEHOLDER_TEXT = (
    "Topography, detailed constraints, comparables and site photography can be "
    "added here as you connect more data sources."
)
PDF_CONTENT_TYPE = "application/pdf"


def _fmt_score(value) -> str:
    return f"{value:g}" if isinstance(value, (int, float)) else "–"


def parcel_fact_lines(parcel: Parcel) -> list[str]:
    """One line per known fact; absent facts are left out."""
    lines = []
    if parcel.address:
        lines.append(f"Address: {parcel.address}")
    if parcel.area_sq_m is not None:
        lines.append(f"Area: {parcel.area_sq_m:.0f} m²")
    if parcel.use_class:
        lines.append(f"Use class: {parcel.use_class}")
    if parcel.local_plan_designation:
        lines.append(f"Local plan designation: {parcel.local_plan_designation}")
    if parcel.flood_zone:
        lines.append(f"Flood zone: {parcel.flood_zone}")
    return lines


def score_lines(record: ScoreRecord) -> list[str]:
    s = record.scores
    lines = [
        f"Development potential: {_fmt_score(s.development_potential)} / 100",
        f"Planning probability: {_fmt_score(s.planning_probability)} / 100",
        f"Access quality: {_fmt_score(s.access_quality)} / 100",
        f"Constraint severity: {_fmt_score(s.constraint_severity)} / 100",
        f"Marketability: {_fmt_score(s.marketability)} / 100",
        f"Density potential: {_fmt_score(s.density_potential)} / 100",
        f"Recommended use: {s.recommended_use or '–'}",
    ]
    if s.rationale:
        lines.append(f"Rationale: {s.rationale}")
    return lines


def planning_lines(record: PlanningSummaryRecord) -> list[str]:
    p = record.summary
    lines = []
    if p.decision:
        lines.append(f"Decision: {p.decision}")
    if isinstance(p.approval_probability, (int, float)):
        lines.append(f"Estimated approval probability: {round(p.approval_probability * 100)}%")
    if p.summary:
        lines.append(f"Summary: {p.summary}")
    if p.risks:
        lines.append(f"Key risks: {', '.join(str(r) for r in p.risks)}")
    return lines


def build_sections(context: ParcelContext, narrative: str = "") -> list[Section]:
    """Assemble passport sections in their fixed order.

    Scores, planning and narrative sections appear only when there is
    something to show. Headings are numbered over the sections present.
    """
    parcel = context.parcel
    body: list[tuple[str, list[str]]] = [("Parcel Summary", parcel_fact_lines(parcel))]
    if context.scores is not None:
        body.append(("AI Suitability Scores", score_lines(context.scores)))
    if context.planning is not None:
        body.append(("Planning Summary", planning_lines(context.planning)))
    if narrative.strip():
        body.append(("AI Feasibility Commentary", [narrative.strip()]))
    body.append((PLACEHOLDER_HEADING, [PLACEHOLDER_TEXT]))

    sections = [
        Section(heading=TITLE, paragraphs=[parcel.address or f"Parcel ID: {parcel.id}"], kind="title"),
    ]
    for number, (heading, paragraphs) in enumerate(body, 1):
        sections.append(Section(heading=f"{number}. {heading}", paragraphs=paragraphs))
    return sections


async def generate_narrative(services: Services, context: ParcelContext) -> str:
    """Best-effort feasibility narrative; returns "" when generation fails."""
    try:
        return await complete_prompt(services, build_narrative_prompt(context))
    except UpstreamModelError as e:
        logger.warning(
            "AI narrative failed, continuing without it: %s", e,
            extra={"parcel_id": context.parcel.id, "step": "narrative"},
        )
        return ""


def passport_key(parcel_id: str, timestamp_ms: int | None = None) -> str:
    ts = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"site-passports/{parcel_id}/{ts}.pdf"


@trace(name="generate_passport", span_type="CHAIN")
async def generate_passport(services: Services, parcel_id: str) -> PassportResult:
    """Build, upload and record a site passport for one parcel.

    Raises:
        ValidationError: parcel_id missing.
        NotFoundError: no such parcel.
        StorageError: the upload failed.
    """
    if not parcel_id:
        raise ValidationError("parcelId is required")

    context = await load_parcel_context(services.store, parcel_id)
    narrative = await generate_narrative(services, context)

    with start_span(name="render_passport", span_type="UNKNOWN") as span:
        sections = build_sections(context, narrative)
        layout = layout_sections(sections)
        pdf_bytes = render_pdf(layout)
        span.set_outputs({
            "sections": [s.heading for s in sections],
            "pages": layout.page_count,
            "bytes": len(pdf_bytes),
        })

    stored = await services.blob.upload(
        passport_key(context.parcel.id), pdf_bytes, PDF_CONTENT_TYPE,
    )
    recorded = await services.store.append_passport(context.parcel.id, stored.path, stored.url)
    set_tag("passport_recorded", str(recorded))

    logger.info(
        "Generated passport (%d pages, narrative=%s)",
        layout.page_count, bool(narrative),
        extra={"parcel_id": context.parcel.id, "step": "generate_passport"},
    )
    return PassportResult(parcel_id=context.parcel.id, url=stored.url)
