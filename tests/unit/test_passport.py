"""Tests for Digital Site Passport synthesis."""

from unittest.mock import patch

import pytest

from landhunt.core.errors import NotFoundError, StorageError, UpstreamModelError, ValidationError
from landhunt.core.types import (
    Parcel,
    ParcelContext,
    ParcelScores,
    PlanningSummary,
    PlanningSummaryRecord,
    ScoreRecord,
    StoredObject,
)
from landhunt.pipeline.passport import (
    PLACEHOLDER_HEADING,
    TITLE,
    build_sections,
    generate_passport,
    parcel_fact_lines,
    passport_key,
    planning_lines,
)


def _headings(sections) -> list[str]:
    return [s.heading for s in sections]


class TestBuildSections:
    def test_bare_parcel(self):
        sections = build_sections(ParcelContext(parcel=Parcel(id="p1", address="1 High St")))
        assert _headings(sections) == [TITLE, "1. Parcel Summary", f"2. {PLACEHOLDER_HEADING}"]
        assert sections[0].kind == "title"
        assert sections[0].paragraphs == ["1 High St"]

    def test_title_falls_back_to_parcel_id(self):
        sections = build_sections(ParcelContext(parcel=Parcel(id="p1")))
        assert sections[0].paragraphs == ["Parcel ID: p1"]

    def test_full_context_in_order(self):
        context = ParcelContext(
            parcel=Parcel(id="p1"),
            scores=ScoreRecord(parcel_id="p1", scores=ParcelScores()),
            planning=PlanningSummaryRecord(summary=PlanningSummary()),
        )
        sections = build_sections(context, narrative="Promising infill site.")
        assert _headings(sections)[1:] == [
            "1. Parcel Summary",
            "2. AI Suitability Scores",
            "3. Planning Summary",
            "4. AI Feasibility Commentary",
            f"5. {PLACEHOLDER_HEADING}",
        ]
        assert sections[4].paragraphs == ["Promising infill site."]

    def test_blank_narrative_omitted(self):
        sections = build_sections(ParcelContext(parcel=Parcel(id="p1")), narrative="   ")
        assert "AI Feasibility Commentary" not in " ".join(_headings(sections))

    def test_score_lines_as_paragraphs(self):
        context = ParcelContext(
            parcel=Parcel(id="p1"),
            scores=ScoreRecord(
                parcel_id="p1",
                scores=ParcelScores(development_potential=72, recommended_use="logistics"),
            ),
        )
        paragraphs = build_sections(context)[2].paragraphs
        assert "Development potential: 72 / 100" in paragraphs
        assert "Recommended use: logistics" in paragraphs


class TestFactLines:
    def test_absent_facts_left_out(self):
        lines = parcel_fact_lines(Parcel(id="p1", address="1 High St", area_sq_m=1234.4))
        assert lines == ["Address: 1 High St", "Area: 1234 m²"]

    def test_planning_lines(self):
        record = PlanningSummaryRecord(summary=PlanningSummary(
            decision="refused", summary="Harm to heritage asset.",
            risks=["heritage", "highways"], approval_probability=0.25,
        ))
        assert planning_lines(record) == [
            "Decision: refused",
            "Estimated approval probability: 25%",
            "Summary: Harm to heritage asset.",
            "Key risks: heritage, highways",
        ]

    def test_missing_probability_not_shown(self):
        lines = planning_lines(PlanningSummaryRecord(summary=PlanningSummary()))
        assert lines == ["Decision: unknown"]


class TestPassportKey:
    def test_key_layout(self):
        assert passport_key("p1", timestamp_ms=1700000000000) == "site-passports/p1/1700000000000.pdf"


class TestGeneratePassport:
    @pytest.mark.asyncio
    async def test_success(self, fake_services):
        fake_services.llm.complete.return_value = "A modest infill opportunity."
        fake_services.blob.upload.return_value = StoredObject(
            path="site-passports/parcel-1/1.pdf", url="https://s.test/site-passports/parcel-1/1.pdf",
        )

        result = await generate_passport(fake_services, "parcel-1")

        assert result.parcel_id == "parcel-1"
        assert result.url == "https://s.test/site-passports/parcel-1/1.pdf"
        key, data, content_type = fake_services.blob.upload.call_args.args
        assert key.startswith("site-passports/parcel-1/")
        assert data.startswith(b"%PDF")
        assert content_type == "application/pdf"
        fake_services.store.append_passport.assert_awaited_once_with(
            "parcel-1", "site-passports/parcel-1/1.pdf", "https://s.test/site-passports/parcel-1/1.pdf",
        )

    @pytest.mark.asyncio
    async def test_narrative_failure_is_not_fatal(self, fake_services):
        fake_services.llm.complete.side_effect = UpstreamModelError("down")
        fake_services.blob.upload.return_value = StoredObject(path="k", url="https://s.test/k")

        with patch("landhunt.pipeline.passport.build_sections", wraps=build_sections) as spy:
            result = await generate_passport(fake_services, "parcel-1")

        assert result.url == "https://s.test/k"
        assert spy.call_args.args[1] == ""

    @pytest.mark.asyncio
    async def test_storage_failure_is_fatal(self, fake_services):
        fake_services.llm.complete.return_value = "text"
        fake_services.blob.upload.side_effect = StorageError("bucket missing")

        with pytest.raises(StorageError):
            await generate_passport(fake_services, "parcel-1")
        fake_services.store.append_passport.assert_not_called()

    @pytest.mark.asyncio
    async def test_log_failure_still_returns_url(self, fake_services):
        fake_services.llm.complete.return_value = "text"
        fake_services.blob.upload.return_value = StoredObject(path="k", url="https://s.test/k")
        fake_services.store.append_passport.return_value = False

        result = await generate_passport(fake_services, "parcel-1")
        assert result.url == "https://s.test/k"

    @pytest.mark.asyncio
    async def test_missing_parcel(self, fake_services):
        fake_services.store.get_parcel.return_value = None
        with pytest.raises(NotFoundError):
            await generate_passport(fake_services, "ghost")
        fake_services.blob.upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_parcel_id(self, fake_services):
        with pytest.raises(ValidationError):
            await generate_passport(fake_services, "")
