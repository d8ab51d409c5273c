"""Tests for text layout and PDF rendering."""

from landhunt.core.types import Section
from landhunt.pipeline.layout import (
    BODY,
    MARGIN,
    PAGE_WIDTH,
    PageLayout,
    layout_sections,
    measure,
    pdf_safe,
    render_pdf,
    wrap_text,
)


def _char_width(text: str) -> float:
    return float(len(text))


class TestWrapText:
    def test_fits_on_one_line(self):
        assert wrap_text("a bb ccc", _char_width, 20) == ["a bb ccc"]

    def test_breaks_greedily(self):
        assert wrap_text("aaa bbb ccc ddd", _char_width, 7) == ["aaa bbb", "ccc ddd"]

    def test_oversized_word_kept_whole(self):
        assert wrap_text("tiny enormousword end", _char_width, 6) == ["tiny", "enormousword", "end"]

    def test_whitespace_collapsed(self):
        assert wrap_text("  one \n two  ", _char_width, 50) == ["one two"]

    def test_empty(self):
        assert wrap_text("", _char_width, 10) == []

    def test_lines_respect_width_with_real_metrics(self):
        text = " ".join(["planning"] * 200)
        max_width = PAGE_WIDTH - 2 * MARGIN
        lines = wrap_text(text, lambda s: measure(s, BODY), max_width)
        assert len(lines) > 1
        for line in lines:
            assert measure(line, BODY) <= max_width or " " not in line
        assert " ".join(lines) == text


class TestPageLayout:
    def test_cursor_advances_by_leading(self):
        layout = PageLayout()
        layout.add_heading("Heading")
        assert layout.lines[0].y == layout.top
        assert layout.y == layout.top - 18

    def test_paragraph_gap(self):
        layout = PageLayout()
        layout.add_paragraph("one line")
        assert layout.y == layout.top - BODY.leading - 6

    def test_overflow_starts_new_page(self):
        layout = PageLayout()
        for _ in range(120):
            layout.add_paragraph("A line of body text.")
        assert layout.page_count > 1
        for line in layout.lines:
            assert line.y >= MARGIN
            assert line.y <= layout.top
        second_page = [line for line in layout.lines if line.page == 1]
        assert second_page[0].y == layout.top

    def test_unencodable_characters_replaced(self):
        layout = PageLayout()
        layout.add_paragraph("Site → north")
        assert layout.lines[0].text == "Site ? north"


class TestPdfSafe:
    def test_latin1_kept(self):
        assert pdf_safe("Area: 420 m²") == "Area: 420 m²"

    def test_en_dash_kept(self):
        assert pdf_safe("Landhunt – Passport") == "Landhunt – Passport"

    def test_cjk_replaced(self):
        assert pdf_safe("土地") == "??"


class TestLayoutSections:
    def test_title_then_sections(self):
        sections = [
            Section(heading="Title", paragraphs=["1 High St"], kind="title"),
            Section(heading="1. Parcel Summary", paragraphs=["Area: 900 m²", "Flood zone: 1"]),
        ]
        layout = layout_sections(sections)
        texts = [line.text for line in layout.lines]
        assert texts == ["Title", "1 High St", "1. Parcel Summary", "Area: 900 m²", "Flood zone: 1"]
        assert layout.lines[0].style.size == 16

    def test_section_without_paragraphs(self):
        layout = layout_sections([Section(heading="Empty")])
        assert [line.text for line in layout.lines] == ["Empty"]


class TestRenderPdf:
    def test_produces_pdf(self):
        layout = layout_sections([Section(heading="Hello", paragraphs=["World"])])
        pdf = render_pdf(layout)
        assert pdf.startswith(b"%PDF")

    def test_multi_page(self):
        layout = PageLayout()
        for _ in range(200):
            layout.add_paragraph("Filler paragraph for pagination.")
        pdf = render_pdf(layout)
        assert pdf.startswith(b"%PDF")
        assert layout.page_count >= 2
