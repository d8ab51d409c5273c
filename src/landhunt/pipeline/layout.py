"""Text layout and PDF rendering for site passports.

Layout is a two-step affair so it can be tested without a PDF:
  1. PageLayout places wrapped lines on fixed-size pages, tracking a
     vertical cursor (pure, metric-driven).
  2. render_pdf() draws the placed lines with reportlab's canvas.

Line breaking is greedy word wrap against reportlab's per-string font
metrics. A single word wider than the content width is left as one
oversized line rather than split.

Overflow policy: when the cursor would pass the bottom margin a new page
is started. Content is never truncated or drawn past the page edge.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Callable

from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from landhunt.core.types import Section

logger = logging.getLogger(__name__)

# A4 portrait in points
PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN = 40
TOP_Y = 800
PARAGRAPH_GAP = 6

BACKGROUND = (0.02, 0.06, 0.1)


@dataclass(frozen=True)
class TextStyle:
    font: str
    size: float
    color: tuple[float, float, float]
    leading: float  # cursor advance per line


TITLE = TextStyle("Helvetica-Bold", 16, (0.17, 0.34, 0.67), leading=24)
HEADING = TextStyle("Helvetica-Bold", 12, (0.9, 0.9, 0.9), leading=18)
LEAD = TextStyle("Helvetica", 12, (0.95, 0.95, 0.95), leading=14)
BODY = TextStyle("Helvetica", 11, (0.95, 0.95, 0.95), leading=13)


@dataclass
class PlacedLine:
    page: int
    x: float
    y: float
    text: str
    style: TextStyle


def pdf_safe(text: str) -> str:
    """Replace characters the standard PDF fonts cannot encode (WinAnsi)."""
    return text.encode("cp1252", errors="replace").decode("cp1252")


def measure(text: str, style: TextStyle) -> float:
    return stringWidth(text, style.font, style.size)


def wrap_text(text: str, measure_fn: Callable[[str], float], max_width: float) -> list[str]:
    """Greedy word wrap.

    For each word, measure "current line + space + word"; if that exceeds
    max_width and the line is non-empty, flush the line and start a new one
    with the word, otherwise append the word. Any remainder is flushed last.
    """
    lines: list[str] = []
    line = ""
    for word in text.split():
        candidate = f"{line} {word}" if line else word
        if measure_fn(candidate) > max_width and line:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


@dataclass
class PageLayout:
    """Places text on fixed-size pages, starting a new page on overflow."""

    width: float = PAGE_WIDTH
    height: float = PAGE_HEIGHT
    margin: float = MARGIN
    top: float = TOP_Y
    lines: list[PlacedLine] = field(default_factory=list)
    page: int = 0
    y: float = 0.0

    def __post_init__(self) -> None:
        self.y = self.top

    @property
    def content_width(self) -> float:
        return self.width - self.margin * 2

    @property
    def page_count(self) -> int:
        return self.page + 1

    def _place(self, text: str, style: TextStyle) -> None:
        if self.y < self.margin:
            self.page += 1
            self.y = self.top
        self.lines.append(PlacedLine(self.page, self.margin, self.y, text, style))
        self.y -= style.leading

    def add_heading(self, text: str, style: TextStyle = HEADING) -> None:
        for line in wrap_text(pdf_safe(text), lambda s: measure(s, style), self.content_width):
            self._place(line, style)

    def add_paragraph(self, text: str, style: TextStyle = BODY) -> None:
        for line in wrap_text(pdf_safe(text), lambda s: measure(s, style), self.content_width):
            self._place(line, style)
        self.y -= PARAGRAPH_GAP


def layout_sections(sections: list[Section]) -> PageLayout:
    layout = PageLayout()
    for section in sections:
        if section.kind == "title":
            layout.add_heading(section.heading, TITLE)
            paragraph_style = LEAD
        else:
            layout.add_heading(section.heading)
            paragraph_style = BODY
        for paragraph in section.paragraphs:
            layout.add_paragraph(paragraph, paragraph_style)
    return layout


def render_pdf(layout: PageLayout) -> bytes:
    """Draw a finished layout into PDF bytes."""
    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=(layout.width, layout.height))

    for page in range(layout.page_count):
        pdf.setFillColorRGB(*BACKGROUND)
        pdf.rect(0, 0, layout.width, layout.height, stroke=0, fill=1)
        for line in layout.lines:
            if line.page != page:
                continue
            pdf.setFont(line.style.font, line.style.size)
            pdf.setFillColorRGB(*line.style.color)
            pdf.drawString(line.x, line.y, line.text)
        pdf.showPage()

    pdf.save()
    logger.info("Rendered PDF: %d page(s), %d lines", layout.page_count, len(layout.lines))
    return buf.getvalue()
