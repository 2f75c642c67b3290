"""
Document Layout Engine.

Turns a Proposal into pages of draw operations. The result drives both the
PDF writer (pdf_generator) and the on-screen paginated preview (returned as
JSON by the layout endpoint).

Page model:
1. Title page — always first, never shares a page with section content
2. One fresh page per section, in ascending `order`
3. Every line / table row is height-checked before it is placed; when it
   would cross the bottom margin a continuation page is opened for the same
   section and the cursor goes back to the top margin

All positions are millimetres from the top-left corner of the page. Text y is
the baseline; text x is the anchor for the op's alignment (L, C or R).
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Tuple, Union

from fpdf import FPDF

from .config import settings
from .html_text import contains_html, html_to_plain_text, looks_like_heading
from .models import Orientation, PageFormat, TitleLayout, TitleTheme
from .pricing_engine import format_currency, format_item_discount, format_number
from .schemas import PricingItem, PricingSectionData, Proposal, ProposalSection

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]

# Page sizes in mm, portrait
PAGE_SIZES = {
    PageFormat.A4: (210.0, 297.0),
    PageFormat.LETTER: (215.9, 279.4),
}

FONT_FAMILY = "helvetica"

BLACK: Color = (0, 0, 0)
WHITE: Color = (255, 255, 255)
DARK_BG: Color = (23, 23, 23)
PRIMARY: Color = (37, 99, 235)
PRIMARY_DARK: Color = (30, 58, 138)
RULE_GRAY: Color = (200, 200, 200)
NOTE_GRAY: Color = (100, 100, 100)
PLACEHOLDER_GRAY: Color = (128, 128, 128)
DISCOUNT_RED: Color = (200, 0, 0)

# Pricing table columns: (label, share of content width, alignment)
PRICING_COLUMNS = [
    ("Description", 0.35, "L"),
    ("Qty", 0.12, "R"),
    ("Unit Price", 0.18, "R"),
    ("Discount", 0.15, "R"),
    ("Subtotal", 0.20, "R"),
]
CELL_PADDING = 2.0
TOTALS_LABEL_OFFSET = 45.0  # label column right edge, from the content right edge

LOGO_WIDTH = 40.0
LOGO_HEIGHT = 15.0

NO_CONTENT_TEXT = "(No content)"
NO_PRICING_ITEMS_TEXT = "(No pricing items added)"
NO_DESCRIPTION_TEXT = "(No description)"
SPLIT_CAPTION = "Proposal Document"


# --- Geometry ---

@dataclass(frozen=True)
class PageGeometry:
    format: str
    orientation: str
    width: float
    height: float
    margin: float
    line_height: float

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def bottom(self) -> float:
        """Lowest y any content may reach."""
        return self.height - self.margin

    @classmethod
    def for_format(
        cls,
        page_format: Union[PageFormat, str] = PageFormat.A4,
        orientation: Union[Orientation, str] = Orientation.PORTRAIT,
        margin: Optional[float] = None,
        line_height: Optional[float] = None,
    ) -> "PageGeometry":
        page_format = PageFormat(page_format)
        orientation = Orientation(orientation)
        width, height = PAGE_SIZES[page_format]
        if orientation == Orientation.LANDSCAPE:
            width, height = height, width
        return cls(
            format=page_format.value,
            orientation=orientation.value,
            width=width,
            height=height,
            margin=settings.PDF_MARGIN_MM if margin is None else margin,
            line_height=settings.PDF_LINE_HEIGHT_MM if line_height is None else line_height,
        )


# --- Draw operations ---

@dataclass
class TextOp:
    x: float
    y: float
    text: str
    font_style: str = ""  # '' | 'B' | 'I' | 'BI'
    font_size: float = 12
    color: Color = BLACK
    align: str = "L"
    kind: str = "text"


@dataclass
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: Color = RULE_GRAY
    width: float = 0.3
    kind: str = "line"


@dataclass
class RectOp:
    x: float
    y: float
    w: float
    h: float
    color: Color = WHITE
    kind: str = "rect"


@dataclass
class ImageOp:
    x: float
    y: float
    w: float
    h: float
    source: str
    kind: str = "image"


DrawOp = Union[TextOp, LineOp, RectOp, ImageOp]


@dataclass
class PageLayout:
    number: int
    kind: str  # 'title' | 'section'
    section_id: Optional[str] = None
    ops: List[DrawOp] = field(default_factory=list)

    def texts(self) -> List[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]


@dataclass
class DocumentLayout:
    title: str
    geometry: PageGeometry
    pages: List[PageLayout] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def pages_for_section(self, section_id: str) -> List[PageLayout]:
        return [p for p in self.pages if p.section_id == section_id]

    def to_dict(self) -> dict:
        return asdict(self)


# --- Text measurement ---

def latin1_safe(text: str) -> str:
    """Replace characters the built-in PDF fonts (latin-1) cannot draw."""
    if not text:
        return ""
    return (
        text
        .replace("€", "EUR ")  # euro sign
        .replace("₹", "INR ")  # rupee sign
        .replace("•", "-")     # bullet
        .replace("—", " - ")   # em dash
        .replace("–", "-")     # en dash
        .replace("“", '"')     # left double quote
        .replace("”", '"')     # right double quote
        .replace("‘", "'")     # left single quote
        .replace("’", "'")     # right single quote
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


class FontMetrics:
    """Width-aware line splitting using fpdf2's core font metrics."""

    def __init__(self, family: str = FONT_FAMILY):
        self.family = family
        self._pdf = FPDF(unit="mm")

    def string_width(self, text: str, style: str = "", size: float = 12) -> float:
        self._pdf.set_font(self.family, style, size)
        return self._pdf.get_string_width(latin1_safe(text))

    def split_text_to_size(self, text: str, width: float, style: str = "", size: float = 12) -> List[str]:
        """
        Wrap text to lines no wider than `width`.
        Existing newlines are kept; words wider than a line are hard-broken.
        """
        self._pdf.set_font(self.family, style, size)
        lines: List[str] = []
        for paragraph in (text or "").split("\n"):
            lines.extend(self._wrap_paragraph(paragraph, width))
        return lines

    def _width(self, text: str) -> float:
        return self._pdf.get_string_width(latin1_safe(text))

    def _wrap_paragraph(self, paragraph: str, width: float) -> List[str]:
        words = paragraph.split()
        if not words:
            return [""]

        lines = []
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if self._width(candidate) <= width:
                current = candidate
                continue
            if current:
                lines.append(current)
            while len(word) > 1 and self._width(word) > width:
                cut = self._fit_prefix(word, width)
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        if current:
            lines.append(current)
        return lines

    def _fit_prefix(self, word: str, width: float) -> int:
        cut = 1
        while cut < len(word) and self._width(word[:cut + 1]) <= width:
            cut += 1
        return cut


# --- Layout ---

class ProposalLayoutEngine:
    """
    Lays out one proposal. Create one per call: the engine keeps the cursor
    and page list of the document being built.
    """

    def __init__(self, geometry: PageGeometry, metrics: Optional[FontMetrics] = None):
        self.geometry = geometry
        self.metrics = metrics or FontMetrics()
        self.pages: List[PageLayout] = []
        self.y = geometry.margin
        self._section_id: Optional[str] = None

    # -- page / cursor primitives --

    @property
    def page(self) -> PageLayout:
        return self.pages[-1]

    def new_page(self, kind: str = "section", section_id: Optional[str] = None):
        self.pages.append(PageLayout(number=len(self.pages) + 1, kind=kind, section_id=section_id))
        self.y = self.geometry.margin

    def ensure_space(self, height: float) -> bool:
        """Open a continuation page if `height` does not fit below the cursor."""
        if self.y + height > self.geometry.bottom:
            self.new_page("section", self._section_id)
            return True
        return False

    def text(self, x, y, text, style="", size=12, color=BLACK, align="L"):
        self.page.ops.append(TextOp(x=x, y=y, text=text, font_style=style, font_size=size, color=color, align=align))

    def line(self, x1, y1, x2, y2, color=RULE_GRAY, width=0.3):
        self.page.ops.append(LineOp(x1=x1, y1=y1, x2=x2, y2=y2, color=color, width=width))

    def rect(self, x, y, w, h, color):
        self.page.ops.append(RectOp(x=x, y=y, w=w, h=h, color=color))

    def image(self, x, y, w, h, source):
        self.page.ops.append(ImageOp(x=x, y=y, w=w, h=h, source=source))

    # -- document --

    def layout(self, proposal: Proposal) -> DocumentLayout:
        self.render_title_page(proposal)
        for section in proposal.sorted_sections():
            self.render_section(section)
        return DocumentLayout(title=proposal.title, geometry=self.geometry, pages=self.pages)

    def render_title_page(self, proposal: Proposal):
        g = self.geometry
        style = proposal.title_page_style
        dark = style.theme == TitleTheme.DARK
        lh = g.line_height
        center_x = g.width / 2
        center_y = g.height / 2

        title_color = WHITE if dark else BLACK
        date_color = (200, 200, 200) if dark else (100, 100, 100)
        date_str = _format_date(proposal.created_at)
        logo = _logo_source(style.logo_url)

        self.new_page("title")
        self.rect(0, 0, g.width, g.height, DARK_BG if dark else WHITE)

        if style.layout == TitleLayout.SPLIT:
            footer_y = g.height - g.margin - 30
            if logo:
                footer_y -= 15
            logo_y = footer_y - 10 - 3 - LOGO_HEIGHT
            title_limit = (logo_y if logo else footer_y - 10) - lh

            y = g.margin + 40
            for line in self._title_lines(proposal.title, 36, y, lh * 1.2, title_limit):
                self.text(g.margin, y, line, "B", 36, title_color)
                y += lh * 1.2
            y += lh
            self.text(g.margin, y, date_str, "", 14, date_color)

            # Footer: logo, rule, caption
            if logo:
                self.image(g.margin, logo_y, LOGO_WIDTH, LOGO_HEIGHT, logo)
            rule_color = (100, 100, 100) if dark else RULE_GRAY
            self.line(g.margin, footer_y - 10, g.width - g.margin, footer_y - 10, rule_color, 0.5)
            caption_color = (150, 150, 150) if dark else (120, 120, 120)
            self.text(center_x, footer_y, SPLIT_CAPTION, "", 10, caption_color, "C")

        elif style.layout == TitleLayout.LEFT_ALIGNED:
            y = center_y - 30
            self.rect(g.margin, y - 5, 16, 2, PRIMARY)  # accent bar
            y += 20
            limit = g.bottom - (LOGO_HEIGHT + lh if logo else 0)
            for line in self._title_lines(proposal.title, 36, y, lh * 1.2, limit):
                self.text(g.margin, y, line, "B", 36, title_color)
                y += lh * 1.2
            y += lh
            self.text(g.margin, y, date_str, "", 14, date_color)
            if logo:
                self.image(g.margin, g.bottom - LOGO_HEIGHT, LOGO_WIDTH, LOGO_HEIGHT, logo)

        else:
            y = center_y - 40
            limit = g.bottom - (LOGO_HEIGHT + lh if logo else 0)
            for line in self._title_lines(proposal.title, 42, y, lh * 1.3, limit):
                self.text(center_x, y, line, "B", 42, title_color, "C")
                y += lh * 1.3
            y += lh
            self.text(center_x, y, date_str, "", 16, date_color, "C")
            if logo:
                self.image(center_x - LOGO_WIDTH / 2, g.bottom - LOGO_HEIGHT, LOGO_WIDTH, LOGO_HEIGHT, logo)

    def _title_lines(self, title: str, size: float, start: float, step: float, limit: float) -> List[str]:
        """Wrapped title lines, cut so the title and the date line below it stay above `limit`."""
        lines = self.metrics.split_text_to_size(title, self.geometry.content_width, "B", size)
        max_lines = max(1, int((limit - self.geometry.line_height - start) // step))
        if len(lines) > max_lines:
            logger.warning("Title page title cut to %d of %d lines", max_lines, len(lines))
            return lines[:max_lines]
        return lines

    def render_section(self, section: ProposalSection):
        g = self.geometry
        lh = g.line_height
        self._section_id = section.id
        self.new_page("section", section.id)

        for line in self.metrics.split_text_to_size(section.title, g.content_width, "B", 18):
            self.ensure_space(lh * 1.5)
            self.text(g.margin, self.y, line, "B", 18, PRIMARY_DARK)
            self.y += lh * 1.5

        if section.is_structured_pricing:
            self.render_pricing_table(section.pricing_data)
        else:
            self.render_text_content(section.content)

    # -- section bodies --

    def render_text_content(self, content: str):
        g = self.geometry
        lh = g.line_height
        self.y += 3

        content = content or ""
        if contains_html(content):
            content = html_to_plain_text(content)
            if not content:
                self._placeholder(NO_CONTENT_TEXT, 12)
                return
            for line in content.split("\n"):
                if not line.strip():
                    self.y += lh * 0.5
                    continue
                heading = looks_like_heading(line)
                style, size = ("B", 14) if heading else ("", 12)
                for text_line in self.metrics.split_text_to_size(line.strip(), g.content_width, style, size):
                    self.ensure_space(lh)
                    self.text(g.margin, self.y, text_line, style, size)
                    self.y += lh
                if heading:
                    self.y += lh * 0.3
        elif content.strip():
            for text_line in self.metrics.split_text_to_size(content, g.content_width, "", 12):
                self.ensure_space(lh)
                self.text(g.margin, self.y, text_line, "", 12)
                self.y += lh
        else:
            self._placeholder(NO_CONTENT_TEXT, 12)

    def render_pricing_table(self, data: PricingSectionData):
        g = self.geometry
        lh = g.line_height
        left = g.margin
        right = g.margin + g.content_width
        currency = data.currency
        self.y += 5

        if not data.items:
            self._placeholder(NO_PRICING_ITEMS_TEXT, 10)
            return

        widths = [g.content_width * share for _, share, _ in PRICING_COLUMNS]

        # Header row
        self.ensure_space(lh * 2)
        x = left
        for (label, _, align), width in zip(PRICING_COLUMNS, widths):
            self.text(_cell_x(x, width, align), self.y, label, "B", 9, BLACK, align)
            x += width
        self.y += lh
        self.line(left, self.y, right, self.y, RULE_GRAY, 0.3)
        self.y += 3

        for item in data.items:
            self._pricing_row(item, widths, currency)

        # Totals block
        self.y += 8
        self.ensure_space(lh * 6)
        self.line(left, self.y, right, self.y, RULE_GRAY, 0.3)
        self.y += 5

        self._totals_line("Subtotal:", format_currency(data.subtotal, currency), "", 10, BLACK)
        if data.discount_amount is not None and data.discount_amount > 0:
            self._totals_line("Discount:", f"-{format_currency(data.discount_amount, currency)}", "", 10, DISCOUNT_RED)
        if data.tax_amount is not None and data.tax_amount > 0:
            self._totals_line("Tax:", f"+{format_currency(data.tax_amount, currency)}", "", 10, BLACK)

        self.y += 3
        self.line(left, self.y, right, self.y, PRIMARY, 0.5)
        self.y += 5
        self._totals_line("Total:", format_currency(data.total, currency), "B", 12, PRIMARY_DARK, advance=lh * 1.5)

        if data.notes:
            for line in self.metrics.split_text_to_size(data.notes, g.content_width, "I", 9):
                self.ensure_space(lh)
                self.text(left, self.y, line, "I", 9, NOTE_GRAY)
                self.y += lh * 0.9

    def _pricing_row(self, item: PricingItem, widths: List[float], currency: str):
        lh = self.geometry.line_height
        desc_lines = self.metrics.split_text_to_size(
            item.description or NO_DESCRIPTION_TEXT, widths[0] - CELL_PADDING, "", 9,
        )
        row_height = max(lh * 1.2, len(desc_lines) * lh * 0.8)
        # A row taller than a whole page flows its description across pages
        fits_page = row_height <= self.geometry.bottom - self.geometry.margin
        self.ensure_space(row_height if fits_page else lh * 1.2)
        row_top = self.y

        x = self.geometry.margin + widths[0]
        cells = [
            (format_number(item.quantity), ""),
            (format_currency(item.unit_price, currency), ""),
            (format_item_discount(item, currency), ""),
            (format_currency(item.subtotal, currency), "B"),
        ]
        for (value, style), width in zip(cells, widths[1:]):
            self.text(_cell_x(x, width, "R"), row_top, value, style, 9, BLACK, "R")
            x += width

        if fits_page:
            for i, line in enumerate(desc_lines):
                self.text(self.geometry.margin, row_top + i * lh * 0.8, line, "", 9)
            self.y = row_top + row_height
            return

        for line in desc_lines:
            self.ensure_space(lh * 0.8)
            self.text(self.geometry.margin, self.y, line, "", 9)
            self.y += lh * 0.8

    def _totals_line(self, label, value, style, size, color, advance=None):
        right = self.geometry.margin + self.geometry.content_width
        self.text(right - TOTALS_LABEL_OFFSET, self.y, label, style, size, color, "R")
        self.text(right, self.y, value, style, size, color, "R")
        self.y += self.geometry.line_height * 1.2 if advance is None else advance

    def _placeholder(self, text: str, size: float):
        self.ensure_space(self.geometry.line_height)
        self.text(self.geometry.margin, self.y, text, "I", size, PLACEHOLDER_GRAY)
        self.y += self.geometry.line_height


def _cell_x(x: float, width: float, align: str) -> float:
    """Anchor x of a table cell: left edge, or right edge less padding."""
    if align == "R":
        return x + width - CELL_PADDING
    return x


def _logo_source(logo_url: Optional[str]) -> Optional[str]:
    """Only inline `data:image/...` logos are drawn; URLs and paths are never fetched."""
    if not logo_url:
        return None
    if logo_url.startswith("data:image/"):
        return logo_url
    logger.warning("Skipping logo %r: only data:image URLs are supported", logo_url[:80])
    return None


def _format_date(value) -> str:
    """en-US long date, e.g. "October 5, 2026"."""
    return f"{value:%B} {value.day}, {value.year}"


def layout_proposal(
    proposal: Proposal,
    geometry: Optional[PageGeometry] = None,
    metrics: Optional[FontMetrics] = None,
) -> DocumentLayout:
    """Lay out a proposal; geometry defaults to the configured format and the proposal's orientation."""
    if geometry is None:
        geometry = PageGeometry.for_format(settings.PDF_DEFAULT_FORMAT, proposal.orientation)
    return ProposalLayoutEngine(geometry, metrics).layout(proposal)
