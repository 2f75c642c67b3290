"""
PDF Proposal Generator.

Writes a laid-out proposal (layout.DocumentLayout) to PDF with fpdf2
(pure Python, no system dependencies). All pagination decisions are made by
the layout engine; this module only replays the draw operations page by page.

export_proposal_pdf is the single entry point for exports: it either returns
a complete document or raises PDFExportError with the user-facing message.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from fpdf import FPDF

from .config import settings
from .layout import (
    DocumentLayout,
    ImageOp,
    LineOp,
    PageGeometry,
    RectOp,
    TextOp,
    FONT_FAMILY,
    latin1_safe,
    layout_proposal,
)
from .schemas import ExportOptions, Proposal

logger = logging.getLogger(__name__)

EXPORT_ERROR_MESSAGE = "Failed to export PDF. Please try again."


class PDFExportError(Exception):
    """Raised when any part of layout or PDF writing fails."""

    def __init__(self, message: str = EXPORT_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


@dataclass
class ExportedDocument:
    filename: str
    content: bytes
    page_count: int


class ProposalPDF(FPDF):
    """FPDF document that draws pre-computed layout pages."""

    def __init__(self, geometry: PageGeometry):
        super().__init__(
            orientation="L" if geometry.orientation == "landscape" else "P",
            unit="mm",
            format=geometry.format.lower(),
        )
        self.geometry = geometry
        self.set_auto_page_break(auto=False)
        self.set_margins(geometry.margin, geometry.margin, geometry.margin)

    def header(self):
        pass  # Title page and section pages draw their own content

    def footer(self):
        pass

    def draw_text(self, op: TextOp):
        text = latin1_safe(op.text)
        self.set_font(FONT_FAMILY, op.font_style, op.font_size)
        self.set_text_color(*op.color)
        x = op.x
        if op.align in ("C", "R"):
            width = self.get_string_width(text)
            x = op.x - width / 2 if op.align == "C" else op.x - width
        self.text(x, op.y, text)

    def draw_line(self, op: LineOp):
        self.set_draw_color(*op.color)
        self.set_line_width(op.width)
        self.line(op.x1, op.y1, op.x2, op.y2)

    def draw_rect(self, op: RectOp):
        self.set_fill_color(*op.color)
        self.rect(op.x, op.y, op.w, op.h, style="F")

    def draw_image(self, op: ImageOp):
        try:
            self.image(op.source, x=op.x, y=op.y, w=op.w, h=op.h, keep_aspect_ratio=True)
        except Exception as e:
            # Export continues without the logo
            logger.warning("Skipping logo %r: %s", op.source[:80], e)

    def draw_layout(self, layout: DocumentLayout):
        handlers = {
            "text": self.draw_text,
            "line": self.draw_line,
            "rect": self.draw_rect,
            "image": self.draw_image,
        }
        for page in layout.pages:
            self.add_page()
            for op in page.ops:
                handlers[op.kind](op)


def render_layout_pdf(layout: DocumentLayout) -> bytes:
    """Write a DocumentLayout to PDF bytes."""
    pdf = ProposalPDF(layout.geometry)
    pdf.set_title(latin1_safe(layout.title))
    pdf.set_creator(settings.APP_NAME)
    pdf.draw_layout(layout)
    return bytes(pdf.output())


def default_filename(proposal: Proposal) -> str:
    return f"{proposal.title or 'proposal'}.pdf"


def export_proposal_pdf(proposal: Proposal, options: Optional[ExportOptions] = None) -> ExportedDocument:
    """
    Lay out and render a proposal as PDF.

    Args:
        proposal: full proposal snapshot (sections are sorted by `order` here)
        options: filename / page format / orientation override

    Returns:
        ExportedDocument with the filename, PDF bytes and page count

    Raises:
        PDFExportError: on any failure; no partial document is returned
    """
    options = options or ExportOptions()
    filename = options.filename or default_filename(proposal)
    orientation = options.orientation or proposal.orientation

    try:
        geometry = PageGeometry.for_format(options.format, orientation)
        layout = layout_proposal(proposal, geometry)
        content = render_layout_pdf(layout)
    except Exception as e:
        logger.exception("PDF export failed for proposal %s", proposal.id)
        raise PDFExportError() from e

    logger.info("Exported proposal %s: %d pages, %d bytes", proposal.id, layout.page_count, len(content))
    return ExportedDocument(filename=filename, content=content, page_count=layout.page_count)


def save_proposal_pdf(
    proposal: Proposal,
    directory: Union[str, Path],
    options: Optional[ExportOptions] = None,
) -> Path:
    """Export a proposal and write it into `directory`. Returns the written path."""
    exported = export_proposal_pdf(proposal, options)
    target = Path(directory) / Path(exported.filename).name
    try:
        target.write_bytes(exported.content)
    except OSError as e:
        logger.error("Could not write %s: %s", target, e)
        raise PDFExportError() from e
    return target
