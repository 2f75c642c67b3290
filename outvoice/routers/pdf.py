"""
PDF download endpoint.

GET /api/proposals/{proposal_id}/pdf — download the proposal as PDF.

Query params mirror the export options: format (A4 | Letter),
orientation (portrait | landscape, defaults to the proposal's), filename.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from ..models import Orientation, PageFormat
from ..pdf_generator import PDFExportError, export_proposal_pdf
from ..repository import ProposalRepository
from ..schemas import ExportOptions
from .proposals import get_repository, load_or_404

router = APIRouter(prefix="/proposals", tags=["pdf"])


def _header_filename(filename: str) -> str:
    """Filename safe to put inside a quoted Content-Disposition value."""
    cleaned = filename.replace('"', "'").replace("\r", " ").replace("\n", " ")
    return cleaned.encode("latin-1", errors="replace").decode("latin-1")


@router.get("/{proposal_id}/pdf")
def download_pdf(
    proposal_id: str,
    format: PageFormat = Query(PageFormat.A4),
    orientation: Optional[Orientation] = Query(None),
    filename: Optional[str] = Query(None),
    repo: ProposalRepository = Depends(get_repository),
):
    """
    Generate and download a proposal PDF.

    Returns: application/pdf
    """
    proposal = load_or_404(proposal_id, repo)
    options = ExportOptions(filename=filename, format=format, orientation=orientation)

    try:
        exported = export_proposal_pdf(proposal, options)
    except PDFExportError as e:
        raise HTTPException(status_code=500, detail=e.message)

    return Response(
        content=exported.content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{_header_filename(exported.filename)}"',
            "X-Page-Count": str(exported.page_count),
        },
    )
