from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..layout import PageGeometry, layout_proposal
from ..models import Orientation, PageFormat
from ..pricing_engine import calculate_pricing_total
from ..preview import generate_proposal_html
from ..repository import ProposalRepository
from ..schemas import Proposal, ProposalSummary

router = APIRouter(prefix="/proposals", tags=["proposals"])


def get_repository(db: Session = Depends(get_db)) -> ProposalRepository:
    return ProposalRepository(db)


def load_or_404(proposal_id: str, repo: ProposalRepository) -> Proposal:
    proposal = repo.load(proposal_id)
    if not proposal:
        raise HTTPException(status_code=404, detail="Proposal not found")
    return proposal


def recalculate_sections(proposal: Proposal) -> Proposal:
    """Recompute every structured pricing table before the proposal is stored."""
    sections = [
        s.model_copy(update={"pricing_data": calculate_pricing_total(s.pricing_data)})
        if s.pricing_data is not None else s
        for s in proposal.sections
    ]
    return proposal.model_copy(update={"sections": sections})


@router.get("", response_model=List[ProposalSummary], response_model_by_alias=True)
def list_proposals(user_id: str = Query(...), repo: ProposalRepository = Depends(get_repository)):
    return [
        ProposalSummary(id=p.id, user_id=p.user_id, title=p.title, status=p.status, updated_at=p.updated_at)
        for p in repo.list_for_user(user_id)
    ]


@router.get("/{proposal_id}", response_model=Proposal, response_model_by_alias=True)
def get_proposal(proposal_id: str, repo: ProposalRepository = Depends(get_repository)):
    return load_or_404(proposal_id, repo)


@router.put("/{proposal_id}", response_model=Proposal, response_model_by_alias=True)
def save_proposal(proposal_id: str, proposal: Proposal, repo: ProposalRepository = Depends(get_repository)):
    if proposal.id != proposal_id:
        raise HTTPException(status_code=400, detail="Proposal id does not match the URL")
    return repo.save(recalculate_sections(proposal))


@router.delete("/{proposal_id}")
def delete_proposal(proposal_id: str, repo: ProposalRepository = Depends(get_repository)):
    if not repo.delete(proposal_id):
        raise HTTPException(status_code=404, detail="Proposal not found")
    return {"deleted": proposal_id}


@router.get("/{proposal_id}/layout")
def get_layout(
    proposal_id: str,
    format: PageFormat = Query(PageFormat.A4),
    orientation: Optional[Orientation] = Query(None),
    repo: ProposalRepository = Depends(get_repository),
):
    """Paginated draw operations for the on-screen preview."""
    proposal = load_or_404(proposal_id, repo)
    geometry = PageGeometry.for_format(format, orientation or proposal.orientation)
    return layout_proposal(proposal, geometry).to_dict()


@router.get("/{proposal_id}/preview", response_class=HTMLResponse)
def get_preview(proposal_id: str, repo: ProposalRepository = Depends(get_repository)):
    return generate_proposal_html(load_or_404(proposal_id, repo))
