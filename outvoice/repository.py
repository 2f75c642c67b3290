"""
Proposal persistence.

ProposalRepository is the storage collaborator handed to whatever calls the
pricing and layout engines; the engines themselves never load or save.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from . import models
from .schemas import Proposal

logger = logging.getLogger(__name__)


class ProposalRepository:
    def __init__(self, db: Session):
        self.db = db

    def load(self, proposal_id: str) -> Optional[Proposal]:
        record = self.db.query(models.ProposalRecord).filter(
            models.ProposalRecord.id == proposal_id
        ).first()
        if not record:
            return None
        return Proposal.model_validate(record.document_json)

    def list_for_user(self, user_id: str) -> List[Proposal]:
        records = (
            self.db.query(models.ProposalRecord)
            .filter(models.ProposalRecord.user_id == user_id)
            .order_by(models.ProposalRecord.updated_at.desc())
            .all()
        )
        return [Proposal.model_validate(r.document_json) for r in records]

    def save(self, proposal: Proposal) -> Proposal:
        """
        Create or update. Stamps updated_at; created_at is kept from the
        stored copy when one exists.
        """
        record = self.db.query(models.ProposalRecord).filter(
            models.ProposalRecord.id == proposal.id
        ).first()

        now = datetime.utcnow()
        updates = {"updated_at": now}
        if record:
            updates["created_at"] = record.created_at
        proposal = proposal.model_copy(update=updates)
        document = proposal.model_dump(mode="json", by_alias=True)

        if record:
            record.user_id = proposal.user_id
            record.title = proposal.title
            record.status = proposal.status.value
            record.document_json = document
            record.updated_at = now
        else:
            record = models.ProposalRecord(
                id=proposal.id,
                user_id=proposal.user_id,
                title=proposal.title,
                status=proposal.status.value,
                document_json=document,
                created_at=proposal.created_at,
                updated_at=now,
            )
            self.db.add(record)

        self.db.commit()
        logger.info("Saved proposal %s (%d sections)", proposal.id, len(proposal.sections))
        return proposal

    def delete(self, proposal_id: str) -> bool:
        record = self.db.query(models.ProposalRecord).filter(
            models.ProposalRecord.id == proposal_id
        ).first()
        if not record:
            return False
        self.db.delete(record)
        self.db.commit()
        return True
