from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime
from .database import Base
import enum


# --- Enums ---

class SectionType(str, enum.Enum):
    HEADER = "header"
    HERO = "hero"
    SERVICES = "services"
    PRICING = "pricing"
    TESTIMONIALS = "testimonials"
    TIMELINE = "timeline"
    ABOUT = "about"
    CONTACT = "contact"
    CUSTOM = "custom"


class ProposalStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Orientation(str, enum.Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class PageFormat(str, enum.Enum):
    A4 = "A4"
    LETTER = "Letter"

    @classmethod
    def _missing_(cls, value):
        # 'letter', 'a4' from env files and query strings
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None


class TitleTheme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class TitleLayout(str, enum.Enum):
    CENTERED = "centered"
    LEFT_ALIGNED = "left-aligned"
    SPLIT = "split"


# --- Tables ---

class ProposalRecord(Base):
    """One stored proposal. The full document lives in document_json."""
    __tablename__ = "proposals"

    id = Column(String, primary_key=True)  # 'proposal-<ms>-<rand>'
    user_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False, default="")
    status = Column(String, default=ProposalStatus.DRAFT.value)
    document_json = Column(JSON, nullable=False)  # Proposal schema, by alias
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
