"""
Shared test fixtures — SQLite test database, test client, sample proposals.
"""

import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Point settings at the test database before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from outvoice.database import Base, get_db
from outvoice.main import app
from outvoice.pricing_engine import calculate_pricing_total
from outvoice.schemas import PricingItem, PricingSectionData, Proposal, ProposalSection


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# --- Sample data builders ---

def sample_pricing_data(**overrides) -> PricingSectionData:
    """Two items, no section discount/tax: 2 × $50 and 1 × $250 → $350."""
    data = {
        "items": [
            PricingItem(id="item-1", description="Discovery workshop", quantity=2, unit_price=50),
            PricingItem(id="item-2", description="Design system", quantity=1, unit_price=250),
        ],
        "currency": "USD",
    }
    data.update(overrides)
    return PricingSectionData(**data)


def sample_proposal(**overrides) -> Proposal:
    """Proposal with one text section and one structured pricing section."""
    data = {
        "id": "proposal-1",
        "user_id": "user-1",
        "title": "Website Redesign",
        "created_at": datetime(2026, 3, 5, 9, 30),
        "sections": [
            ProposalSection(
                id="section-about",
                type="about",
                title="About Us",
                content="<h2>Who we are</h2><p>We design and build websites. Since 2010.</p>",
                order=0,
            ),
            ProposalSection(
                id="section-pricing",
                type="pricing",
                title="Investment",
                order=1,
                pricing_data=calculate_pricing_total(sample_pricing_data()),
            ),
        ],
    }
    data.update(overrides)
    return Proposal(**data)


@pytest.fixture
def proposal():
    return sample_proposal()


@pytest.fixture
def make_proposal():
    """Factory for proposals with field overrides."""
    return sample_proposal


@pytest.fixture
def pricing_data():
    return sample_pricing_data()
