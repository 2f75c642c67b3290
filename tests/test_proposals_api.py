"""
Proposal storage and HTTP API tests — save / load / list / delete, layout and
preview endpoints, pricing endpoints.
"""

from outvoice import models
from outvoice.repository import ProposalRepository
from outvoice.schemas import ProposalSection


def _payload(proposal):
    return proposal.model_dump(mode="json", by_alias=True)


def _put(client, proposal):
    return client.put(f"/api/proposals/{proposal.id}", json=_payload(proposal))


# --- Repository ---

def test_repository_round_trip(db, proposal):
    repo = ProposalRepository(db)
    repo.save(proposal)

    loaded = repo.load("proposal-1")
    assert loaded.title == "Website Redesign"
    assert [s.id for s in loaded.sections] == ["section-about", "section-pricing"]
    assert loaded.sections[1].pricing_data.total == 350

    record = db.query(models.ProposalRecord).first()
    assert record.user_id == "user-1"
    assert "pricingData" in record.document_json["sections"][1]


def test_repository_keeps_created_at(db, make_proposal):
    repo = ProposalRepository(db)
    first = repo.save(make_proposal())
    second = repo.save(make_proposal(title="Renamed"))
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at
    assert repo.load("proposal-1").title == "Renamed"


def test_repository_missing_and_delete(db, proposal):
    repo = ProposalRepository(db)
    assert repo.load("nope") is None
    assert repo.delete("nope") is False
    repo.save(proposal)
    assert repo.delete("proposal-1") is True
    assert repo.load("proposal-1") is None


# --- Proposal endpoints ---

def test_put_recalculates_pricing(client, make_proposal, pricing_data):
    section = ProposalSection(id="s", type="pricing", title="Fees", order=0, pricing_data=pricing_data)
    proposal = make_proposal(sections=[section])
    assert pricing_data.total == 0

    resp = _put(client, proposal)
    assert resp.status_code == 200
    saved = resp.json()["sections"][0]["pricingData"]
    assert saved["subtotal"] == 350
    assert saved["total"] == 350
    assert [i["subtotal"] for i in saved["items"]] == [100, 250]


def test_put_accepts_camel_case(client):
    payload = {
        "id": "proposal-camel",
        "userId": "user-9",
        "title": "Camel",
        "titlePageStyle": {"theme": "dark", "layout": "left-aligned"},
        "sections": [],
    }
    resp = client.put("/api/proposals/proposal-camel", json=payload)
    assert resp.status_code == 200
    data = resp.json()
    assert data["userId"] == "user-9"
    assert data["titlePageStyle"]["layout"] == "left-aligned"
    assert data["status"] == "draft"


def test_put_id_mismatch(client, proposal):
    resp = client.put("/api/proposals/other-id", json=_payload(proposal))
    assert resp.status_code == 400


def test_put_invalid_layout_rejected(client, proposal):
    payload = _payload(proposal)
    payload["titlePageStyle"]["layout"] = "diagonal"
    resp = client.put(f"/api/proposals/{proposal.id}", json=payload)
    assert resp.status_code == 422


def test_get_proposal(client, proposal):
    _put(client, proposal)
    resp = client.get("/api/proposals/proposal-1")
    assert resp.status_code == 200
    assert resp.json()["title"] == "Website Redesign"


def test_get_missing_proposal(client):
    resp = client.get("/api/proposals/missing")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Proposal not found"


def test_resave_keeps_created_at(client, make_proposal):
    first = _put(client, make_proposal()).json()
    second = _put(client, make_proposal(created_at="2030-01-01T00:00:00")).json()
    assert second["createdAt"] == first["createdAt"]


def test_list_proposals_for_user(client, make_proposal):
    _put(client, make_proposal(id="p1"))
    _put(client, make_proposal(id="p2", title="Second"))
    _put(client, make_proposal(id="p3", user_id="someone-else"))

    resp = client.get("/api/proposals", params={"user_id": "user-1"})
    assert resp.status_code == 200
    summaries = resp.json()
    assert {s["id"] for s in summaries} == {"p1", "p2"}
    assert set(summaries[0]) == {"id", "userId", "title", "status", "updatedAt"}


def test_list_requires_user_id(client):
    assert client.get("/api/proposals").status_code == 422


def test_delete_proposal(client, proposal):
    _put(client, proposal)
    resp = client.delete("/api/proposals/proposal-1")
    assert resp.status_code == 200
    assert resp.json() == {"deleted": "proposal-1"}
    assert client.get("/api/proposals/proposal-1").status_code == 404
    assert client.delete("/api/proposals/proposal-1").status_code == 404


# --- Layout / preview ---

def test_layout_endpoint(client, proposal):
    _put(client, proposal)
    resp = client.get("/api/proposals/proposal-1/layout")
    assert resp.status_code == 200
    data = resp.json()
    assert data["title"] == "Website Redesign"
    assert [p["kind"] for p in data["pages"]] == ["title", "section", "section"]
    assert data["geometry"]["width"] == 210.0


def test_layout_endpoint_landscape_letter(client, proposal):
    _put(client, proposal)
    resp = client.get(
        "/api/proposals/proposal-1/layout",
        params={"format": "Letter", "orientation": "landscape"},
    )
    geometry = resp.json()["geometry"]
    assert (geometry["width"], geometry["height"]) == (279.4, 215.9)


def test_preview_endpoint(client, make_proposal):
    proposal = make_proposal(title="Design <Phase 2>")
    _put(client, proposal)
    resp = client.get("/api/proposals/proposal-1/preview")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    html = resp.text
    assert "<h1>Design &lt;Phase 2&gt;</h1>" in html
    assert "<h2>Who we are</h2>" in html
    assert "Discovery workshop" in html
    assert "$350.00" in html


# --- Pricing endpoints ---

def test_calculate_endpoint(client):
    payload = {
        "items": [{"id": "a", "description": "Design", "quantity": 2, "unitPrice": 50}],
        "discountPercentage": 10,
        "taxAmount": 500,
    }
    resp = client.post("/api/pricing/calculate", json=payload)
    assert resp.status_code == 200
    data = resp.json()
    assert data["items"][0]["subtotal"] == 100
    assert data["discountAmount"] == 10
    assert data["taxAmount"] == 500
    assert data["total"] == 590


def test_validate_endpoint(client):
    payload = {"items": [{"id": "a", "description": "", "quantity": -1, "unitPrice": 5}]}
    resp = client.post("/api/pricing/validate", json=payload)
    assert resp.status_code == 200
    assert resp.json() == {
        "valid": False,
        "errors": ["Item 1: Description is required", "Item 1: Quantity cannot be negative"],
    }


def test_currencies_endpoint(client):
    resp = client.get("/api/pricing/currencies")
    assert resp.json() == ["USD", "EUR", "GBP", "CAD", "AUD", "JPY"]


def test_health(client):
    resp = client.get("/health")
    assert resp.json() == {"status": "ok", "app": "outvoice"}
