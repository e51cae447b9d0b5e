"""
Storefront project intake tests: online quote request → client, project, quote, treatments.

Tests:
1-6.   Validation (customer, items, non-finite values, limits, email trimming)
7-10.  Records created (client, project, quote, rooms, treatments, activity, notification)
11-15. Existing client reuse and quote numbering (unique per account, retried when taken)
16.    Missing fabric rolls back everything
"""

import json
from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from storefront import models
from storefront import project_intake

PROJECT_URL = "/api/storefront/project"


def _request(demo_account, **overrides):
    body = {
        **demo_account,
        "customer": {"name": "Ada Lovelace", "email": "  Ada@Example.com ", "phone": " 0123 "},
        "items": [
            {"fabric_id": "fab-linen-natural", "template_id": "tpl-wave",
             "width_mm": 1000, "drop_mm": 2000, "room_name": "Lounge",
             "options": {"track": "track-standard"}, "notes": "Left stack"},
            {"width_mm": 1200, "drop_mm": 2400, "quantity": 2, "room_name": "Lounge"},
            {"width_mm": 800, "drop_mm": 1200},
        ],
        "message": "Please call after 5pm",
    }
    body.update(overrides)
    return body


# ============================================================
# Validation
# ============================================================

def test_preflight(client):
    resp = client.options(PROJECT_URL)
    assert resp.status_code == 204
    assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.parametrize("customer,error", [
    (None, "customer.name and customer.email are required"),
    ({"name": "Ada"}, "customer.name and customer.email are required"),
    ({"name": "Ada", "email": "not-an-email"}, "Invalid email format"),
    ({"name": "Ada", "email": "ada @example.com"}, "Invalid email format"),
    ({"name": "Ada", "email": "   "}, "Invalid email format"),
])
def test_customer_validation(client, demo_account, customer, error):
    resp = client.post(PROJECT_URL, json=_request(demo_account, customer=customer))
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": error}


def test_items_required(client, demo_account):
    resp = client.post(PROJECT_URL, json=_request(demo_account, items=[]))
    assert resp.status_code == 400
    assert resp.json()["error"] == "items array is required and cannot be empty"


def test_item_dimensions_numbered(client, demo_account):
    items = [{"width_mm": 1000, "drop_mm": 2000}, {"width_mm": 1000}]
    resp = client.post(PROJECT_URL, json=_request(demo_account, items=items))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Item 2: width_mm and drop_mm are required"


@pytest.mark.parametrize("item,error", [
    ({"width_mm": float("inf"), "drop_mm": 2000}, "Item 2: width_mm and drop_mm are required"),
    ({"width_mm": 1000, "drop_mm": 100001}, "Item 2: width_mm and drop_mm must be at most 100000"),
    ({"width_mm": 1000, "drop_mm": 2000, "quantity": 10001}, "Item 2: quantity must be at most 10000"),
])
def test_item_limits_numbered(client, demo_account, item, error):
    body = json.dumps(_request(demo_account, items=[{"width_mm": 1000, "drop_mm": 2000}, item]))
    resp = client.post(PROJECT_URL, content=body, headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"] == error


def test_email_is_trimmed_before_checking(client, demo_account, db):
    resp = client.post(PROJECT_URL, json=_request(
        demo_account, customer={"name": "Ada", "email": "\tada@example.com  "},
    ))
    assert resp.status_code == 200
    assert db.query(models.Client).one().email == "ada@example.com"


# ============================================================
# Records created
# ============================================================

def test_project_response_totals(client, demo_account):
    """
    Item 1: linen 1000×2000 + track 25 → 165 + 25 = 190
    Item 2: no fabric, qty 2 → 100 (unit 50)
    Item 3: no fabric → 50
    Subtotal 340, tax 20% = 68, total 408.
    """
    resp = client.post(PROJECT_URL, json=_request(demo_account))
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["is_new_client"] is True
    assert data["project"]["title"] == "Online Quote - Ada Lovelace"
    assert data["project"]["quote_number"] == f"Q-{datetime.utcnow().year}-0001"
    assert data["quote"] == {
        "id": data["quote"]["id"],
        "subtotal": 340.0,
        "tax_rate": 20.0,
        "tax_amount": 68.0,
        "total": 408.0,
        "currency": "GBP",
    }

    treatments = data["treatments"]
    assert [t["room_name"] for t in treatments] == ["Lounge", "Lounge", "Room 3"]
    assert treatments[0]["fabric_name"] == "Natural Linen"
    assert treatments[0]["total_price"] == 190.0
    assert treatments[1]["unit_price"] == 50.0
    assert treatments[1]["total_price"] == 100.0
    assert treatments[2]["fabric_name"] is None


def test_records_persisted(client, demo_account, db):
    data = client.post(PROJECT_URL, json=_request(demo_account)).json()

    client_row = db.query(models.Client).filter(models.Client.id == data["client_id"]).one()
    assert client_row.email == "ada@example.com"
    assert client_row.phone == "0123"
    assert client_row.lead_source == "storefront"
    assert client_row.funnel_stage == "lead"
    assert client_row.notes == "Online quote request: Please call after 5pm"

    project = db.query(models.Project).filter(models.Project.id == data["project"]["id"]).one()
    assert project.status == "planning"
    assert project.description == "Please call after 5pm"

    quote = db.query(models.Quote).filter(models.Quote.id == data["quote"]["id"]).one()
    assert quote.status == "draft"
    assert quote.total_amount == 408.0

    rooms = db.query(models.Room).filter(models.Room.project_id == project.id).all()
    assert sorted(r.name for r in rooms) == ["Lounge", "Room 3"]

    treatments = db.query(models.Treatment).all()
    assert len(treatments) == 3
    first = next(t for t in treatments if t.name == "Natural Linen")
    assert first.measurements == {"width": 1000, "height": 2000, "unit": "mm"}
    assert first.fabric_details == {"fabric_id": "fab-linen-natural", "fabric_name": "Natural Linen"}
    assert first.options == {"track": "track-standard"}
    assert first.notes == "Left stack"
    assert {t.name for t in treatments} == {"Natural Linen", "Treatment 2", "Treatment 3"}


def test_activity_and_notification(client, demo_account, db):
    data = client.post(PROJECT_URL, json=_request(demo_account, source="widget")).json()

    activity = db.query(models.ClientActivity).one()
    assert activity.client_id == data["client_id"]
    assert activity.title == "Online Quote Request"
    assert activity.description == "Quote created via widget with 3 item(s). Total: GBP 408.00"
    assert activity.metadata_json["items_count"] == 3

    notification = db.query(models.UserNotification).one()
    assert notification.user_id == demo_account["account_id"]
    assert notification.title == "New Online Quote: Ada Lovelace"
    assert notification.message == "3 item(s) - GBP 408.00"
    assert notification.priority == "high"


def test_wrong_key_creates_nothing(client, demo_account, db):
    resp = client.post(PROJECT_URL, json=_request(demo_account, api_key="nope"))
    assert resp.status_code == 401
    assert db.query(models.Client).count() == 0


# ============================================================
# Client reuse and numbering
# ============================================================

def test_existing_client_reused(client, demo_account):
    first = client.post(PROJECT_URL, json=_request(demo_account)).json()
    second = client.post(PROJECT_URL, json=_request(
        demo_account, customer={"name": "Ada L.", "email": "ada@example.com"},
    )).json()
    assert second["is_new_client"] is False
    assert second["client_id"] == first["client_id"]
    assert second["project"]["quote_number"] == f"Q-{datetime.utcnow().year}-0002"


def test_quote_numbers_are_per_account(client, demo_account, db):
    db.add(models.AccountSettings(account_owner_id="other", storefront_api_key="other-key"))
    db.commit()
    client.post(PROJECT_URL, json=_request(demo_account))
    resp = client.post(PROJECT_URL, json=_request(
        {"account_id": "other", "api_key": "other-key"},
        items=[{"width_mm": 1000, "drop_mm": 2000}],
    ))
    data = resp.json()
    assert data["project"]["quote_number"].endswith("-0001")
    assert data["quote"]["currency"] == "EUR"
    assert data["quote"]["tax_amount"] == 0.0


def test_quote_number_unique_per_account(client, demo_account, db):
    data = client.post(PROJECT_URL, json=_request(demo_account)).json()
    db.add(models.Quote(
        user_id=demo_account["account_id"], client_id=data["client_id"],
        project_id=data["project"]["id"], quote_number=data["project"]["quote_number"],
    ))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_taken_quote_number_is_retried(client, demo_account, db, monkeypatch):
    client.post(PROJECT_URL, json=_request(demo_account))
    taken = f"Q-{datetime.utcnow().year}-0001"
    real = project_intake.generate_quote_number
    calls = []

    def stale_first(session, account_id):
        # first attempt races with the request above and reuses its number
        calls.append(account_id)
        return taken if len(calls) == 1 else real(session, account_id)

    monkeypatch.setattr(project_intake, "generate_quote_number", stale_first)
    resp = client.post(PROJECT_URL, json=_request(demo_account))

    assert resp.status_code == 200
    assert resp.json()["project"]["quote_number"] == f"Q-{datetime.utcnow().year}-0002"
    assert len(calls) == 2
    assert db.query(models.Quote).count() == 2
    assert db.query(models.Project).count() == 2
    assert db.query(models.Client).count() == 1


def test_quote_number_retries_are_bounded(client, demo_account, db, monkeypatch):
    client.post(PROJECT_URL, json=_request(demo_account))
    taken = f"Q-{datetime.utcnow().year}-0001"
    monkeypatch.setattr(project_intake, "generate_quote_number", lambda session, account_id: taken)

    resp = client.post(PROJECT_URL, json=_request(demo_account))
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Internal server error"}
    assert db.query(models.Quote).count() == 1
    assert db.query(models.Project).count() == 1


# ============================================================
# Rollback
# ============================================================

def test_missing_fabric_rolls_back(client, demo_account, db):
    items = [{"width_mm": 1000, "drop_mm": 2000}, {"fabric_id": "fab-gone", "width_mm": 1000, "drop_mm": 2000}]
    resp = client.post(PROJECT_URL, json=_request(demo_account, items=items))
    assert resp.status_code == 404
    assert resp.json()["error"] == "Fabric not found: fab-gone"
    assert db.query(models.Client).count() == 0
    assert db.query(models.Project).count() == 0
    assert db.query(models.Treatment).count() == 0
