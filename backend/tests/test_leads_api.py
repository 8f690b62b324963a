from datetime import datetime, timezone

import pytest

from conftest import failing, make_lead_row, returning
from leadhub.repositories import admins as admins_repo
from leadhub.repositories import handle_customers as handle_customers_repo
from leadhub.repositories import leads as leads_repo

ROWS = [
    make_lead_row(1, name="Siti Aminah", phone="081111", temperature="Hot"),
    make_lead_row(2, name="Joko", phone="082222", product_name="Course B", stage="loss"),
    make_lead_row(3, name="Rina", phone="083333", stage="closing", final_price=500000,
                  payment_type="full_transfer", package_taken=True, assigned_admin_id=2,
                  closing_date=datetime(2026, 10, 3, 10, 0, tzinfo=timezone.utc)),
]


@pytest.fixture
def store(monkeypatch):
    """In-memory leads table behind the repository functions."""
    rows = {row["id"]: dict(row) for row in ROWS}
    spawned = []
    # lead 3 closed earlier and already has its handle-customer record
    with_record = {3}

    async def list_leads(limit=None):
        return list(rows.values())

    async def get_lead(lead_id):
        return rows.get(lead_id)

    async def update_lead(lead_id, values):
        rows[lead_id].update(values)
        return rows[lead_id]

    async def create_from_lead(lead_id, assigned_hc_id):
        if lead_id in with_record:
            return None
        with_record.add(lead_id)
        spawned.append((lead_id, assigned_hc_id))
        return {"id": len(spawned)}

    monkeypatch.setattr(leads_repo, "list_leads", list_leads)
    monkeypatch.setattr(leads_repo, "get_lead", get_lead)
    monkeypatch.setattr(leads_repo, "update_lead", update_lead)
    monkeypatch.setattr(handle_customers_repo, "create_from_lead", create_from_lead)
    monkeypatch.setattr(admins_repo, "pick_handle_customer_agent", returning({"id": 7, "name": "Hana"}))
    return {"rows": rows, "spawned": spawned}


class TestAccess:
    def test_requires_authentication(self, client, store):
        assert client.get("/leads").status_code == 401

    def test_every_role_can_work_leads(self, client, store, login_as):
        for role in ("admin", "handle_customer", "super_admin"):
            login_as(role)
            assert client.get("/leads").status_code == 200


class TestListing:
    def test_lists_all_leads(self, client, store, login_as):
        login_as("admin")
        body = client.get("/leads").json()
        assert body["total"] == 3
        assert body["count"] == 3

    def test_search_matches_name_phone_and_product(self, client, store, login_as):
        login_as("admin")
        assert [l["id"] for l in client.get("/leads", params={"search": "siti"}).json()["leads"]] == [1]
        assert [l["id"] for l in client.get("/leads", params={"search": "08222"}).json()["leads"]] == [2]
        assert [l["id"] for l in client.get("/leads", params={"search": "course b"}).json()["leads"]] == [2]

    def test_filters_combine(self, client, store, login_as):
        login_as("admin")
        body = client.get("/leads", params={"stage": "closing", "assigned_admin_id": 2}).json()
        assert body["total"] == 3
        assert [l["id"] for l in body["leads"]] == [3]

    def test_read_failure_shows_empty_list(self, client, store, login_as, monkeypatch):
        login_as("admin")
        monkeypatch.setattr(leads_repo, "list_leads", failing())
        resp = client.get("/leads")
        assert resp.status_code == 200
        assert resp.json() == {"total": 0, "count": 0, "leads": []}

    def test_unknown_lead(self, client, store, login_as):
        login_as("admin")
        assert client.get("/leads/42").status_code == 404


class TestUpdate:
    def test_closing_stamps_date_and_spawns_handle_customer(self, client, store, login_as):
        login_as("admin")
        resp = client.patch("/leads/1", json={"stage": "closing", "payment_type": "dp",
                                              "dp_amount": 100000, "final_price": 500000})
        assert resp.status_code == 200
        body = resp.json()
        assert body["stage"] == "closing"
        assert body["closing_date"] is not None
        assert body["package_taken"] is True
        assert body["dp_amount"] == 100000
        assert store["spawned"] == [(1, 7)]

    def test_resaving_a_closed_lead_does_not_spawn_again(self, client, store, login_as):
        login_as("admin")
        before = store["rows"][3]["closing_date"]
        resp = client.patch("/leads/3", json={"follow_up_notes": "paid in full"})
        assert resp.status_code == 200
        assert store["spawned"] == []
        assert store["rows"][3]["closing_date"] == before

    def test_leaving_closing_clears_payment(self, client, store, login_as):
        login_as("admin")
        body = client.patch("/leads/3", json={"stage": "loss"}).json()
        assert body["payment_type"] is None
        assert body["closing_date"] is None
        assert body["package_taken"] is False
        assert body["final_price"] == 500000

    def test_invalid_stage_is_rejected(self, client, store, login_as):
        login_as("admin")
        assert client.patch("/leads/1", json={"stage": "won"}).status_code == 422

    @pytest.mark.parametrize("field", ["stage", "temperature", "follow_up_status"])
    def test_null_for_required_column_is_rejected(self, client, store, login_as, field):
        login_as("admin")
        resp = client.patch("/leads/3", json={field: None})
        assert resp.status_code == 422
        assert store["rows"][3]["stage"] == "closing"
        assert store["rows"][3]["payment_type"] == "full_transfer"

    def test_assignee_can_be_cleared(self, client, store, login_as):
        login_as("admin")
        body = client.patch("/leads/1", json={"assigned_admin_id": None}).json()
        assert body["assigned_admin_id"] is None

    def test_failed_spawn_is_retried_on_next_save(self, client, store, login_as, monkeypatch):
        login_as("admin")
        working_spawn = handle_customers_repo.create_from_lead
        monkeypatch.setattr(handle_customers_repo, "create_from_lead", failing())
        resp = client.patch("/leads/1", json={"stage": "closing"})
        assert resp.status_code == 500
        assert store["rows"][1]["stage"] == "closing"

        monkeypatch.setattr(handle_customers_repo, "create_from_lead", working_spawn)
        resp = client.patch("/leads/1", json={"follow_up_notes": "retry"})
        assert resp.status_code == 200
        assert store["spawned"] == [(1, 7)]

    def test_write_failure_keeps_record(self, client, store, login_as, monkeypatch):
        login_as("admin")
        monkeypatch.setattr(leads_repo, "update_lead", failing())
        resp = client.patch("/leads/1", json={"stage": "closing"})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to update lead"
        assert store["rows"][1]["stage"] == "on_progress"
        assert store["spawned"] == []


class TestAssignees:
    def test_lists_active_staff(self, client, login_as, monkeypatch):
        login_as("admin")
        monkeypatch.setattr(admins_repo, "list_admins", returning([
            {"id": 1, "name": "Ani", "role": "admin"},
            {"id": 2, "name": "Budi", "role": "super_admin"},
        ]))
        assert [a["name"] for a in client.get("/leads/assignees").json()] == ["Ani", "Budi"]
