from conftest import failing, make_lead_row, make_user, returning
from leadhub.repositories import admins as admins_repo
from leadhub.repositories import leads as leads_repo
from leadhub.repositories import targets as targets_repo


def sample_leads(n):
    return [
        make_lead_row(i, stage="closing" if i % 3 == 0 else "on_progress",
                      final_price=100000 if i % 3 == 0 else None,
                      assigned_admin_id=1 + i % 2)
        for i in range(1, n + 1)
    ]


class TestDashboard:
    def test_summary_recent_leads_and_top_admins(self, client, login_as, monkeypatch):
        login_as("admin")
        monkeypatch.setattr(leads_repo, "list_leads", returning(sample_leads(12)))
        monkeypatch.setattr(admins_repo, "list_admins", returning([make_user("admin", 1), make_user("admin", 2)]))

        body = client.get("/dashboard").json()
        assert body["stats"]["total_leads"] == 12
        assert body["stats"]["total_closings"] == 4
        assert body["stats"]["total_revenue"] == 400000
        assert len(body["recent_leads"]) == 10
        assert len(body["top_admins"]) == 2

    def test_database_outage_degrades_to_zeroes(self, client, login_as, monkeypatch):
        login_as("handle_customer")
        monkeypatch.setattr(leads_repo, "list_leads", failing())
        monkeypatch.setattr(admins_repo, "list_admins", failing())

        resp = client.get("/dashboard")
        assert resp.status_code == 200
        body = resp.json()
        assert body["stats"]["total_leads"] == 0
        assert body["stats"]["conversion_rate"] == 0
        assert body["recent_leads"] == []


class TestAnalytics:
    def test_report_sections(self, client, login_as, monkeypatch):
        login_as("admin")
        monkeypatch.setattr(leads_repo, "list_leads", returning(sample_leads(3)))
        monkeypatch.setattr(admins_repo, "list_admins", returning([make_user("admin", 1)]))

        body = client.get("/analytics").json()
        assert body["stats"]["total_leads"] == 3
        assert body["product_stats"][0]["label"] == "Course A - Basic"
        assert body["source_stats"][0]["key"] == "Instagram"
        assert len(body["monthly_trend"]) == 6

    def test_target_report_for_requested_month(self, client, login_as, monkeypatch):
        login_as("admin")
        monkeypatch.setattr(leads_repo, "list_leads", returning(sample_leads(6)))
        monkeypatch.setattr(targets_repo, "list_targets", returning([{
            "id": 1, "admin_id": 2, "admin_name": "User 2", "month": 10, "year": 2026,
            "monthly_target": 4, "daily_target": 0,
        }]))

        body = client.get("/analytics/targets", params={"month": 10, "year": 2026}).json()
        assert (body["month"], body["year"]) == (10, 2026)
        row = body["targets"][0]
        # closings are leads 3 and 6; only lead 3 belongs to admin 2
        assert row["actual_closings"] == 1
        assert row["progress"] == 25

    def test_requires_login(self, client):
        assert client.get("/analytics").status_code == 401
