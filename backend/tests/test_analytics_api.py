"""API tests for /api/admin/analytics."""

import csv
from datetime import datetime, timedelta
from io import StringIO

from agency_admin.core.database import utcnow
from agency_admin.models import CalculatorType, LeadAttribution, LeadQuality

TRENDS_URL = "/api/admin/analytics/trends"
EXPORT_URL = "/api/admin/analytics/export"


class TestLeadTrends:
    def test_requires_a_token(self, client):
        assert client.get(TRENDS_URL).status_code == 401

    def test_defaults_to_thirty_days(self, client, auth_headers):
        data = client.get(TRENDS_URL, headers=auth_headers).json()

        assert len(data["dailyData"]) == 30
        assert data["endDate"] == utcnow().date().isoformat()
        assert data["startDate"] == data["dailyData"][0]["date"]

    def test_empty_window_is_zero_filled(self, client, auth_headers):
        data = client.get(TRENDS_URL, params={"days": 3}, headers=auth_headers).json()

        assert len(data["dailyData"]) == 3
        assert all(point["leads"] == 0 for point in data["dailyData"])
        assert [p["value"] for p in data["cumulativeLeads"]] == [0, 0, 0]
        assert [p["value"] for p in data["cumulativeConversions"]] == [0, 0, 0]

    def test_counts_recent_leads(self, client, auth_headers, make_lead):
        now = utcnow()
        make_lead(created_at=now - timedelta(minutes=1), lead_quality=LeadQuality.hot, converted=True)
        make_lead(created_at=now - timedelta(minutes=2), calculator_type=CalculatorType.texas_ttl_calculator)
        make_lead(created_at=now - timedelta(days=40))

        data = client.get(TRENDS_URL, params={"days": 7}, headers=auth_headers).json()

        assert sum(p["leads"] for p in data["dailyData"]) == 2
        assert sum(p["hot"] for p in data["dailyData"]) == 1
        assert sum(p["calculators"]["texas-ttl-calculator"] for p in data["dailyData"]) == 1
        assert data["cumulativeLeads"][-1]["value"] == 2
        assert data["cumulativeConversions"][-1]["value"] == 1

    def test_days_bounds(self, client, auth_headers):
        assert client.get(TRENDS_URL, params={"days": 0}, headers=auth_headers).status_code == 400
        assert client.get(TRENDS_URL, params={"days": 366}, headers=auth_headers).status_code == 400
        assert client.get(TRENDS_URL, params={"days": 365}, headers=auth_headers).status_code == 200


class TestLeadExport:
    def test_empty_export(self, client, auth_headers):
        response = client.get(EXPORT_URL, headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text == "No data to export"

    def test_export_rows_newest_first(self, client, auth_headers, make_lead):
        now = utcnow()
        make_lead(email="old@example.com", created_at=now - timedelta(days=2), name="Old, Lead")
        make_lead(email="new@example.com", created_at=now - timedelta(hours=1), contacted=True)

        response = client.get(EXPORT_URL, headers=auth_headers)

        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert "leads-export-" in response.headers["content-disposition"]

        rows = list(csv.reader(StringIO(response.text)))
        assert rows[0][:3] == ["ID", "Email", "Name"]
        assert [r[1] for r in rows[1:]] == ["new@example.com", "old@example.com"]
        assert rows[1][8] == "Yes"
        assert rows[2][2] == "Old, Lead"

    def test_export_filters(self, client, auth_headers, make_lead):
        make_lead(email="hot@example.com", lead_quality=LeadQuality.hot)
        make_lead(email="cost@example.com", calculator_type=CalculatorType.cost_estimator)

        by_quality = client.get(EXPORT_URL, params={"quality": "hot"}, headers=auth_headers)
        by_type = client.get(EXPORT_URL, params={"type": "cost-estimator"}, headers=auth_headers)

        assert "hot@example.com" in by_quality.text
        assert "cost@example.com" not in by_quality.text
        assert "cost@example.com" in by_type.text
        assert "hot@example.com" not in by_type.text

    def test_export_rejects_unknown_calculator(self, client, auth_headers):
        response = client.get(EXPORT_URL, params={"type": "mortgage"}, headers=auth_headers)

        assert response.status_code == 400
        assert "type" in response.json()["errors"]


def test_export_includes_latest_attribution(client, auth_headers, make_lead, db_session):
    lead = make_lead(email="utm@example.com", created_at=datetime(2026, 3, 10, 9, 0, 0))
    make_lead(email="direct@example.com", created_at=datetime(2026, 3, 9, 9, 0, 0))
    db_session.add_all([
        LeadAttribution(lead_id=lead.id, source="newsletter", landing_page="/old"),
        LeadAttribution(
            lead_id=lead.id,
            source="google",
            medium="cpc",
            campaign="spring",
            referrer="https://www.google.com/",
            landing_page="/roi-calculator",
        ),
    ])
    db_session.commit()

    response = client.get(EXPORT_URL, headers=auth_headers)

    rows = list(csv.DictReader(StringIO(response.text)))
    assert [r["Email"] for r in rows] == ["utm@example.com", "direct@example.com"]

    tagged, direct = rows
    assert tagged["Source"] == "google"
    assert tagged["Medium"] == "cpc"
    assert tagged["Campaign"] == "spring"
    assert tagged["Referrer"] == "https://www.google.com/"
    assert tagged["Landing Page"] == "/roi-calculator"
    assert tagged["Device Type"] == "" and tagged["Browser"] == ""
    assert tagged["Created At"] == "2026-03-10T09:00:00.000Z"
    assert direct["Source"] == "" and direct["Landing Page"] == ""
    assert direct["Contacted At"] == ""
