"""
Tests for dashboard statistics.
"""
from datetime import datetime, timedelta, timezone

from uerra.config.backend import REPORT_UPDATES, REPORTS
from uerra.services.analytics_service import AnalyticsService
from conftest import add_user


def add_report(backend, status="pending", category_id="fire", created_at=None, resolved_at=None, priority="medium", title=None):
    report = backend.insert(REPORTS, {
        "title": title,
        "priority": priority,
        "user_id": "citizen-1",
        "category_id": category_id,
        "description": "Smoke coming from the building",
        "status": status,
        "assigned_agency_ids": [],
    })
    patch = {}
    if created_at:
        patch["created_at"] = created_at
    if resolved_at:
        patch["resolved_at"] = resolved_at
    if patch:
        # update() stamps updated_at only, so created_at can be backdated
        backend.update(REPORTS, report["id"], patch)
    return report["id"]


class TestDashboardStats:

    def test_counts(self, backend, responder):
        add_user(backend, "responder-2", role="agency", agency_id="pnp", is_active=False)
        now = datetime.now(timezone.utc)
        add_report(backend, "pending")
        add_report(backend, "acknowledged")
        add_report(backend, "in_progress")
        add_report(backend, "cancelled")
        add_report(backend, "resolved", created_at=now - timedelta(minutes=30), resolved_at=now)

        stats = AnalyticsService(backend).dashboard_stats(now=now)
        assert stats["active_reports"] == 3
        assert stats["responders_online"] == 1
        assert stats["resolved_today"] == 1
        assert stats["avg_response_minutes"] == 30
        assert stats["avg_response_time"] == "30m"

    def test_no_resolutions(self, backend):
        stats = AnalyticsService(backend).dashboard_stats()
        assert stats["avg_response_minutes"] is None
        assert stats["avg_response_time"] == "-"


class TestCharts:

    def test_category_distribution(self, backend):
        add_report(backend, category_id="fire")
        add_report(backend, category_id="fire")
        add_report(backend, category_id="unknown")

        distribution = AnalyticsService(backend).category_distribution()
        assert distribution[0] == {"category_id": "fire", "name": "Fire", "color": "#d32f2f", "count": 2}
        assert distribution[1]["name"] == "Uncategorized"

    def test_reports_over_time(self, backend):
        now = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)
        add_report(backend, created_at=now)
        add_report(backend, created_at=now - timedelta(days=2))
        add_report(backend, created_at=now - timedelta(days=30))

        timeline = AnalyticsService(backend).reports_over_time(days=7, now=now)
        assert len(timeline) == 7
        assert timeline[-1] == {"date": "2024-06-10", "count": 1}
        assert timeline[-3] == {"date": "2024-06-08", "count": 1}
        assert sum(day["count"] for day in timeline) == 2

    def test_status_distribution(self, backend):
        now = datetime.now(timezone.utc)
        add_report(backend, "pending")
        add_report(backend, "pending")
        add_report(backend, "in_progress")
        add_report(backend, "resolved", created_at=now - timedelta(days=40))

        distribution = AnalyticsService(backend).status_distribution(days=30, now=now)
        assert distribution == [
            {"value": "pending", "name": "Pending", "color": "#FFBB28", "count": 2},
            {"value": "in_progress", "name": "In Progress", "color": "#0088FE", "count": 1},
        ]

    def test_priority_distribution(self, backend):
        now = datetime.now(timezone.utc)
        add_report(backend, priority="critical")
        add_report(backend, priority="low")
        add_report(backend, priority="low")

        distribution = AnalyticsService(backend).priority_distribution(now=now)
        assert [(d["value"], d["count"]) for d in distribution] == [("low", 2), ("critical", 1)]
        assert distribution[-1]["color"] == "#FF0000"

    def test_empty_range(self, backend):
        assert AnalyticsService(backend).status_distribution() == []
        assert AnalyticsService(backend).priority_distribution() == []


class TestActivityLog:

    def add_update(self, backend, report_id, user_id, status, created_at):
        entry = backend.insert(REPORT_UPDATES, {
            "report_id": report_id,
            "user_id": user_id,
            "status": status,
            "notes": f"Status changed to {status}",
            "update_type": "status_change",
            "is_public": True,
        })
        backend.update(REPORT_UPDATES, entry["id"], {"created_at": created_at})
        return entry["id"]

    def test_newest_first_with_user_and_report(self, backend, citizen, responder):
        now = datetime.now(timezone.utc)
        titled = add_report(backend, title="Warehouse fire")
        untitled = add_report(backend)
        older = self.add_update(backend, titled, "citizen-1", "pending", now - timedelta(hours=2))
        newer = self.add_update(backend, untitled, "responder-1", "acknowledged", now - timedelta(hours=1))

        log = AnalyticsService(backend).activity_log(days=1, now=now)
        assert [entry["id"] for entry in log] == [newer, older]
        assert log[0]["report_title"] == "Emergency Report"
        assert log[0]["user_role"] == "agency"
        assert log[1]["report_title"] == "Warehouse fire"
        assert log[1]["user_email"] == "citizen-1@example.com"

    def test_date_range_and_limit(self, backend, citizen):
        now = datetime.now(timezone.utc)
        report_id = add_report(backend)
        self.add_update(backend, report_id, "citizen-1", "pending", now - timedelta(days=10))
        for hours in (1, 2, 3):
            self.add_update(backend, report_id, "citizen-1", "pending", now - timedelta(hours=hours))

        service = AnalyticsService(backend)
        assert len(service.activity_log(days=7, now=now)) == 3
        assert len(service.activity_log(days=7, limit=2, now=now)) == 2
        assert len(service.activity_log(days=30, now=now)) == 4

    def test_unknown_user_and_deleted_report(self, backend):
        now = datetime.now(timezone.utc)
        self.add_update(backend, "gone", "ghost", "cancelled", now - timedelta(minutes=5))

        entry = AnalyticsService(backend).activity_log(now=now)[0]
        assert entry["user_name"] is None
        assert entry["report_title"] == "Emergency Report"


class TestSystemInfo:

    def test_record_counts(self, backend, citizen):
        info = AnalyticsService(backend).system_info()
        assert info["records"]["categories"] == 1
        assert info["records"]["agencies"] == 2
        assert info["records"]["users"] == 1
        assert info["total_records"] == 4
        assert info["health"]["overall"] == "Healthy"
