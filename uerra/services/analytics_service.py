"""
Analytics Service - dashboard statistics for admins.

Provides the numbers behind the dashboard cards, the category pie chart,
the reports-over-time graph, the status and priority charts, the activity
log and the system information page.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
import logging

from uerra.config.backend import ALL_COLLECTIONS, BackendClient, BackendError, CATEGORIES, REPORT_UPDATES, REPORTS, USERS
from uerra.core.errors import PersistenceError
from uerra.core.settings import settings
from uerra.models.report import Priority, ReportStatus
from uerra.models.user import UserRole
from uerra.utils.firestore_helpers import start_of_day, to_datetime

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = [
    ReportStatus.PENDING.value,
    ReportStatus.ACKNOWLEDGED.value,
    ReportStatus.IN_PROGRESS.value,
]

# Chart colors used by the analytics dashboard
STATUS_COLORS = {
    ReportStatus.PENDING.value: "#FFBB28",
    ReportStatus.ACKNOWLEDGED.value: "#00C49F",
    ReportStatus.IN_PROGRESS.value: "#0088FE",
    ReportStatus.RESOLVED.value: "#00C49F",
    ReportStatus.CANCELLED.value: "#FF8042",
}

PRIORITY_COLORS = {
    Priority.LOW.value: "#00C49F",
    Priority.MEDIUM.value: "#FFBB28",
    Priority.HIGH.value: "#FF8042",
    Priority.CRITICAL.value: "#FF0000",
}


class AnalyticsService:

    def __init__(self, backend: BackendClient):
        self.backend = backend

    def dashboard_stats(self, now: Optional[datetime] = None) -> Dict:
        """
        Dashboard cards.

        - active_reports: pending, acknowledged or in progress
        - responders_online: active agency accounts
        - avg_response_minutes: created → resolved, for reports resolved today (UTC)
        - resolved_today
        """
        now = now or datetime.now(timezone.utc)
        today = start_of_day(now)

        try:
            active = self.backend.count(REPORTS, [("status", "in", ACTIVE_STATUSES)])
            responders = self.backend.count(USERS, [
                ("role", "==", UserRole.AGENCY.value),
                ("is_active", "==", True),
            ])
            resolved_today = self.backend.query(REPORTS, [
                ("status", "==", ReportStatus.RESOLVED.value),
                ("resolved_at", ">=", today),
            ])
        except BackendError as e:
            logger.error(f"Failed to compute dashboard stats: {e}", exc_info=True)
            raise PersistenceError(f"Failed to compute statistics: {e}")

        durations = []
        for report in resolved_today:
            created = to_datetime(report.get("created_at"))
            resolved = to_datetime(report.get("resolved_at"))
            if created and resolved:
                minutes = (resolved - created).total_seconds() / 60
                if minutes > 0:
                    durations.append(minutes)

        avg_minutes = round(sum(durations) / len(durations)) if durations else None

        return {
            "active_reports": active,
            "responders_online": responders,
            "avg_response_minutes": avg_minutes,
            "avg_response_time": f"{avg_minutes}m" if avg_minutes is not None else "-",
            "resolved_today": len(resolved_today),
        }

    def category_distribution(self) -> List[Dict]:
        """Report counts per category, largest first."""
        try:
            reports = self.backend.query(REPORTS)
            categories = {c["id"]: c for c in self.backend.query(CATEGORIES)}
        except BackendError as e:
            logger.error(f"Failed to compute category distribution: {e}", exc_info=True)
            raise PersistenceError(f"Failed to compute statistics: {e}")

        counts = Counter(report.get("category_id") for report in reports)
        distribution = []
        for category_id, count in counts.items():
            category = categories.get(category_id) or {}
            distribution.append({
                "category_id": category_id,
                "name": category.get("name") or "Uncategorized",
                "color": category.get("color") or "#9e9e9e",
                "count": count,
            })

        distribution.sort(key=lambda item: (-item["count"], item["name"]))
        return distribution

    def reports_over_time(self, days: int = 7, now: Optional[datetime] = None) -> List[Dict]:
        """Reports submitted per UTC day for the last `days` days, oldest first."""
        days = max(1, days)
        now = now or datetime.now(timezone.utc)
        start = start_of_day(now) - timedelta(days=days - 1)

        try:
            reports = self.backend.query(REPORTS, [("created_at", ">=", start)])
        except BackendError as e:
            logger.error(f"Failed to compute report timeline: {e}", exc_info=True)
            raise PersistenceError(f"Failed to compute statistics: {e}")

        counts = Counter()
        for report in reports:
            created = to_datetime(report.get("created_at"))
            if created:
                counts[created.astimezone(timezone.utc).date().isoformat()] += 1

        timeline = []
        for offset in range(days):
            day = (start + timedelta(days=offset)).date().isoformat()
            timeline.append({"date": day, "count": counts.get(day, 0)})
        return timeline

    def _reports_since(self, days: int, now: Optional[datetime]) -> List[Dict]:
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=max(1, days))
        try:
            return self.backend.query(REPORTS, [("created_at", ">=", since)])
        except BackendError as e:
            logger.error(f"Failed to load reports for the last {days} days: {e}", exc_info=True)
            raise PersistenceError(f"Failed to compute statistics: {e}")

    @staticmethod
    def _distribution(reports: List[Dict], field: str, colors: Dict[str, str]) -> List[Dict]:
        counts = Counter(report.get(field) for report in reports)
        return [
            {
                "value": value,
                "name": value.replace("_", " ").title(),
                "color": color,
                "count": counts[value],
            }
            for value, color in colors.items()
            if counts[value] > 0
        ]

    def status_distribution(self, days: int = 30, now: Optional[datetime] = None) -> List[Dict]:
        """Report counts per status over the last `days` days, lifecycle order, empty statuses left out."""
        return self._distribution(self._reports_since(days, now), "status", STATUS_COLORS)

    def priority_distribution(self, days: int = 30, now: Optional[datetime] = None) -> List[Dict]:
        """Report counts per priority over the last `days` days, lowest first, empty priorities left out."""
        return self._distribution(self._reports_since(days, now), "priority", PRIORITY_COLORS)

    def activity_log(self, days: int = 30, limit: int = 50, now: Optional[datetime] = None) -> List[Dict]:
        """
        Recent report updates, newest first, with who made them and on which report.

        Args:
            days: how far back to look
            limit: maximum number of entries
        """
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=max(1, days))

        try:
            updates = self.backend.query(
                REPORT_UPDATES, [("created_at", ">=", since)], order_by="created_at", limit=limit
            )
            users = {u["id"]: u for u in self.backend.query(USERS)}
            reports = {}
            for report_id in {u.get("report_id") for u in updates if u.get("report_id")}:
                reports[report_id] = self.backend.get(REPORTS, report_id)
        except BackendError as e:
            logger.error(f"Failed to load activity log: {e}", exc_info=True)
            raise PersistenceError(f"Failed to fetch activity log: {e}")

        activity = []
        for update in updates:
            user = users.get(update.get("user_id")) or {}
            report = reports.get(update.get("report_id")) or {}
            activity.append({
                "id": update["id"],
                "report_id": update.get("report_id"),
                "report_title": report.get("title") or "Emergency Report",
                "status": update.get("status"),
                "update_type": update.get("update_type"),
                "notes": update.get("notes", ""),
                "user_id": update.get("user_id"),
                "user_name": user.get("name"),
                "user_email": user.get("email"),
                "user_role": user.get("role"),
                "created_at": to_datetime(update.get("created_at")),
            })
        return activity


    def system_info(self) -> Dict:
        """Record counts per collection plus backend health."""
        try:
            stats = {name: self.backend.count(name) for name in ALL_COLLECTIONS}
        except BackendError as e:
            logger.error(f"Failed to count records: {e}", exc_info=True)
            raise PersistenceError(f"Failed to compute statistics: {e}")

        health = self.backend.ping()
        overall = "Healthy" if all(v in ("connected", "available") for v in health.values()) else "Warning"

        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "records": stats,
            "total_records": sum(stats.values()),
            "health": {"overall": overall, **health},
            "checked_at": datetime.now(timezone.utc).isoformat(),
        }
