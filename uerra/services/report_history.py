"""
Report audit trail helpers.

ReportUpdate rows are append-only: this module only inserts and reads them.
"""

from typing import Dict, List, Optional
import logging

from uerra.config.backend import BackendClient, BackendError, CATEGORIES, REPORT_UPDATES
from uerra.core.errors import PersistenceError
from uerra.models.report import UpdateType

logger = logging.getLogger(__name__)


def record_update(
    backend: BackendClient,
    report_id: str,
    user_id: str,
    status: str,
    notes: str,
    update_type: UpdateType = UpdateType.STATUS_CHANGE,
    is_public: bool = True
) -> Optional[Dict]:
    """
    Append one audit entry for a report.

    Returns the stored entry, or None if the insert failed (logged, not raised).
    """
    try:
        entry = backend.insert(REPORT_UPDATES, {
            "report_id": report_id,
            "user_id": user_id,
            "status": status,
            "notes": notes,
            "update_type": update_type.value,
            "is_public": is_public,
        })
    except BackendError as e:
        logger.warning(f"Failed to record {update_type.value} update for report {report_id}: {e}")
        return None

    logger.info(f"Recorded {update_type.value} update for report {report_id} ({status})")
    return entry


def list_updates(backend: BackendClient, report_id: str) -> List[Dict]:
    """Audit entries for a report, oldest first."""
    try:
        return backend.query(
            REPORT_UPDATES,
            filters=[("report_id", "==", report_id)],
            order_by="created_at",
            descending=False
        )
    except BackendError as e:
        logger.error(f"Failed to load updates for report {report_id}: {e}", exc_info=True)
        raise PersistenceError(f"Failed to fetch report history: {e}")


def category_summary(category: Optional[Dict]) -> Optional[Dict]:
    if not category:
        return None
    return {
        "id": category["id"],
        "name": category.get("name"),
        "color": category.get("color"),
        "tips": category.get("tips", []),
        "suggested_equipment": category.get("suggested_equipment", []),
    }


def with_history(backend: BackendClient, reports: List[Dict]) -> List[Dict]:
    """Attach category summary and update history to each report."""
    if not reports:
        return reports

    try:
        categories = {c["id"]: c for c in backend.query(CATEGORIES)}
    except BackendError as e:
        logger.error(f"Failed to load categories: {e}", exc_info=True)
        raise PersistenceError(f"Failed to fetch categories: {e}")

    for report in reports:
        report["category"] = category_summary(categories.get(report.get("category_id")))
        report["updates"] = list_updates(backend, report["id"])
    return reports


def history_after_write(backend: BackendClient, report: Dict) -> Dict:
    """
    Attach history to a report that was just written.

    The write is already committed, so a failed history read is logged and
    the report comes back without category summary or updates.
    """
    try:
        return with_history(backend, [report])[0]
    except PersistenceError as e:
        logger.warning(f"Report {report.get('id')} saved but its history could not be loaded: {e.message}")
        report["category"] = None
        report["updates"] = []
        return report
