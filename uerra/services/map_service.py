"""
Map service - report locations for the live incident map.

Today's reports (UTC) become pins with enough detail for a popup; older
reports are reduced to their coordinates for the heatmap layer. Reports
without a location are left off the map.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

from uerra.config.backend import BackendClient, BackendError, CATEGORIES, REPORTS
from uerra.core.errors import PersistenceError
from uerra.utils.firestore_helpers import start_of_day, to_datetime

logger = logging.getLogger(__name__)

PAST_LOCATION_LIMIT = 1000


def _coordinates(location) -> Optional[Dict[str, float]]:
    if not isinstance(location, dict):
        return None
    try:
        return {"lat": float(location["lat"]), "lng": float(location["lng"])}
    except (KeyError, TypeError, ValueError):
        return None


class MapService:

    def __init__(self, backend: BackendClient):
        self.backend = backend

    def map_reports(self, now: Optional[datetime] = None, past_limit: int = PAST_LOCATION_LIMIT) -> Dict[str, List[Dict]]:
        """
        Pins for today's reports and heatmap points for older ones.

        Returns:
            {"today": [...], "past": [...]}, both newest first
        """
        now = now or datetime.now(timezone.utc)
        today = start_of_day(now)

        try:
            todays = self.backend.query(REPORTS, [("created_at", ">=", today)], order_by="created_at")
            older = self.backend.query(REPORTS, [("created_at", "<", today)], order_by="created_at", limit=past_limit)
            categories = {c["id"]: c for c in self.backend.query(CATEGORIES)}
        except BackendError as e:
            logger.error(f"Failed to load map reports: {e}", exc_info=True)
            raise PersistenceError(f"Failed to fetch map reports: {e}")

        pins = []
        for report in todays:
            location = _coordinates(report.get("location"))
            if location is None:
                continue
            category = categories.get(report.get("category_id")) or {}
            pins.append({
                "id": report["id"],
                "description": report.get("description", ""),
                "location": location,
                "category_id": report.get("category_id"),
                "category_name": category.get("name"),
                "category_color": category.get("color"),
                "status": report.get("status"),
                "created_at": to_datetime(report.get("created_at")),
            })

        past = []
        for report in older:
            location = _coordinates(report.get("location"))
            if location is not None:
                past.append({
                    "id": report["id"],
                    "location": location,
                    "created_at": to_datetime(report.get("created_at")),
                })

        logger.info(f"Map feed: {len(pins)} pins today, {len(past)} past locations")
        return {"today": pins, "past": past}
