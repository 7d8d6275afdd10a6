"""
Firestore query and document helpers.

NOTE: For firebase_admin SDK, we use positional arguments for where().
The deprecation warning is just a warning - the functionality is still supported.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = ("created_at", "updated_at", "acknowledged_at", "resolved_at", "cancelled_at")


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "status", "==", "pending")
        query = where_filter(query, "assigned_agency_ids", "array_contains", agency_id)
    """
    return query.where(field_path, op_string, value)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a Firestore timestamp (or ISO string) to an aware datetime.

    Firestore returns DatetimeWithNanoseconds (a datetime subclass); older
    clients return Timestamp objects with to_datetime().
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if hasattr(value, "to_datetime"):
        return to_datetime(value.to_datetime())
    if isinstance(value, str):
        try:
            return to_datetime(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            logger.warning(f"Unparseable timestamp string: {value}")
            return None
    logger.warning(f"Unknown timestamp type: {type(value)}")
    return None


def document_to_dict(snapshot) -> Optional[Dict]:
    """Convert a document snapshot to a dict carrying its id, timestamps normalized."""
    if snapshot is None or not snapshot.exists:
        return None

    data = snapshot.to_dict() or {}
    for field in TIMESTAMP_FIELDS:
        if field in data:
            data[field] = to_datetime(data[field])
    data["id"] = snapshot.id
    return data


def start_of_day(moment: datetime) -> datetime:
    """Midnight UTC of the day containing `moment`."""
    return moment.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
