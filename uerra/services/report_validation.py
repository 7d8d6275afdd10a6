"""
Report payload validation.

All rules are independent; every violated rule is reported, in a stable
order, so the citizen can fix everything in one pass.
"""

from typing import Any, List

from uerra.core.errors import ValidationError
from uerra.core.settings import settings
from uerra.models.report import EmergencyLevel, Priority, ReportPayload

MIN_DESCRIPTION_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 1000
MAX_TITLE_LENGTH = 100

VALID_PRIORITIES = [p.value for p in Priority]
VALID_EMERGENCY_LEVELS = [e.value for e in EmergencyLevel]


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def within_service_area(lat: float, lng: float) -> bool:
    return (
        settings.GEO_MIN_LAT <= lat <= settings.GEO_MAX_LAT
        and settings.GEO_MIN_LNG <= lng <= settings.GEO_MAX_LNG
    )


def validate_report_data(payload: ReportPayload) -> List[str]:
    """
    Check a candidate report against every constraint.

    Returns:
        List of human-readable violations (empty when valid)
    """
    errors = []

    if not payload.category_id or not str(payload.category_id).strip():
        errors.append("Emergency category is required")

    description = (payload.description or "").strip()
    if len(description) < MIN_DESCRIPTION_LENGTH:
        errors.append(f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters long")
    elif len(description) > MAX_DESCRIPTION_LENGTH:
        errors.append(f"Description must be less than {MAX_DESCRIPTION_LENGTH} characters")

    if payload.title and len(payload.title) > MAX_TITLE_LENGTH:
        errors.append(f"Title must be less than {MAX_TITLE_LENGTH} characters")

    if payload.priority and payload.priority not in VALID_PRIORITIES:
        errors.append("Invalid priority level")

    if payload.emergency_level and payload.emergency_level not in VALID_EMERGENCY_LEVELS:
        errors.append("Invalid emergency level")

    if payload.location is not None:
        lat, lng = payload.location.lat, payload.location.lng
        if not (_is_number(lat) and _is_number(lng)):
            errors.append("Invalid location coordinates")
        elif not within_service_area(lat, lng):
            errors.append(f"Location coordinates appear to be outside {settings.SERVICE_AREA_NAME}")

    return errors


def ensure_valid_report_data(payload: ReportPayload) -> None:
    """Raise ValidationError carrying every violated rule."""
    errors = validate_report_data(payload)
    if errors:
        raise ValidationError(errors)
