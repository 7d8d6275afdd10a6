"""
Pydantic models for emergency reports and their update history.

ReportPayload is deliberately lenient: type and range checks are done by
the report validator so that the role check always runs first and every
violated rule is reported together.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EmergencyLevel(str, Enum):
    STANDARD = "standard"
    URGENT = "urgent"
    LIFE_THREATENING = "life_threatening"


class ReportStatus(str, Enum):
    """
    Report lifecycle:
    pending → acknowledged → in_progress → resolved
    pending → cancelled, in_progress → cancelled
    """
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class UpdateType(str, Enum):
    STATUS_CHANGE = "status_change"
    NOTE = "note"
    ASSIGNMENT = "assignment"


class GeoPoint(BaseModel):
    """Latitude/longitude pair as sent by the dashboard map picker."""
    lat: Any = None
    lng: Any = None


class ReportPayload(BaseModel):
    """Candidate report sent by a citizen (validated by the report validator)."""
    category_id: Optional[str] = Field(None, description="Emergency category reference")
    title: Optional[str] = Field(None, description="Short headline (optional)")
    description: Optional[str] = Field(None, description="What the citizen observed")
    priority: Optional[str] = Field(None, description="low | medium | high | critical")
    emergency_level: Optional[str] = Field(None, description="standard | urgent | life_threatening")
    location: Optional[GeoPoint] = Field(None, description="Where the emergency is happening")
    address: Optional[str] = Field(None, max_length=500, description="Free-text address or landmark")
    contact: Optional[str] = Field(None, max_length=100, description="Callback number for responders")
    is_anonymous: bool = Field(default=False, description="Hide reporter identity from public views")

    class Config:
        json_schema_extra = {
            "example": {
                "category_id": "fire",
                "description": "Smoke coming from the building",
                "priority": "high",
                "emergency_level": "urgent",
                "location": {"lat": 13.8591, "lng": 121.9749},
                "contact": "09171234567",
            }
        }
        extra = "ignore"


class ReportEdit(BaseModel):
    """Fields a citizen may change while the report is still pending."""
    title: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    priority: Optional[str] = None
    citizen_contact: Optional[str] = Field(None, max_length=100)

    class Config:
        extra = "ignore"


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Why the citizen withdrew the report")


class StatusUpdateRequest(BaseModel):
    status: ReportStatus = Field(..., description="New status value")
    notes: Optional[str] = Field(None, max_length=1000, description="Optional note explaining the change")


class NoteRequest(BaseModel):
    notes: str = Field(..., min_length=1, max_length=1000)


class AgencyAssignmentRequest(BaseModel):
    agency_ids: List[str] = Field(default_factory=list, description="Agencies responsible for the report")


class ReportUpdateEntry(BaseModel):
    """Append-only audit entry for a report."""
    id: str
    report_id: str
    user_id: Optional[str] = None
    status: str
    notes: str = ""
    update_type: str = UpdateType.STATUS_CHANGE.value
    is_public: bool = True
    created_at: Optional[datetime] = None


class ReportResponse(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    user_id: str
    category_id: str
    title: Optional[str] = None
    description: str
    priority: str = Priority.MEDIUM.value
    emergency_level: str = EmergencyLevel.STANDARD.value
    location: Optional[Dict[str, float]] = None
    address: Optional[str] = None
    photo_url: Optional[str] = None
    citizen_contact: Optional[str] = None
    is_anonymous: bool = False
    submitted_via: str = "web"
    status: str = ReportStatus.PENDING.value
    assigned_agency_ids: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    category: Optional[Dict] = Field(default=None, description="Category summary (name, color, tips, equipment)")
    updates: List[ReportUpdateEntry] = Field(default_factory=list, description="Status/audit history, oldest first")

    class Config:
        extra = "ignore"


class SubmissionResult(BaseModel):
    """Tagged outcome of a report submission."""
    ok: bool
    report: Optional[ReportResponse] = None
    error: Optional[Dict] = None
    message: str
    status_code: int = Field(default=201, exclude=True)

    @classmethod
    def success(cls, report: Dict) -> "SubmissionResult":
        return cls(
            ok=True,
            report=ReportResponse(**report),
            message="Emergency report submitted successfully"
        )

    @classmethod
    def failure(cls, error) -> "SubmissionResult":
        return cls(
            ok=False,
            error=error.to_dict(),
            message="Failed to submit emergency report",
            status_code=error.status_code
        )
