"""
Triage endpoints - agencies and admins working the report queue.

Agencies see and update the reports assigned to their agency; admins see
everything and decide assignment.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from uerra.config.backend import BackendClient
from uerra.config.firebase import get_backend
from uerra.models.report import (
    AgencyAssignmentRequest,
    NoteRequest,
    ReportResponse,
    ReportUpdateEntry,
    StatusUpdateRequest,
)
from uerra.services.capabilities import Capability
from uerra.services.triage_service import TriageService
from uerra.utils.security import require_capability

router = APIRouter(prefix="/triage", tags=["Triage"])

staff_only = require_capability(Capability.AGENCY, Capability.ADMIN, Capability.SUPERADMIN)
admins_only = require_capability(Capability.ADMIN, Capability.SUPERADMIN)


@router.get("/reports", response_model=List[ReportResponse])
def list_reports(
    status_filter: Optional[str] = Query(None, alias="status"),
    category_id: Optional[str] = None,
    priority: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    profile: Dict = Depends(staff_only),
    backend: BackendClient = Depends(get_backend)
):
    """Report queue for the caller (assigned reports for agencies, all for admins)."""
    return TriageService(backend).list_reports(
        profile, status=status_filter, category_id=category_id, priority=priority, limit=limit
    )


@router.post("/reports/{report_id}/acknowledge", response_model=ReportResponse)
def acknowledge_report(
    report_id: str,
    profile: Dict = Depends(staff_only),
    backend: BackendClient = Depends(get_backend)
):
    """pending → acknowledged."""
    return TriageService(backend).acknowledge(report_id, profile)


@router.post("/reports/{report_id}/status", response_model=ReportResponse)
def update_status(
    report_id: str,
    request: StatusUpdateRequest,
    profile: Dict = Depends(staff_only),
    backend: BackendClient = Depends(get_backend)
):
    """
    Move a report along its lifecycle.

    Allowed: pending → acknowledged | cancelled, acknowledged → in_progress,
    in_progress → resolved | cancelled. Answers 409 for anything else.
    """
    return TriageService(backend).transition(report_id, request.status.value, profile, notes=request.notes)


@router.post("/reports/{report_id}/notes", response_model=ReportUpdateEntry)
def add_note(
    report_id: str,
    request: NoteRequest,
    profile: Dict = Depends(staff_only),
    backend: BackendClient = Depends(get_backend)
):
    return TriageService(backend).add_note(report_id, profile, request.notes)


@router.put("/reports/{report_id}/agencies", response_model=ReportResponse)
def assign_agencies(
    report_id: str,
    request: AgencyAssignmentRequest,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    """Add responding agencies to a report; a pending report becomes acknowledged."""
    return TriageService(backend).assign_agencies(report_id, request.agency_ids, profile)
