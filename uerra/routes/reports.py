"""
Report endpoints - citizen report submission and the citizen's own reports.
"""

import json
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Header, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from uerra.config.backend import BackendClient, Identity
from uerra.config.firebase import get_backend
from uerra.core.errors import ReportingError
from uerra.core.settings import settings
from uerra.models.report import CancelRequest, ReportEdit, ReportResponse, SubmissionResult
from uerra.services.attachment_service import Attachment
from uerra.services.citizen_report_service import CitizenReportService
from uerra.services.triage_service import TriageService
from uerra.utils.security import get_current_identity, get_current_profile, get_optional_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


async def _read_attachment(photo: Optional[UploadFile]) -> Optional[Attachment]:
    if photo is None:
        return None
    # Read one byte past the limit: enough to reject oversized files without buffering them whole
    data = await photo.read(settings.MAX_ATTACHMENT_BYTES + 1)
    return Attachment(filename=photo.filename or "", content_type=photo.content_type, data=data)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SubmissionResult)
async def submit_report(
    payload: str = Form(..., description="Report payload as a JSON object"),
    photo: Optional[UploadFile] = File(None, description="Optional JPEG/PNG/WebP photo, max 5MB"),
    authorization: Optional[str] = Header(None),
    backend: BackendClient = Depends(get_backend)
):
    """
    Submit a new emergency report (citizens only).

    Multipart form with a `payload` JSON field and an optional `photo`.
    Always answers with a tagged result: `{"ok": true, "report": ...}` with
    201, or `{"ok": false, "error": ...}` with the error's status code.
    """
    try:
        identity = await run_in_threadpool(get_optional_identity, authorization, backend)
    except ReportingError as e:
        # An expired or malformed session still gets a tagged result
        result = SubmissionResult.failure(e)
        return JSONResponse(status_code=result.status_code, content=result.model_dump(mode="json"))

    try:
        raw_payload = json.loads(payload)
    except json.JSONDecodeError:
        # The orchestrator reports this as a ValidationError after the role gate
        raw_payload = None

    attachment = await _read_attachment(photo)
    # Firebase calls block, keep them off the event loop
    result = await run_in_threadpool(CitizenReportService(backend).submit_report, raw_payload, identity, attachment)

    if not result.ok:
        return JSONResponse(status_code=result.status_code, content=result.model_dump(mode="json"))

    logger.info(f"POST /reports - report created: {result.report.id}")
    return result


@router.get("/mine", response_model=List[ReportResponse])
def get_my_reports(
    status_filter: Optional[str] = Query(None, alias="status"),
    category_id: Optional[str] = None,
    priority: Optional[str] = None,
    identity: Identity = Depends(get_current_identity),
    backend: BackendClient = Depends(get_backend)
):
    """The caller's own reports, newest first, with their update history."""
    return CitizenReportService(backend).get_user_reports(
        identity, status=status_filter, category_id=category_id, priority=priority
    )


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(
    report_id: str,
    profile: Dict = Depends(get_current_profile),
    backend: BackendClient = Depends(get_backend)
):
    """One report with history, visible to its owner, assigned agencies and admins."""
    return TriageService(backend).get_report(report_id, profile)


@router.patch("/{report_id}", response_model=ReportResponse)
def edit_report(
    report_id: str,
    changes: ReportEdit,
    identity: Identity = Depends(get_current_identity),
    backend: BackendClient = Depends(get_backend)
):
    """Edit an own report while it is still pending."""
    return CitizenReportService(backend).update_report(report_id, changes, identity)


@router.post("/{report_id}/cancel", response_model=ReportResponse)
def cancel_report(
    report_id: str,
    request: CancelRequest,
    identity: Identity = Depends(get_current_identity),
    backend: BackendClient = Depends(get_backend)
):
    """Withdraw an own pending report."""
    return CitizenReportService(backend).cancel_report(report_id, identity, request.reason)
