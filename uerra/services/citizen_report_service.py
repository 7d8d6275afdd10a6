"""
Citizen report service - submission orchestration and the citizen's own
report operations (list, edit while pending, cancel).

Submission flow (strictly sequential, first failure wins):
1. Role gate        - identity must hold the citizen capability
2. Input validation - every rule checked, messages joined
3. Photo upload     - optional, fail-fast before any row is written
4. Report write     - report row, then the initial audit entry

No retries and no deduplication: submitting the same payload twice
creates two reports.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError as PydanticValidationError

from uerra.config.backend import BackendClient, BackendError, Identity, REPORTS
from uerra.core.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ReportingError,
    ValidationError,
)
from uerra.core.settings import settings
from uerra.models.report import (
    ReportEdit,
    ReportPayload,
    ReportStatus,
    SubmissionResult,
    UpdateType,
)
from uerra.services.attachment_service import Attachment, AttachmentUploader, StoredAttachment
from uerra.services.capabilities import Capability
from uerra.services.report_history import history_after_write, record_update, with_history
from uerra.services.report_validation import ensure_valid_report_data
from uerra.services.report_writer import ReportWriter
from uerra.services.role_gate import RoleGate
from uerra.services.status_workflow import StatusWorkflowEngine

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "address", "priority", "citizen_contact")


def parse_payload(raw: Any) -> ReportPayload:
    """Coerce an incoming payload into ReportPayload, reporting shape errors as ValidationError."""
    if isinstance(raw, ReportPayload):
        return raw
    if not isinstance(raw, dict):
        raise ValidationError(["Malformed report payload"])
    try:
        return ReportPayload(**raw)
    except PydanticValidationError as e:
        messages = []
        for err in e.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "payload"
            messages.append(f"Invalid {field}: {err.get('msg')}")
        raise ValidationError(messages)


class CitizenReportService:
    """
    Report operations available to citizens.
    """

    def __init__(
        self,
        backend: BackendClient,
        cleanup_orphaned_attachments: Optional[bool] = None
    ):
        self.backend = backend
        self.role_gate = RoleGate(backend)
        self.uploader = AttachmentUploader(backend)
        self.writer = ReportWriter(backend)
        self.workflow = StatusWorkflowEngine()
        if cleanup_orphaned_attachments is None:
            cleanup_orphaned_attachments = settings.CLEANUP_ORPHANED_ATTACHMENTS
        self.cleanup_orphaned_attachments = cleanup_orphaned_attachments

    def submit_report(
        self,
        raw_payload: Any,
        identity: Optional[Identity],
        attachment: Optional[Attachment] = None
    ) -> SubmissionResult:
        """
        Submit a new emergency report (citizens only).

        Returns:
            SubmissionResult: ok with the stored report, or the error that
            stopped the flow
        """
        stored: Optional[StoredAttachment] = None
        try:
            self.role_gate.require_citizen(identity)

            payload = parse_payload(raw_payload)
            ensure_valid_report_data(payload)

            stored = self.uploader.upload(attachment, identity.id)

            report = self.writer.write(payload, stored, identity)

        except ReportingError as e:
            logger.warning(f"Report submission rejected ({e.error_type}): {e.message}")
            if stored is not None:
                self._handle_orphan(stored)
            return SubmissionResult.failure(e)

        logger.info(f"Report {report['id']} submitted by {identity.id}")
        return SubmissionResult.success(report)

    def _handle_orphan(self, stored: StoredAttachment) -> None:
        if self.cleanup_orphaned_attachments:
            self.uploader.discard(stored)
        else:
            logger.warning(f"Report submission failed, photo remains in storage: {stored.path}")

    def get_user_reports(
        self,
        identity: Identity,
        status: Optional[str] = None,
        category_id: Optional[str] = None,
        priority: Optional[str] = None
    ) -> List[Dict]:
        """The identity's own reports, newest first, each with its history."""
        filters = [("user_id", "==", identity.id)]
        if status:
            filters.append(("status", "==", status))
        if category_id:
            filters.append(("category_id", "==", category_id))
        if priority:
            filters.append(("priority", "==", priority))

        try:
            reports = self.backend.query(REPORTS, filters=filters, order_by="created_at")
        except BackendError as e:
            logger.error(f"Failed to fetch reports for {identity.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to fetch reports: {e}")

        return with_history(self.backend, reports)

    def _load_own_report(self, report_id: str, identity: Identity) -> Dict:
        try:
            report = self.backend.get(REPORTS, report_id)
        except BackendError as e:
            raise PersistenceError(f"Failed to fetch report: {e}")

        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        if report.get("user_id") != identity.id:
            raise AuthorizationError("Citizens can only change their own reports")
        return report

    def update_report(self, report_id: str, changes: ReportEdit, identity: Optional[Identity]) -> Dict:
        """
        Edit a pending report. Only title, description, address, priority and
        contact may change, and the edited report must still validate.
        """
        self.role_gate.require_citizen(identity)
        report = self._load_own_report(report_id, identity)

        if report.get("status") != ReportStatus.PENDING.value:
            raise InvalidTransitionError("Only pending reports can be edited")

        patch = {
            field: value for field, value in changes.model_dump().items()
            if field in EDITABLE_FIELDS and value is not None
        }
        if not patch:
            raise ValidationError(["No changes provided"])
        if "description" in patch:
            patch["description"] = patch["description"].strip()

        merged = ReportPayload(
            category_id=report.get("category_id"),
            title=patch.get("title", report.get("title")),
            description=patch.get("description", report.get("description")),
            priority=patch.get("priority", report.get("priority")),
            emergency_level=report.get("emergency_level"),
        )
        ensure_valid_report_data(merged)

        try:
            updated = self.backend.update(
                REPORTS, report_id, patch,
                expected={"status": ReportStatus.PENDING.value, "user_id": identity.id}
            )
        except BackendError as e:
            logger.error(f"Failed to update report {report_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update report: {e}")

        if updated is None:
            # Status changed between the read and the conditional write
            raise InvalidTransitionError("Only pending reports can be edited")

        record_update(
            self.backend,
            report_id=report_id,
            user_id=identity.id,
            status=updated["status"],
            notes="Report updated by citizen",
            update_type=UpdateType.NOTE,
        )
        logger.info(f"Citizen {identity.id} updated report {report_id}: {sorted(patch)}")
        return history_after_write(self.backend, updated)

    def cancel_report(self, report_id: str, identity: Optional[Identity], reason: Optional[str] = None) -> Dict:
        """Withdraw a pending report (pending → cancelled)."""
        self.role_gate.require_citizen(identity)
        report = self._load_own_report(report_id, identity)

        target = self.workflow.validate_transition(
            current_status=report.get("status", ""),
            new_status=ReportStatus.CANCELLED.value,
            capability=Capability.CITIZEN,
            is_owner=True
        )

        patch = {
            "status": target.value,
            self.workflow.timestamp_field(target): datetime.now(timezone.utc),
        }
        try:
            updated = self.backend.update(
                REPORTS, report_id, patch,
                expected={"status": ReportStatus.PENDING.value, "user_id": identity.id}
            )
        except BackendError as e:
            logger.error(f"Failed to cancel report {report_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to cancel report: {e}")

        if updated is None:
            raise InvalidTransitionError("Only pending reports can be cancelled")

        record_update(
            self.backend,
            report_id=report_id,
            user_id=identity.id,
            status=target.value,
            notes=f"Report cancelled by citizen. Reason: {reason or 'No reason provided'}",
        )
        logger.info(f"Citizen {identity.id} cancelled report {report_id}")
        return history_after_write(self.backend, updated)
