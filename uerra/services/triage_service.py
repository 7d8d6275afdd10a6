"""
Triage Service - agency and admin operations on submitted reports.

DESIGN PRINCIPLES:
- Agencies only see and act on reports assigned to their agency
- Admins see and act on every report, and decide assignment
- Every status change goes through the workflow engine and writes exactly
  one audit entry
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

from uerra.config.backend import AGENCIES, BackendClient, BackendError, CATEGORIES, REPORTS
from uerra.core.errors import AuthorizationError, InvalidTransitionError, NotFoundError, PersistenceError, ValidationError
from uerra.models.report import ReportStatus, UpdateType
from uerra.services.capabilities import Capability, is_admin, is_staff, resolve_capability
from uerra.services.report_history import category_summary, history_after_write, list_updates, record_update
from uerra.services.status_workflow import StatusWorkflowEngine

logger = logging.getLogger(__name__)

ACKNOWLEDGED_NOTE = "Report acknowledged by agency"


class TriageService:
    """
    Service for responder and admin operations on reports.
    """

    def __init__(self, backend: BackendClient):
        self.backend = backend
        self.workflow = StatusWorkflowEngine()

    def _fetch(self, report_id: str) -> Dict:
        try:
            report = self.backend.get(REPORTS, report_id)
        except BackendError as e:
            logger.error(f"Failed to fetch report {report_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to fetch report: {e}")
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        return report

    @staticmethod
    def _is_assigned(report: Dict, profile: Dict) -> bool:
        agency_id = profile.get("agency_id")
        return bool(agency_id) and agency_id in (report.get("assigned_agency_ids") or [])

    def can_view(self, report: Dict, profile: Dict) -> bool:
        capability = resolve_capability(profile.get("role"))
        if is_admin(capability):
            return True
        if capability == Capability.AGENCY:
            return self._is_assigned(report, profile)
        if capability == Capability.CITIZEN:
            return report.get("user_id") == profile.get("id")
        return False

    def _require_actor(self, report: Dict, profile: Dict) -> Capability:
        """Staff capability of a profile allowed to act on this report."""
        capability = resolve_capability(profile.get("role"))
        if not is_staff(capability):
            raise AuthorizationError("Only agencies and admins can manage reports")
        if capability == Capability.AGENCY and not self._is_assigned(report, profile):
            raise AuthorizationError("This report is not assigned to your agency")
        return capability

    def list_reports(
        self,
        profile: Dict,
        status: Optional[str] = None,
        category_id: Optional[str] = None,
        priority: Optional[str] = None,
        limit: int = 100
    ) -> List[Dict]:
        """
        Reports visible to a staff profile, newest first.

        Agencies get the reports assigned to their agency; admins get all.
        """
        capability = resolve_capability(profile.get("role"))
        if not is_staff(capability):
            raise AuthorizationError("Only agencies and admins can browse reports")

        filters = []
        if capability == Capability.AGENCY:
            if not profile.get("agency_id"):
                logger.info(f"Agency user {profile.get('id')} has no agency, no reports to show")
                return []
            filters.append(("assigned_agency_ids", "array_contains", profile["agency_id"]))
        if status:
            filters.append(("status", "==", status))
        if category_id:
            filters.append(("category_id", "==", category_id))
        if priority:
            filters.append(("priority", "==", priority))

        try:
            reports = self.backend.query(REPORTS, filters=filters, order_by="created_at", limit=limit)
        except BackendError as e:
            logger.error(f"Failed to list reports: {e}", exc_info=True)
            raise PersistenceError(f"Failed to fetch reports: {e}")

        logger.info(f"Retrieved {len(reports)} reports for {capability.value} {profile.get('id')} (status={status}, category={category_id}, priority={priority})")
        return reports

    def get_report(self, report_id: str, profile: Dict) -> Dict:
        """One report with category summary and history, if the profile may see it."""
        report = self._fetch(report_id)
        if not self.can_view(report, profile):
            raise AuthorizationError("You are not allowed to view this report")

        try:
            category = self.backend.get(CATEGORIES, report.get("category_id", "")) if report.get("category_id") else None
        except BackendError as e:
            raise PersistenceError(f"Failed to fetch category: {e}")

        report["category"] = category_summary(category)
        report["updates"] = list_updates(self.backend, report_id)
        return report

    def transition(
        self,
        report_id: str,
        new_status: str,
        profile: Dict,
        notes: Optional[str] = None
    ) -> Dict:
        """
        Move a report to a new status and record the change.

        Raises:
            InvalidTransitionError: not a lifecycle transition, or the status
                changed concurrently
            AuthorizationError: profile may not act on the report
        """
        report = self._fetch(report_id)
        capability = self._require_actor(report, profile)
        current_status = report.get("status", ReportStatus.PENDING.value)

        target = self.workflow.validate_transition(
            current_status=current_status,
            new_status=new_status,
            capability=capability,
            is_owner=report.get("user_id") == profile.get("id")
        )

        patch = {"status": target.value}
        timestamp_field = self.workflow.timestamp_field(target)
        if timestamp_field:
            patch[timestamp_field] = datetime.now(timezone.utc)

        try:
            updated = self.backend.update(REPORTS, report_id, patch, expected={"status": current_status})
        except BackendError as e:
            logger.error(f"Failed to update report {report_id} status: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update report: {e}")

        if updated is None:
            raise InvalidTransitionError(f"Report {report_id} changed status while you were updating it, reload and try again")

        record_update(
            self.backend,
            report_id=report_id,
            user_id=profile["id"],
            status=target.value,
            notes=notes or f"Status changed to {target.value}",
        )
        logger.info(f"{capability.value} {profile['id']} updated report {report_id}: {current_status} → {target.value}")
        return history_after_write(self.backend, updated)

    def acknowledge(self, report_id: str, profile: Dict) -> Dict:
        return self.transition(report_id, ReportStatus.ACKNOWLEDGED.value, profile, notes=ACKNOWLEDGED_NOTE)

    def add_note(self, report_id: str, profile: Dict, notes: str) -> Dict:
        """Add a responder note without changing status."""
        report = self._fetch(report_id)
        self._require_actor(report, profile)

        if not notes or not notes.strip():
            raise ValidationError(["Note text is required"])

        entry = record_update(
            self.backend,
            report_id=report_id,
            user_id=profile["id"],
            status=report.get("status", ReportStatus.PENDING.value),
            notes=notes.strip(),
            update_type=UpdateType.NOTE,
        )
        if entry is None:
            raise PersistenceError("Failed to save note")
        return entry

    def assign_agencies(self, report_id: str, agency_ids: List[str], profile: Dict) -> Dict:
        """
        Add agencies to a report's responders (admins only).

        New agencies are merged into the existing assignment. A pending report
        is acknowledged by its first assignment. One public assignment update
        names the agencies added.
        """
        capability = resolve_capability(profile.get("role"))
        if not is_admin(capability):
            raise AuthorizationError("Only admins can assign agencies")

        agency_ids = list(dict.fromkeys(a for a in agency_ids if a))
        if not agency_ids:
            raise ValidationError(["Select at least one agency"])

        report = self._fetch(report_id)
        current_status = report.get("status", ReportStatus.PENDING.value)
        if self.workflow.is_terminal(current_status):
            raise InvalidTransitionError(f"Report {report_id} is {current_status} and can no longer be assigned")

        try:
            agencies = {a: self.backend.get(AGENCIES, a) for a in agency_ids}
        except BackendError as e:
            raise PersistenceError(f"Failed to verify agencies: {e}")
        missing = [a for a, agency in agencies.items() if agency is None]
        if missing:
            raise ValidationError([f"Unknown agency: {a}" for a in missing])

        assigned = list(report.get("assigned_agency_ids") or [])
        assigned.extend(a for a in agency_ids if a not in assigned)
        patch = {"assigned_agency_ids": assigned}

        new_status = current_status
        if current_status == ReportStatus.PENDING.value:
            target = self.workflow.validate_transition(
                current_status=current_status,
                new_status=ReportStatus.ACKNOWLEDGED.value,
                capability=capability,
                is_owner=False
            )
            new_status = target.value
            patch["status"] = new_status
            patch[self.workflow.timestamp_field(target)] = datetime.now(timezone.utc)

        try:
            updated = self.backend.update(REPORTS, report_id, patch, expected={"status": current_status})
        except BackendError as e:
            logger.error(f"Failed to assign agencies to report {report_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to assign agencies: {e}")
        if updated is None:
            raise InvalidTransitionError(f"Report {report_id} changed status while you were assigning it, reload and try again")

        names = ", ".join(agencies[a].get("name") or a for a in agency_ids)
        record_update(
            self.backend,
            report_id=report_id,
            user_id=profile["id"],
            status=new_status,
            notes=f"Report assigned to {names}",
            update_type=UpdateType.ASSIGNMENT,
        )
        logger.info(f"Admin {profile['id']} assigned report {report_id} to {agency_ids} ({current_status} → {new_status})")
        return history_after_write(self.backend, updated)
