"""
Report writer - persists a validated report and its first audit entry.

The report insert is the success boundary: a failed audit insert after it
is logged and the report still counts as submitted.
"""

import logging
from typing import Dict, Optional

from uerra.config.backend import BackendClient, BackendError, Identity, REPORTS
from uerra.core.errors import PersistenceError
from uerra.models.report import (
    EmergencyLevel,
    Priority,
    ReportPayload,
    ReportStatus,
)
from uerra.services.attachment_service import StoredAttachment
from uerra.services.report_history import record_update

logger = logging.getLogger(__name__)

SUBMITTED_NOTE = "Emergency report submitted by citizen"


class ReportWriter:

    def __init__(self, backend: BackendClient):
        self.backend = backend

    @staticmethod
    def build_row(payload: ReportPayload, attachment: Optional[StoredAttachment], identity: Identity) -> Dict:
        location = None
        if payload.location is not None:
            location = {"lat": float(payload.location.lat), "lng": float(payload.location.lng)}

        return {
            "user_id": identity.id,
            "category_id": payload.category_id.strip(),
            "title": payload.title.strip() if payload.title else None,
            "description": payload.description.strip(),
            "priority": payload.priority or Priority.MEDIUM.value,
            "emergency_level": payload.emergency_level or EmergencyLevel.STANDARD.value,
            "location": location,
            "address": payload.address.strip() if payload.address else None,
            "photo_url": attachment.url if attachment else None,
            "photo_path": attachment.path if attachment else None,
            "citizen_contact": payload.contact.strip() if payload.contact and payload.contact.strip() else None,
            "is_anonymous": payload.is_anonymous,
            "submitted_via": "web",
            "status": ReportStatus.PENDING.value,
            "assigned_agency_ids": [],
        }

    def write(self, payload: ReportPayload, attachment: Optional[StoredAttachment], identity: Identity) -> Dict:
        """
        Insert the report (status pending) and its initial update.

        Raises:
            PersistenceError: the report insert failed
        """
        try:
            report = self.backend.insert(REPORTS, self.build_row(payload, attachment, identity))
        except BackendError as e:
            logger.error(f"Failed to save report for {identity.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to submit report: {e}")

        logger.info(f"Report saved: {report['id']} (category={report['category_id']}, priority={report['priority']})")

        update = record_update(
            self.backend,
            report_id=report["id"],
            user_id=identity.id,
            status=ReportStatus.PENDING.value,
            notes=SUBMITTED_NOTE,
        )
        report["updates"] = [update] if update else []
        return report
