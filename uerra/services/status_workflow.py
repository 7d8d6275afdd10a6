"""
Status Workflow Engine - report lifecycle state machine.

RULES:
- Only transitions listed in ALLOWED_TRANSITIONS exist
- resolved and cancelled are terminal
- Citizens may only cancel their own pending reports
- Agencies and admins drive every other transition
"""

from typing import Dict, List, Optional
import logging

from uerra.core.errors import AuthorizationError, InvalidTransitionError
from uerra.models.report import ReportStatus
from uerra.services.capabilities import Capability, is_staff

logger = logging.getLogger(__name__)

# Timestamp field stamped when a report enters the status
STATUS_TIMESTAMP_FIELDS = {
    ReportStatus.ACKNOWLEDGED: "acknowledged_at",
    ReportStatus.RESOLVED: "resolved_at",
    ReportStatus.CANCELLED: "cancelled_at",
}


class StatusWorkflowEngine:
    """
    State machine for report status transitions.
    """

    # Allowed transitions map: {from_status: [to_status, ...]}
    ALLOWED_TRANSITIONS: Dict[ReportStatus, List[ReportStatus]] = {
        ReportStatus.PENDING: [ReportStatus.ACKNOWLEDGED, ReportStatus.CANCELLED],
        ReportStatus.ACKNOWLEDGED: [ReportStatus.IN_PROGRESS],
        ReportStatus.IN_PROGRESS: [ReportStatus.RESOLVED, ReportStatus.CANCELLED],
        ReportStatus.RESOLVED: [],  # Terminal
        ReportStatus.CANCELLED: [],  # Terminal
    }

    # The only transition a citizen may trigger (and only on their own report)
    CITIZEN_TRANSITIONS = {(ReportStatus.PENDING, ReportStatus.CANCELLED)}

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        try:
            from_enum = ReportStatus(from_status)
            to_enum = ReportStatus(to_status)
        except ValueError:
            return False

        return to_enum in cls.ALLOWED_TRANSITIONS.get(from_enum, [])

    @classmethod
    def get_allowed_transitions(cls, current_status: str) -> List[str]:
        try:
            current_enum = ReportStatus(current_status)
        except ValueError:
            return []
        return [status.value for status in cls.ALLOWED_TRANSITIONS.get(current_enum, [])]

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.get_allowed_transitions(status)

    @classmethod
    def validate_transition(
        cls,
        current_status: str,
        new_status: str,
        capability: Optional[Capability],
        is_owner: bool = False
    ) -> ReportStatus:
        """
        Check that the actor may move a report from current_status to new_status.

        Returns:
            The target status

        Raises:
            InvalidTransitionError: the transition is not part of the lifecycle
            AuthorizationError: the actor may not trigger it
        """
        if not cls.is_valid_transition(current_status, new_status):
            allowed = cls.get_allowed_transitions(current_status)
            raise InvalidTransitionError(
                f"Invalid status transition: {current_status} → {new_status}. "
                f"Allowed transitions from {current_status}: {allowed}",
                allowed=allowed
            )

        target = ReportStatus(new_status)

        if capability == Capability.CITIZEN:
            if not is_owner:
                raise AuthorizationError("Citizens can only change their own reports")
            if (ReportStatus(current_status), target) not in cls.CITIZEN_TRANSITIONS:
                raise AuthorizationError("Citizens can only cancel reports that are still pending")
        elif not is_staff(capability):
            raise AuthorizationError("You are not allowed to change report status")

        return target

    @classmethod
    def timestamp_field(cls, status: ReportStatus) -> Optional[str]:
        return STATUS_TIMESTAMP_FIELDS.get(status)
