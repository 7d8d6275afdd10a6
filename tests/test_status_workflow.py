"""
Tests for the report status state machine.
"""
import pytest

from uerra.core.errors import AuthorizationError, InvalidTransitionError
from uerra.models.report import ReportStatus
from uerra.services.capabilities import Capability
from uerra.services.status_workflow import StatusWorkflowEngine


class TestTransitions:

    @pytest.mark.parametrize("current,new", [
        ("pending", "acknowledged"),
        ("pending", "cancelled"),
        ("acknowledged", "in_progress"),
        ("in_progress", "resolved"),
        ("in_progress", "cancelled"),
    ])
    def test_lifecycle_transitions(self, current, new):
        assert StatusWorkflowEngine.is_valid_transition(current, new)

    @pytest.mark.parametrize("current,new", [
        ("pending", "resolved"),
        ("pending", "in_progress"),
        ("acknowledged", "cancelled"),
        ("acknowledged", "pending"),
        ("resolved", "pending"),
        ("cancelled", "pending"),
        ("pending", "pending"),
        ("pending", "closed"),
    ])
    def test_rejected_transitions(self, current, new):
        assert not StatusWorkflowEngine.is_valid_transition(current, new)

    def test_terminal_states(self):
        assert StatusWorkflowEngine.is_terminal("resolved")
        assert StatusWorkflowEngine.is_terminal("cancelled")
        assert not StatusWorkflowEngine.is_terminal("in_progress")

    def test_allowed_from_pending(self):
        assert StatusWorkflowEngine.get_allowed_transitions("pending") == ["acknowledged", "cancelled"]
        assert StatusWorkflowEngine.get_allowed_transitions("bogus") == []


class TestValidateTransition:

    def test_staff_may_acknowledge(self):
        target = StatusWorkflowEngine.validate_transition("pending", "acknowledged", Capability.AGENCY)
        assert target == ReportStatus.ACKNOWLEDGED

    def test_invalid_transition_lists_allowed(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            StatusWorkflowEngine.validate_transition("acknowledged", "resolved", Capability.ADMIN)
        assert exc_info.value.allowed == ["in_progress"]
        assert exc_info.value.status_code == 409

    def test_citizen_may_cancel_own_pending(self):
        target = StatusWorkflowEngine.validate_transition("pending", "cancelled", Capability.CITIZEN, is_owner=True)
        assert target == ReportStatus.CANCELLED

    def test_citizen_cannot_cancel_others(self):
        with pytest.raises(AuthorizationError):
            StatusWorkflowEngine.validate_transition("pending", "cancelled", Capability.CITIZEN, is_owner=False)

    def test_citizen_cannot_acknowledge(self):
        with pytest.raises(AuthorizationError):
            StatusWorkflowEngine.validate_transition("pending", "acknowledged", Capability.CITIZEN, is_owner=True)

    def test_no_capability(self):
        with pytest.raises(AuthorizationError):
            StatusWorkflowEngine.validate_transition("pending", "acknowledged", None)

    def test_timestamp_fields(self):
        assert StatusWorkflowEngine.timestamp_field(ReportStatus.ACKNOWLEDGED) == "acknowledged_at"
        assert StatusWorkflowEngine.timestamp_field(ReportStatus.RESOLVED) == "resolved_at"
        assert StatusWorkflowEngine.timestamp_field(ReportStatus.IN_PROGRESS) is None
