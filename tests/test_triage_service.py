"""
Tests for agency/admin triage: listing, transitions, notes and assignment.
"""
import pytest

from uerra.config.backend import Identity, REPORT_UPDATES, REPORTS
from uerra.core.errors import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from uerra.services.citizen_report_service import CitizenReportService
from uerra.services.triage_service import TriageService
from conftest import VALID_PAYLOAD, add_user


@pytest.fixture
def report_id(backend, citizen):
    result = CitizenReportService(backend).submit_report(dict(VALID_PAYLOAD), Identity(id="citizen-1"))
    return result.report.id


@pytest.fixture
def assigned_report(backend, report_id, admin):
    TriageService(backend).assign_agencies(report_id, ["bfp"], admin)
    return report_id


def updates_for(backend, report_id):
    return backend.query(REPORT_UPDATES, [("report_id", "==", report_id)], order_by="created_at", descending=False)


class TestListReports:

    def test_admin_sees_all(self, backend, report_id, admin):
        reports = TriageService(backend).list_reports(admin)
        assert [r["id"] for r in reports] == [report_id]

    def test_agency_sees_only_assigned(self, backend, report_id, responder, admin):
        service = TriageService(backend)
        assert service.list_reports(responder) == []

        service.assign_agencies(report_id, ["bfp"], admin)
        assert [r["id"] for r in service.list_reports(responder)] == [report_id]

    def test_agency_without_agency_sees_nothing(self, backend, report_id, admin):
        lost = add_user(backend, "responder-2", role="agency")
        TriageService(backend).assign_agencies(report_id, ["bfp"], admin)
        assert TriageService(backend).list_reports(lost) == []

    def test_citizen_cannot_browse(self, backend, citizen):
        with pytest.raises(AuthorizationError):
            TriageService(backend).list_reports(citizen)

    def test_status_filter(self, backend, report_id, admin):
        service = TriageService(backend)
        assert service.list_reports(admin, status="resolved") == []
        assert len(service.list_reports(admin, status="pending")) == 1


class TestGetReport:

    def test_owner_can_view(self, backend, report_id, citizen):
        report = TriageService(backend).get_report(report_id, citizen)
        assert report["category"]["tips"] == ["Stay low under smoke"]
        assert len(report["updates"]) == 1

    def test_other_citizen_cannot_view(self, backend, report_id):
        other = add_user(backend, "citizen-2")
        with pytest.raises(AuthorizationError):
            TriageService(backend).get_report(report_id, other)

    def test_unassigned_agency_cannot_view(self, backend, report_id, responder):
        with pytest.raises(AuthorizationError):
            TriageService(backend).get_report(report_id, responder)

    def test_missing_report(self, backend, admin):
        with pytest.raises(NotFoundError):
            TriageService(backend).get_report("missing", admin)


class TestTransition:

    def test_full_lifecycle(self, backend, assigned_report, responder):
        service = TriageService(backend)
        service.transition(assigned_report, "in_progress", responder)
        resolved = service.transition(assigned_report, "resolved", responder, notes="Fire put out")
        assert resolved["status"] == "resolved"
        assert resolved["acknowledged_at"] is not None
        assert resolved["resolved_at"] is not None

        statuses = [u["status"] for u in updates_for(backend, assigned_report)]
        # submitted, assignment (acknowledges), then one entry per transition
        assert statuses == ["pending", "acknowledged", "in_progress", "resolved"]
        notes = [u["notes"] for u in updates_for(backend, assigned_report)]
        assert notes[1] == "Report assigned to Bureau of Fire Protection"
        assert notes[-1] == "Fire put out"

    def test_acknowledge_note(self, backend, report_id, admin):
        acknowledged = TriageService(backend).acknowledge(report_id, admin)
        assert acknowledged["status"] == "acknowledged"
        assert acknowledged["acknowledged_at"] is not None
        assert acknowledged["updates"][-1]["notes"] == "Report acknowledged by agency"

    def test_each_transition_writes_one_update(self, backend, report_id, admin):
        before = len(updates_for(backend, report_id))
        TriageService(backend).acknowledge(report_id, admin)
        assert len(updates_for(backend, report_id)) == before + 1

    def test_skipping_states_rejected(self, backend, report_id, admin):
        with pytest.raises(InvalidTransitionError):
            TriageService(backend).transition(report_id, "resolved", admin)
        assert backend.get(REPORTS, report_id)["status"] == "pending"

    def test_terminal_state_is_final(self, backend, report_id, admin):
        service = TriageService(backend)
        service.transition(report_id, "cancelled", admin)
        with pytest.raises(InvalidTransitionError):
            service.transition(report_id, "acknowledged", admin)

    def test_unassigned_agency_cannot_act(self, backend, report_id, responder):
        with pytest.raises(AuthorizationError):
            TriageService(backend).acknowledge(report_id, responder)

    def test_citizen_cannot_use_triage(self, backend, report_id, citizen):
        with pytest.raises(AuthorizationError):
            TriageService(backend).transition(report_id, "cancelled", citizen)

    def test_concurrent_change_detected(self, backend, report_id, admin, monkeypatch):
        service = TriageService(backend)
        real_fetch = service._fetch

        def stale_fetch(rid):
            report = real_fetch(rid)
            # Someone else acknowledges between our read and our write
            backend.update(REPORTS, rid, {"status": "acknowledged"})
            return report

        monkeypatch.setattr(service, "_fetch", stale_fetch)
        with pytest.raises(InvalidTransitionError):
            service.transition(report_id, "cancelled", admin)
        assert backend.get(REPORTS, report_id)["status"] == "acknowledged"

    def test_status_write_failure(self, backend, report_id, admin):
        backend.fail("update", REPORTS)
        with pytest.raises(PersistenceError):
            TriageService(backend).acknowledge(report_id, admin)

    def test_audit_failure_does_not_block_transition(self, backend, report_id, admin):
        backend.fail("insert", REPORT_UPDATES)
        updated = TriageService(backend).acknowledge(report_id, admin)
        assert updated["status"] == "acknowledged"

    def test_history_failure_after_transition_keeps_status(self, backend, report_id, admin):
        backend.fail("query", REPORT_UPDATES)
        updated = TriageService(backend).transition(report_id, "cancelled", admin)
        assert updated["status"] == "cancelled"
        assert updated["updates"] == []
        assert backend.get(REPORTS, report_id)["status"] == "cancelled"


class TestNotes:

    def test_add_note(self, backend, assigned_report, responder):
        entry = TriageService(backend).add_note(assigned_report, responder, "  Team dispatched  ")
        assert entry["notes"] == "Team dispatched"
        assert entry["update_type"] == "note"
        assert entry["status"] == "acknowledged"
        assert backend.get(REPORTS, assigned_report)["status"] == "acknowledged"

    def test_blank_note_rejected(self, backend, report_id, admin):
        with pytest.raises(ValidationError):
            TriageService(backend).add_note(report_id, admin, "   ")

    def test_note_write_failure(self, backend, report_id, admin):
        backend.fail("insert", REPORT_UPDATES)
        with pytest.raises(PersistenceError):
            TriageService(backend).add_note(report_id, admin, "Team dispatched")


class TestAssignAgencies:

    def test_first_assignment_acknowledges(self, backend, report_id, admin):
        updated = TriageService(backend).assign_agencies(report_id, ["bfp", "pnp", "bfp"], admin)
        assert updated["assigned_agency_ids"] == ["bfp", "pnp"]
        assert updated["status"] == "acknowledged"
        assert updated["acknowledged_at"] is not None

        assignments = [u for u in updated["updates"] if u["update_type"] == "assignment"]
        assert len(assignments) == 1
        assert assignments[0]["notes"] == "Report assigned to Bureau of Fire Protection, Philippine National Police"
        assert assignments[0]["status"] == "acknowledged"
        assert assignments[0]["is_public"] is True

    def test_later_assignment_merges_and_keeps_status(self, backend, assigned_report, admin):
        service = TriageService(backend)
        service.transition(assigned_report, "in_progress", admin)

        updated = service.assign_agencies(assigned_report, ["pnp", "bfp"], admin)
        assert updated["assigned_agency_ids"] == ["bfp", "pnp"]
        assert updated["status"] == "in_progress"
        assert updated["updates"][-1]["notes"] == "Report assigned to Philippine National Police, Bureau of Fire Protection"

    def test_empty_selection_rejected(self, backend, report_id, admin):
        with pytest.raises(ValidationError) as exc_info:
            TriageService(backend).assign_agencies(report_id, ["", None], admin)
        assert exc_info.value.messages == ["Select at least one agency"]
        assert backend.get(REPORTS, report_id)["status"] == "pending"

    def test_unknown_agency(self, backend, report_id, admin):
        with pytest.raises(ValidationError) as exc_info:
            TriageService(backend).assign_agencies(report_id, ["nope"], admin)
        assert exc_info.value.messages == ["Unknown agency: nope"]

    def test_agency_cannot_assign(self, backend, report_id, responder):
        with pytest.raises(AuthorizationError):
            TriageService(backend).assign_agencies(report_id, ["bfp"], responder)

    def test_terminal_report_cannot_be_assigned(self, backend, report_id, admin):
        service = TriageService(backend)
        service.transition(report_id, "cancelled", admin)
        with pytest.raises(InvalidTransitionError):
            service.assign_agencies(report_id, ["bfp"], admin)

    def test_concurrent_status_change_detected(self, backend, report_id, admin, monkeypatch):
        service = TriageService(backend)
        real_fetch = service._fetch

        def stale_fetch(rid):
            report = real_fetch(rid)
            backend.update(REPORTS, rid, {"status": "cancelled"})
            return report

        monkeypatch.setattr(service, "_fetch", stale_fetch)
        with pytest.raises(InvalidTransitionError):
            service.assign_agencies(report_id, ["bfp"], admin)
        assert backend.get(REPORTS, report_id)["assigned_agency_ids"] == []
