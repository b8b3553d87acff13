"""
tests/test_session.py
=====================

Unit tests for auditkit.session.AuditSession against the in-memory store.
"""

from dataclasses import replace
from datetime import date

import pytest

from auditkit.errors import ExportError, ValidationError
from auditkit.lifecycle import SessionState
from auditkit.models import Audit, Client, ComplianceStatus, Control
from auditkit.session import AuditSession
from auditkit.templates import DEFAULT_TEMPLATE

from conftest import AUDIT_DAY


def _stored_audit(gateway, serials):
    client = Client(id="c1", name="Acme Corp")
    gateway.save_client(client)
    controls = [
        Control(id=f"k{i}", category="Cat", title=f"T{i}", description="d",
                status=ComplianceStatus.COMPLIANT, serial_number=s)
        for i, s in enumerate(serials)
    ]
    audit = Audit(id="a1", client=client, controls=controls, title="Stored title",
                  financial_year="2023-2024", audit_date=date(2024, 1, 2))
    gateway.save_audit(audit)
    return audit


# ---------------------------------------------------------------------------
# Start-up
# ---------------------------------------------------------------------------
def test_no_client_reports_no_client(session, gateway):
    assert session.start() is SessionState.NO_CLIENT
    assert session.audit is None
    assert gateway.load_audit() is None


def test_malformed_client_counts_as_absent(session, store):
    store.set("client-record", "{oops")
    assert session.start() is SessionState.NO_CLIENT


def test_new_audit_is_synthesized_and_persisted(session, gateway):
    session.setup_client("Acme Corp")
    assert session.start() is SessionState.READY

    stored = gateway.load_audit()
    assert stored is not None and stored.id == session.audit.id
    assert [c.serial_number for c in stored.controls] == list(range(1, len(DEFAULT_TEMPLATE) + 1))
    assert [c.title for c in stored.controls] == [t.title for t in DEFAULT_TEMPLATE]
    assert stored.submitted is False
    assert stored.confidential is True
    assert stored.client.name == "Acme Corp"
    assert stored.audit_date == AUDIT_DAY
    assert stored.disclaimer and stored.company_info.name


def test_template_ids_are_fresh(session, gateway):
    session.setup_client("Acme Corp")
    session.start()
    assert len({c.id for c in session.controls}) == len(DEFAULT_TEMPLATE)


def test_stored_metadata_is_adopted(session, gateway):
    _stored_audit(gateway, [1, 2])
    session.start()
    assert session.cover_draft.title == "Stored title"
    assert session.cover_draft.financial_year == "2023-2024"
    assert session.cover_draft.audit_date == date(2024, 1, 2)


def test_backfill_assigns_positions(session, gateway):
    _stored_audit(gateway, [None, None, None])
    session.start()
    assert [c.serial_number for c in session.controls] == [1, 2, 3]


def test_backfill_keeps_existing_numbers(session, gateway):
    _stored_audit(gateway, [5, 9, 7])
    session.start()
    assert [c.serial_number for c in session.controls] == [5, 9, 7]


def test_backfill_is_stable_across_save_and_reload(session, gateway, test_settings):
    _stored_audit(gateway, [None, None])
    session.start()
    session.save_audit()

    again = AuditSession(gateway, settings=test_settings)
    again.start()
    assert [c.serial_number for c in again.controls] == [1, 2]
    assert [c.serial_number for c in gateway.load_audit().controls] == [1, 2]


def test_categories_seeded_from_controls(ready_session):
    assert ready_session.categories[0] == "Access Control"
    assert len(ready_session.categories) == len(set(ready_session.categories))


# ---------------------------------------------------------------------------
# Client setup
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("name", ["", "   "])
def test_setup_client_requires_name(session, gateway, name):
    with pytest.raises(ValidationError) as exc:
        session.setup_client(name)
    assert exc.value.field == "name"
    assert gateway.load_client() is None


def test_setup_client_trims_and_replaces(session, gateway):
    session.setup_client("Old Co")
    session.setup_client("  New Co  ")
    assert gateway.load_client().name == "New Co"


# ---------------------------------------------------------------------------
# In-memory edits and saving
# ---------------------------------------------------------------------------
def test_update_control_is_in_memory_only(ready_session, gateway):
    first = ready_session.controls[0]
    ready_session.update_control(replace(first, status=ComplianceStatus.NOT_APPLICABLE,
                                         comment="n/a here"))
    assert ready_session.controls[0].status is ComplianceStatus.NOT_APPLICABLE
    assert ready_session.controls[0].updated_at >= first.updated_at
    assert gateway.load_audit().controls[0].status is first.status

    ready_session.save_audit()
    assert gateway.load_audit().controls[0].comment == "n/a here"


def test_update_unknown_control_is_noop(ready_session):
    before = list(ready_session.controls)
    ghost = replace(before[0], id="nope", title="ghost")
    ready_session.update_control(ghost)
    assert ready_session.controls == before


def test_save_before_start_is_noop(session, gateway):
    session.save_audit()
    session.submit_audit()
    assert gateway.load_audit() is None


def test_submit_twice_stays_submitted(ready_session, gateway):
    ready_session.submit_audit()
    ready_session.submit_audit()
    assert gateway.load_audit().submitted is True
    assert ready_session.is_read_only


def test_save_after_submit_keeps_flag(ready_session, gateway):
    ready_session.submit_audit()
    ready_session.save_audit()
    assert gateway.load_audit().submitted is True


def test_save_cover_info_only_touches_cover(ready_session, gateway):
    ready_session.update_control(replace(ready_session.controls[0], comment="unsaved"))
    ready_session.update_cover_draft(title="New title", financial_year="2025-2026",
                                     audit_date=date(2025, 4, 1))
    ready_session.save_cover_info()

    stored = gateway.load_audit()
    assert (stored.title, stored.financial_year, stored.audit_date) == (
        "New title", "2025-2026", date(2025, 4, 1))
    assert stored.controls[0].comment == ""
    assert stored.submitted is False


# ---------------------------------------------------------------------------
# Filtering and derived values
# ---------------------------------------------------------------------------
def test_filter_projection(ready_session):
    ready_session.set_filter("partial")
    assert ready_session.filtered_controls
    assert all(c.status is ComplianceStatus.PARTIAL for c in ready_session.filtered_controls)
    ready_session.set_filter("all")
    assert ready_session.filtered_controls == ready_session.controls


def test_filter_rejects_unknown_value(ready_session):
    with pytest.raises(ValidationError):
        ready_session.set_filter("done")
    assert ready_session.active_filter == "all"


def test_view_mode(ready_session):
    ready_session.set_view_mode("table")
    assert ready_session.view_mode == "table"
    with pytest.raises(ValidationError):
        ready_session.set_view_mode("grid")


def test_unaddressed_guard(ready_session):
    assert ready_session.has_unaddressed_controls is False
    ready_session.controls.append(
        Control(id="raw", category="c", title="t", description="d", status=""))
    assert ready_session.has_unaddressed_controls is True


def test_summary_follows_controls(ready_session):
    s = ready_session.summary
    assert s.total == len(DEFAULT_TEMPLATE)
    assert (s.compliant, s.not_compliant, s.partial, s.not_applicable) == (3, 2, 2, 1)
    assert s.compliance_percentage == 43


def test_listeners_notified_and_unsubscribed(ready_session):
    seen = []
    unsubscribe = ready_session.subscribe(lambda s: seen.append(s.active_filter))
    ready_session.set_filter("compliant")
    ready_session.save_audit()
    unsubscribe()
    ready_session.set_filter("all")
    assert seen == ["compliant", "compliant"]


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------
def _pairs_consistent(session):
    return all(bool(c.attachment_name) == bool(c.attachment_url) for c in session.controls)


def test_attachment_pairing_through_edits(ready_session):
    cid = ready_session.controls[1].id
    ready_session.attach_file(cid, "evidence.txt", "data:text/plain;base64,aGk=")
    assert _pairs_consistent(ready_session)
    assert ready_session.controls[1].attachment_name == "evidence.txt"

    with pytest.raises(ValidationError):
        ready_session.update_control(replace(ready_session.controls[1], attachment_url=None))
    assert _pairs_consistent(ready_session)

    with pytest.raises(ValidationError):
        ready_session.attach_file(cid, "", "data:text/plain;base64,aGk=")

    ready_session.remove_attachment(cid)
    assert _pairs_consistent(ready_session)
    assert ready_session.controls[1].attachment_url is None


# ---------------------------------------------------------------------------
# Control-set management
# ---------------------------------------------------------------------------
def test_add_control_assigns_next_serial_and_persists(ready_session, gateway):
    n = len(ready_session.controls)
    control = ready_session.add_control("New", "Describe it", "Physical Security")
    assert control.serial_number == n + 1
    assert control.status is ComplianceStatus.NOT_COMPLIANT
    assert gateway.load_audit().controls[-1].id == control.id
    assert "Physical Security" in ready_session.categories


@pytest.mark.parametrize("title,description,category", [
    ("", "d", "c"), ("t", "  ", "c"), ("t", "d", ""),
])
def test_add_control_validation(ready_session, gateway, title, description, category):
    before = list(ready_session.controls)
    with pytest.raises(ValidationError):
        ready_session.add_control(title, description, category)
    assert ready_session.controls == before
    assert len(gateway.load_audit().controls) == len(before)


def test_edit_control(ready_session, gateway):
    cid = ready_session.controls[0].id
    edited = ready_session.edit_control(cid, " Renamed ", "New text", "Access Control", "partial")
    assert edited.title == "Renamed"
    stored = gateway.load_audit().controls[0]
    assert (stored.title, stored.status) == ("Renamed", ComplianceStatus.PARTIAL)
    assert stored.serial_number == 1


def test_edit_control_validation_leaves_state(ready_session):
    before = list(ready_session.controls)
    with pytest.raises(ValidationError):
        ready_session.edit_control(before[0].id, "", "d", "c", "compliant")
    assert ready_session.controls == before


def test_delete_control_without_renumbering(ready_session, gateway):
    victim = ready_session.controls[1]
    assert ready_session.delete_control(victim.id) is True
    serials = [c.serial_number for c in gateway.load_audit().controls]
    assert 2 not in serials and serials[:2] == [1, 3]


def test_delete_unknown_control_is_noop(ready_session, gateway):
    before = list(ready_session.controls)
    assert ready_session.delete_control("does-not-exist") is False
    assert ready_session.controls == before
    assert gateway.load_audit().controls == before


def test_management_before_start_keeps_stored_controls(session, gateway):
    stored = _stored_audit(gateway, [1, 2, 3, 4, 5, 6, 7, 8])
    assert session.add_control("New", "desc", "Cat") is None
    assert session.edit_control("k0", "T", "d", "Cat", "partial") is None
    assert session.delete_control("k0") is False
    assert gateway.load_audit().controls == stored.controls
    assert session.controls == []


def test_management_does_not_persist_unsaved_edits(ready_session, gateway):
    first, second = ready_session.controls[:2]
    ready_session.update_control(replace(first, comment="draft only"))

    added = ready_session.add_control("New", "desc", "Cat")
    ready_session.edit_control(second.id, "Renamed", "d", "Cat", "compliant")
    ready_session.delete_control(added.id)

    stored = {c.id: c for c in gateway.load_audit().controls}
    assert stored[first.id].comment == ""
    assert stored[second.id].title == "Renamed"
    assert added.id not in stored
    assert ready_session.controls[0].comment == "draft only"
    assert ready_session.controls[1].title == "Renamed"

    ready_session.save_audit()
    assert gateway.load_audit().controls[0].comment == "draft only"


def test_add_category_is_display_only(ready_session, gateway):
    assert ready_session.add_category("  Cloud  ") is True
    assert ready_session.add_category("Cloud") is False
    assert ready_session.add_category(" ") is False
    assert "Cloud" in ready_session.categories
    assert all(c.category != "Cloud" for c in gateway.load_audit().controls)


# ---------------------------------------------------------------------------
# Export guard
# ---------------------------------------------------------------------------
def test_export_without_audit_fails(session, tmp_path):
    with pytest.raises(ExportError):
        session.export_report(tmp_path)
    assert list(tmp_path.iterdir()) == []
