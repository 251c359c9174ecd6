"""Gate scan state machine and ledger consistency."""

from datetime import timedelta

import pytest
from sqlalchemy import insert, update

from conftest import approve, register
from gatepass.models.enums import Presence, VisitStatus
from gatepass.models.records import EntryExitEvent
from gatepass.models.tables import visit_events, visit_records
from gatepass.services.gate_scan import GateScanService
from gatepass.services.visit_store import check_ledger_invariant
from gatepass.utils.exceptions import (
    AlreadyExitedError,
    CorruptStateError,
    InvalidCredentialError,
    ScanConflictError,
)


def scan(db, services, token):
    with db.get_connection() as conn:
        return services.gate_scan.scan(conn, token)


def load(db, services, record_id):
    with db.get_connection() as conn:
        return services.approval.visit_store.get_by_id(conn, record_id)


class TestDetermineEvent:
    def test_outside_enters(self):
        assert GateScanService.determine_event(Presence.OUTSIDE) == ("entry", Presence.INSIDE)

    def test_inside_exits(self):
        assert GateScanService.determine_event(Presence.INSIDE) == ("exit", Presence.OUTSIDE)


class TestEntryExit:
    def test_entry_then_exit(self, db, services, clock, approved):
        record, token = approved

        entry = scan(db, services, token)
        assert entry.event == "entry"
        assert entry.email == "a@x.com"
        assert entry.time == clock.now
        assert load(db, services, record.id).is_visited is True

        clock.advance(minutes=45)
        exit_ = scan(db, services, token)
        assert exit_.event == "exit"

        stored = load(db, services, record.id)
        assert stored.is_visited is False
        assert len(stored.events) == 1
        assert stored.events[0].exit_time - stored.events[0].entry_time == clock.now - entry.time

    def test_alternation_over_many_scans(self, db, services, clock, approved):
        record, token = approved
        events = []
        for _ in range(7):
            events.append(scan(db, services, token).event)
            clock.advance(minutes=5)

        assert events == ["entry", "exit"] * 3 + ["entry"]
        stored = load(db, services, record.id)
        assert len(stored.events) == 4
        assert stored.presence == Presence.INSIDE
        assert [e.exit_time is None for e in stored.events] == [False, False, False, True]


class TestCredentialChecks:
    def test_unknown_token(self, db, services):
        with pytest.raises(InvalidCredentialError):
            scan(db, services, "no-such-token")

    def test_blank_token(self, db, services):
        with pytest.raises(InvalidCredentialError):
            scan(db, services, "   ")

    def test_deactivated_token(self, db, services, approved):
        record, token = approved
        with db.get_connection() as conn:
            cred = services.credentials.resolve_active(conn, token)
            services.credentials.deactivate(conn, cred.id)
        with pytest.raises(InvalidCredentialError):
            scan(db, services, token)

    def test_expired_token_rejected_before_sweep(self, db, services, clock, approved):
        record, token = approved
        clock.advance(hours=24)
        with pytest.raises(InvalidCredentialError):
            scan(db, services, token)

        with db.get_connection() as conn:
            assert services.maintenance.purge_expired(conn)["credentials"] == 1

    def test_reissue_revokes_previous_token(self, db, services, approved):
        record, old_token = approved
        services.approval.resend_credential(record.id)
        with db.get_connection() as conn:
            new_token = services.credentials.for_record(conn, record.id)[-1].token

        with pytest.raises(InvalidCredentialError):
            scan(db, services, old_token)
        assert scan(db, services, new_token).event == "entry"

    @pytest.mark.parametrize("status", [VisitStatus.PENDING, VisitStatus.REJECTED])
    def test_active_credential_on_non_approved_record(self, db, services, mailer, status):
        record = register(db, services, mailer)
        with db.get_connection() as conn:
            conn.execute(update(visit_records).where(visit_records.c.id == record.id).values(status=status.value))
            cred = services.credentials.issue(conn, record.id)

        with pytest.raises(InvalidCredentialError):
            scan(db, services, cred.token)
        assert load(db, services, record.id).events == []

    def test_re_registration_blocks_old_credential(self, db, services, mailer, approved):
        record, token = approved
        register(db, services, mailer)
        with pytest.raises(InvalidCredentialError):
            scan(db, services, token)


class TestLedgerGuards:
    def test_inside_with_empty_ledger_is_corrupt(self, db, services, approved):
        record, token = approved
        with db.get_connection() as conn:
            conn.execute(
                update(visit_records).where(visit_records.c.id == record.id).values(presence="INSIDE")
            )
        with pytest.raises(CorruptStateError):
            scan(db, services, token)

    def test_inside_with_closed_last_event_is_already_exited(self, db, services, clock, approved):
        record, token = approved
        with db.get_connection() as conn:
            conn.execute(insert(visit_events).values(
                visit_record_id=record.id, entry_time=clock.now, exit_time=clock.now
            ))
            conn.execute(
                update(visit_records).where(visit_records.c.id == record.id).values(presence="INSIDE")
            )
        with pytest.raises(AlreadyExitedError):
            scan(db, services, token)

    def test_invariant_checker(self, clock):
        open_event = EntryExitEvent(id=1, entry_time=clock.now)
        check_ledger_invariant(Presence.OUTSIDE, [])
        check_ledger_invariant(Presence.INSIDE, [open_event])
        with pytest.raises(CorruptStateError):
            check_ledger_invariant(Presence.OUTSIDE, [open_event])
        with pytest.raises(CorruptStateError):
            check_ledger_invariant(Presence.INSIDE, [])
        backwards = EntryExitEvent(id=2, entry_time=clock.now, exit_time=clock.now - timedelta(minutes=1))
        with pytest.raises(CorruptStateError):
            check_ledger_invariant(Presence.OUTSIDE, [backwards])


class TestConcurrentScans:
    def test_stale_entry_loses_to_committed_entry(self, db, services, clock, approved):
        """Two scans read OUTSIDE; the second writer must not open a second entry."""
        record, token = approved
        store = services.gate_scan.visit_store

        with db.get_connection() as conn:
            stale = store.get_by_id(conn, record.id)

        assert scan(db, services, token).event == "entry"

        with pytest.raises(AlreadyExitedError) as excinfo:
            with db.get_connection() as conn:
                store.record_entry(conn, stale, clock.now)
        assert isinstance(excinfo.value, ScanConflictError)

        stored = load(db, services, record.id)
        assert len(stored.events) == 1
        assert stored.presence == Presence.INSIDE

    def test_stale_exit_loses_to_committed_exit(self, db, services, clock, approved):
        record, token = approved
        scan(db, services, token)
        store = services.gate_scan.visit_store

        with db.get_connection() as conn:
            stale = store.get_by_id(conn, record.id)

        clock.advance(minutes=1)
        assert scan(db, services, token).event == "exit"

        with pytest.raises(ScanConflictError):
            with db.get_connection() as conn:
                store.record_exit(conn, stale, clock.now)

        stored = load(db, services, record.id)
        assert stored.presence == Presence.OUTSIDE
        assert stored.events[0].exit_time is not None

    def test_scan_racing_rejection_snapshot(self, db, services, clock, approved):
        record, token = approved
        store = services.gate_scan.visit_store
        with db.get_connection() as conn:
            stale = store.get_by_id(conn, record.id)
            conn.execute(
                update(visit_records)
                .where(visit_records.c.id == record.id)
                .values(status="rejected", version=visit_records.c.version + 1)
            )

        with pytest.raises(ScanConflictError):
            with db.get_connection() as conn:
                store.record_entry(conn, stale, clock.now)

    def test_other_visitors_are_independent(self, db, services, mailer, approved):
        record, token = approved
        _, other_token = approve(db, services, mailer, email="b@x.com")

        assert scan(db, services, token).event == "entry"
        assert scan(db, services, other_token).event == "entry"
        assert scan(db, services, token).event == "exit"
