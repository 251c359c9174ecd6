# =======================================================================================
# gatepass/services/visit_store.py - Visit Record Store
# =======================================================================================
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ..database import fetch_all, fetch_one
from ..models.enums import Presence, VisitStatus
from ..models.records import EntryExitEvent, VisitRecord
from ..models.tables import credentials, visit_events, visit_records
from ..utils.exceptions import (
    CorruptStateError,
    InvalidStateError,
    RecordNotFoundError,
    ScanConflictError,
)
from ..utils.validators import utcnow

logger = logging.getLogger(__name__)


def check_ledger_invariant(presence: Presence, events: Sequence[EntryExitEvent]) -> None:
    """
    INSIDE iff the last ledger event is open, and no exit precedes its entry.
    Only the last event may be open.
    """
    for index, event in enumerate(events):
        if event.exit_time is not None and event.exit_time < event.entry_time:
            raise CorruptStateError(f"Ledger event {event.id} exits before it enters")
        if event.is_open and index != len(events) - 1:
            raise CorruptStateError(f"Ledger event {event.id} is open but not the latest")

    last_open = bool(events) and events[-1].is_open
    if (presence == Presence.INSIDE) != last_open:
        raise CorruptStateError(
            f"Presence {presence.value} disagrees with ledger (last event open={last_open})"
        )


class VisitRecordStore:
    """Persistence for visit records and their entry/exit ledger."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    # ----------------------------------------------------------------------
    # Loading
    # ----------------------------------------------------------------------
    def _events_for(self, conn: Connection, record_ids: Iterable[int]) -> Dict[int, List[EntryExitEvent]]:
        ids = list(record_ids)
        grouped: Dict[int, List[EntryExitEvent]] = defaultdict(list)
        if not ids:
            return grouped
        rows = fetch_all(
            conn,
            select(visit_events)
            .where(visit_events.c.visit_record_id.in_(ids))
            .order_by(visit_events.c.visit_record_id, visit_events.c.id),
        )
        for row in rows:
            grouped[row["visit_record_id"]].append(EntryExitEvent.from_row(row))
        return grouped

    def _hydrate(self, conn: Connection, rows) -> List[VisitRecord]:
        events = self._events_for(conn, (row["id"] for row in rows))
        return [VisitRecord.from_row(row, events.get(row["id"], [])) for row in rows]

    def get_by_id(self, conn: Connection, record_id: int) -> Optional[VisitRecord]:
        row = fetch_one(conn, select(visit_records).where(visit_records.c.id == record_id))
        return self._hydrate(conn, [row])[0] if row else None

    def get_by_email(self, conn: Connection, email: str) -> Optional[VisitRecord]:
        row = fetch_one(conn, select(visit_records).where(visit_records.c.email == email))
        return self._hydrate(conn, [row])[0] if row else None

    def require(self, conn: Connection, record_id: int) -> VisitRecord:
        record = self.get_by_id(conn, record_id)
        if record is None:
            raise RecordNotFoundError("Visit request not found")
        return record

    def list_by_status(self, conn: Connection, status: VisitStatus) -> List[VisitRecord]:
        rows = fetch_all(
            conn,
            select(visit_records)
            .where(visit_records.c.status == status.value)
            .order_by(visit_records.c.visit_at, visit_records.c.id),
        )
        return self._hydrate(conn, rows)

    def select_records(self, conn: Connection, *criteria) -> List[VisitRecord]:
        """Read-only load of every record matching the given SQL criteria."""
        rows = fetch_all(
            conn,
            select(visit_records).where(*criteria).order_by(visit_records.c.visit_at, visit_records.c.id),
        )
        return self._hydrate(conn, rows)

    # ----------------------------------------------------------------------
    # Registration
    # ----------------------------------------------------------------------
    def upsert_registration(
        self,
        conn: Connection,
        email: str,
        name: str,
        mobile_number: str,
        purpose: str,
        visit_at: datetime,
    ) -> VisitRecord:
        """
        Create or fully replace the record for ``email``.

        Re-registration is a complete replacement of the mutable fields, not a
        merge: status goes back to pending, the visitor is outside and the
        ledger is emptied.
        """
        now = self.clock()
        fields = {
            "name": name,
            "mobile_number": mobile_number,
            "purpose": purpose,
            "visit_at": visit_at,
            "is_verified": True,
            "status": VisitStatus.PENDING.value,
            "presence": Presence.OUTSIDE.value,
            "updated_at": now,
        }
        result = conn.execute(
            update(visit_records)
            .where(visit_records.c.email == email)
            .values(version=visit_records.c.version + 1, **fields)
        )

        if result.rowcount:
            record_id = fetch_one(
                conn, select(visit_records.c.id).where(visit_records.c.email == email)
            )["id"]
            conn.execute(delete(visit_events).where(visit_events.c.visit_record_id == record_id))
            logger.info("Re-registration reset visit record %s (%s)", record_id, email)
        else:
            try:
                conn.execute(
                    insert(visit_records).values(email=email, version=0, created_at=now, **fields)
                )
            except IntegrityError:
                raise InvalidStateError("A registration for this email is already in progress, please retry")
            logger.info("Created visit record for %s", email)

        return self.get_by_email(conn, email)

    # ----------------------------------------------------------------------
    # Status workflow
    # ----------------------------------------------------------------------
    def transition_status(
        self,
        conn: Connection,
        record: VisitRecord,
        expected: VisitStatus,
        new_status: VisitStatus,
    ) -> VisitRecord:
        """Move ``record`` from ``expected`` to ``new_status`` if nobody changed it since it was read."""
        if record.status != expected:
            raise InvalidStateError(f"Request is not {expected.value}")

        result = conn.execute(
            update(visit_records)
            .where(
                visit_records.c.id == record.id,
                visit_records.c.status == expected.value,
                visit_records.c.version == record.version,
            )
            .values(
                status=new_status.value,
                version=visit_records.c.version + 1,
                updated_at=self.clock(),
            )
        )
        if result.rowcount != 1:
            current = self.get_by_id(conn, record.id)
            if current is None:
                raise RecordNotFoundError("Visit request not found")
            raise InvalidStateError(f"Request is not {expected.value}")

        record.status = new_status
        record.version += 1
        return record

    def delete(self, conn: Connection, record_id: int, only_status: Optional[VisitStatus] = None) -> bool:
        """Delete a record with its ledger and credentials; ``only_status`` guards against re-registration."""
        criteria = [visit_records.c.id == record_id]
        if only_status is not None:
            criteria.append(visit_records.c.status == only_status.value)
        if not fetch_one(conn, select(visit_records.c.id).where(*criteria)):
            return False

        conn.execute(delete(visit_events).where(visit_events.c.visit_record_id == record_id))
        conn.execute(delete(credentials).where(credentials.c.visit_record_id == record_id))
        result = conn.execute(delete(visit_records).where(*criteria))
        return result.rowcount == 1

    # ----------------------------------------------------------------------
    # Ledger
    # ----------------------------------------------------------------------
    def _claim(self, conn: Connection, record: VisitRecord, from_presence: Presence,
               to_presence: Presence, now: datetime) -> None:
        """Conditional presence flip; zero rows means another scan got there first."""
        result = conn.execute(
            update(visit_records)
            .where(
                visit_records.c.id == record.id,
                visit_records.c.version == record.version,
                visit_records.c.presence == from_presence.value,
                visit_records.c.status == VisitStatus.APPROVED.value,
            )
            .values(
                presence=to_presence.value,
                version=visit_records.c.version + 1,
                updated_at=now,
            )
        )
        if result.rowcount != 1:
            logger.warning("Lost scan race on visit record %s (version %s)", record.id, record.version)
            raise ScanConflictError()

    def record_entry(self, conn: Connection, record: VisitRecord, now: datetime) -> EntryExitEvent:
        """Open a new ledger event and mark the visitor INSIDE."""
        pending = EntryExitEvent(id=0, entry_time=now)
        check_ledger_invariant(Presence.INSIDE, record.events + [pending])

        self._claim(conn, record, Presence.OUTSIDE, Presence.INSIDE, now)
        result = conn.execute(
            insert(visit_events).values(visit_record_id=record.id, entry_time=now, exit_time=None)
        )
        event = EntryExitEvent(id=result.inserted_primary_key[0], entry_time=now)

        record.events.append(event)
        record.presence = Presence.INSIDE
        record.version += 1
        return event

    def record_exit(self, conn: Connection, record: VisitRecord, now: datetime) -> EntryExitEvent:
        """Close the open ledger event and mark the visitor OUTSIDE."""
        last = record.last_event
        # exit never precedes entry, even with clock skew between app servers
        exit_time = max(now, last.entry_time)
        closed = EntryExitEvent(id=last.id, entry_time=last.entry_time, exit_time=exit_time)
        check_ledger_invariant(Presence.OUTSIDE, record.events[:-1] + [closed])

        self._claim(conn, record, Presence.INSIDE, Presence.OUTSIDE, now)
        result = conn.execute(
            update(visit_events)
            .where(visit_events.c.id == last.id, visit_events.c.exit_time.is_(None))
            .values(exit_time=exit_time)
        )
        if result.rowcount != 1:
            raise ScanConflictError()

        record.events[-1] = closed
        record.presence = Presence.OUTSIDE
        record.version += 1
        return closed

    # ----------------------------------------------------------------------
    # Lookups for the admin dashboard
    # ----------------------------------------------------------------------
    @staticmethod
    def text_match(term: str):
        like = f"%{term.strip()}%"
        return or_(
            visit_records.c.name.ilike(like),
            visit_records.c.email.ilike(like),
            visit_records.c.purpose.ilike(like),
            visit_records.c.mobile_number.ilike(like),
        )

    def search(self, conn: Connection, term: str, limit: int = 20) -> List[VisitRecord]:
        rows = fetch_all(
            conn,
            select(visit_records)
            .where(self.text_match(term))
            .order_by(visit_records.c.id.desc())
            .limit(limit),
        )
        return self._hydrate(conn, rows)

    def summary(self, conn: Connection) -> Dict[str, int]:
        rows = fetch_all(
            conn,
            select(visit_records.c.status, func.count().label("n")).group_by(visit_records.c.status),
        )
        counts: Dict[str, Any] = {row["status"]: int(row["n"]) for row in rows}
        inside = fetch_one(
            conn,
            select(func.count().label("n")).where(
                and_(
                    visit_records.c.presence == Presence.INSIDE.value,
                    visit_records.c.status == VisitStatus.APPROVED.value,
                )
            ),
        )
        return {
            "total_visitors": sum(counts.values()),
            "pending": counts.get(VisitStatus.PENDING.value, 0),
            "approved": counts.get(VisitStatus.APPROVED.value, 0),
            "inside": int(inside["n"] or 0) if inside else 0,
        }
