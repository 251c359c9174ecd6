# =======================================================================================
# gatepass/services/report_service.py - Visit Activity Queries
# =======================================================================================
from datetime import date, datetime, time
from typing import List, Optional, Tuple

from dateutil import parser as date_parser
from sqlalchemy import and_, exists, not_, or_, select
from sqlalchemy.engine import Connection

from ..models.enums import ReportRowStatus, ReportStatusFilter, VisitStatus
from ..models.records import ReportRow, ReportSummary, VisitRecord
from ..models.tables import visit_events, visit_records
from ..utils.exceptions import ValidationError
from .visit_store import VisitRecordStore

STATUS_FILTERS = ("all", "completed", "inside", "scheduled")


def parse_date_range(start, end) -> Tuple[datetime, datetime]:
    """Whole-day inclusive range: start at 00:00, end at the last microsecond of its day."""
    if not start or not end:
        raise ValidationError("Start date and end date are required")

    def _day(value) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date_parser.parse(str(value)).date()
        except (ValueError, OverflowError):
            raise ValidationError("Invalid date format")

    start_at = datetime.combine(_day(start), time.min)
    end_at = datetime.combine(_day(end), time.max)
    if start_at > end_at:
        raise ValidationError("Start date cannot be after end date")
    return start_at, end_at


class ReportService:
    """Read-only query surface behind the visit activity report."""

    def __init__(self, visit_store: Optional[VisitRecordStore] = None):
        self.visit_store = visit_store or VisitRecordStore()

    def query_events(
        self,
        conn: Connection,
        start: datetime,
        end: datetime,
        status_filter: ReportStatusFilter = "all",
        search: Optional[str] = None,
    ) -> List[VisitRecord]:
        """Visit records whose visit date or any entry falls in [start, end], narrowed by status and text."""
        status_filter = (status_filter or "all").lower()
        if status_filter not in STATUS_FILTERS:
            raise ValidationError(f"Unknown status filter '{status_filter}'")

        event_of_record = visit_events.c.visit_record_id == visit_records.c.id
        criteria = [
            or_(
                visit_records.c.visit_at.between(start, end),
                exists(select(visit_events.c.id).where(
                    event_of_record, visit_events.c.entry_time.between(start, end)
                )),
            )
        ]

        if status_filter == "completed":
            criteria.append(exists(select(visit_events.c.id).where(
                event_of_record, visit_events.c.exit_time.is_not(None)
            )))
        elif status_filter == "inside":
            criteria.append(exists(select(visit_events.c.id).where(
                event_of_record, visit_events.c.exit_time.is_(None)
            )))
        elif status_filter == "scheduled":
            criteria.append(and_(
                visit_records.c.status == VisitStatus.APPROVED.value,
                not_(exists(select(visit_events.c.id).where(event_of_record))),
            ))

        if search and search.strip():
            criteria.append(VisitRecordStore.text_match(search))

        return self.visit_store.select_records(conn, *criteria)

    @staticmethod
    def build_report_rows(
        records: List[VisitRecord], start: datetime, end: datetime
    ) -> List[ReportRow]:
        """One row per ledger event in range, or one scheduled row for a visit without events."""
        rows: List[ReportRow] = []
        for record in records:
            visit_in_range = start <= record.visit_at <= end
            if record.events:
                for event in record.events:
                    if not (visit_in_range or start <= event.entry_time <= end):
                        continue
                    duration = None
                    if not event.is_open:
                        duration = round((event.exit_time - event.entry_time).total_seconds() / 60)
                    rows.append(ReportRow(
                        name=record.name,
                        email=record.email,
                        mobile_number=record.mobile_number,
                        purpose=record.purpose,
                        visit_at=record.visit_at,
                        entry_time=event.entry_time,
                        exit_time=event.exit_time,
                        status=(ReportRowStatus.COMPLETED if event.exit_time else ReportRowStatus.INSIDE).value,
                        duration_minutes=duration,
                    ))
            elif visit_in_range:
                rows.append(ReportRow(
                    name=record.name,
                    email=record.email,
                    mobile_number=record.mobile_number,
                    purpose=record.purpose,
                    visit_at=record.visit_at,
                    entry_time=None,
                    exit_time=None,
                    status=(
                        ReportRowStatus.SCHEDULED.value
                        if record.status == VisitStatus.APPROVED
                        else record.status.value
                    ),
                ))

        rows.sort(key=lambda r: (r.visit_at, r.entry_time or datetime.min))
        return rows

    @staticmethod
    def summarize(rows: List[ReportRow], start: datetime, end: datetime,
                  status_filter: str, search: Optional[str]) -> ReportSummary:
        return ReportSummary(
            start=start,
            end=end,
            status_filter=(status_filter or "all").lower(),
            search=search.strip() if search and search.strip() else None,
            total=len(rows),
            completed=sum(1 for r in rows if r.status == ReportRowStatus.COMPLETED.value),
            inside=sum(1 for r in rows if r.status == ReportRowStatus.INSIDE.value),
            scheduled=sum(1 for r in rows if r.status == ReportRowStatus.SCHEDULED.value),
        )
