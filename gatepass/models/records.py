# =======================================================================================
# gatepass/models/records.py - Persisted Record Types
# =======================================================================================
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from .enums import Presence, VisitStatus


@dataclass
class EntryExitEvent:
    id: int
    entry_time: datetime
    exit_time: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EntryExitEvent":
        return cls(id=row["id"], entry_time=row["entry_time"], exit_time=row["exit_time"])


@dataclass
class VisitRecord:
    """The authoritative per-visitor record, keyed by email."""

    id: int
    email: str
    name: str
    mobile_number: str
    purpose: str
    visit_at: datetime
    is_verified: bool
    status: VisitStatus
    presence: Presence
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    events: List[EntryExitEvent] = field(default_factory=list)

    @property
    def is_visited(self) -> bool:
        return self.presence == Presence.INSIDE

    @property
    def last_event(self) -> Optional[EntryExitEvent]:
        return self.events[-1] if self.events else None

    @classmethod
    def from_row(cls, row: Mapping[str, Any], events: Optional[List[EntryExitEvent]] = None) -> "VisitRecord":
        return cls(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            mobile_number=row["mobile_number"],
            purpose=row["purpose"],
            visit_at=row["visit_at"],
            is_verified=bool(row["is_verified"]),
            status=VisitStatus(row["status"]),
            presence=Presence(row["presence"]),
            version=row["version"],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            events=events or [],
        )


@dataclass
class Credential:
    id: int
    token: str
    visit_record_id: int
    issued_at: datetime
    is_active: bool

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Credential":
        return cls(
            id=row["id"],
            token=row["token"],
            visit_record_id=row["visit_record_id"],
            issued_at=row["issued_at"],
            is_active=bool(row["is_active"]),
        )


@dataclass
class ScanResult:
    """Outcome of a successful gate scan."""

    event: str
    time: datetime
    visit_record_id: int
    name: str
    email: str


@dataclass
class ReportRow:
    """One line of the visit activity report."""

    name: str
    email: str
    mobile_number: str
    purpose: str
    visit_at: datetime
    entry_time: Optional[datetime]
    exit_time: Optional[datetime]
    status: str
    duration_minutes: Optional[int] = None


@dataclass
class ReportSummary:
    start: datetime
    end: datetime
    status_filter: str
    search: Optional[str]
    total: int = 0
    completed: int = 0
    inside: int = 0
    scheduled: int = 0
