# =======================================================================================
# gatepass/services/gate_scan.py - Gate Scan Engine
# =======================================================================================
import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy.engine import Connection

from ..models.enums import Presence, ScanEvent, VisitStatus
from ..models.records import ScanResult
from ..utils.exceptions import AlreadyExitedError, CorruptStateError, InvalidCredentialError
from ..utils.validators import utcnow
from .credential_store import CredentialStore
from .visit_store import VisitRecordStore

logger = logging.getLogger(__name__)


class GateScanService:
    """Resolves a scanned credential into exactly one entry or exit ledger event."""

    def __init__(
        self,
        credential_store: Optional[CredentialStore] = None,
        visit_store: Optional[VisitRecordStore] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.credential_store = credential_store or CredentialStore(clock=clock)
        self.visit_store = visit_store or VisitRecordStore(clock=clock)
        self.clock = clock

    @staticmethod
    def determine_event(presence: Presence) -> Tuple[ScanEvent, Presence]:
        """
        Two-state machine per visitor:
        - OUTSIDE -> entry -> INSIDE
        - INSIDE  -> exit  -> OUTSIDE
        """
        if presence == Presence.OUTSIDE:
            return "entry", Presence.INSIDE
        return "exit", Presence.OUTSIDE

    def scan(self, conn: Connection, token: Optional[str]) -> ScanResult:
        token = (token or "").strip()
        if not token:
            raise InvalidCredentialError("QR string is required")

        # 1) Resolve credential
        credential = self.credential_store.resolve_active(conn, token)
        if credential is None:
            logger.warning("Scan rejected: unknown, inactive or expired credential")
            raise InvalidCredentialError("Invalid or expired QR code")

        # 2) Only approved records may pass
        record = self.visit_store.get_by_id(conn, credential.visit_record_id)
        if record is None or record.status != VisitStatus.APPROVED:
            logger.warning("Scan rejected: credential %s bound to a non-approved visit", credential.id)
            raise InvalidCredentialError("User not approved or not found")

        # 3) Branch on presence
        now = self.clock()
        event, _ = self.determine_event(record.presence)

        if event == "entry":
            ledger_event = self.visit_store.record_entry(conn, record, now)
            logger.info("Entry logged for %s (record %s)", record.email, record.id)
            return ScanResult("entry", ledger_event.entry_time, record.id, record.name, record.email)

        last = record.last_event
        if last is None:
            logger.critical(
                "Visit record %s is INSIDE with an empty ledger; refusing to repair", record.id
            )
            raise CorruptStateError(f"No entry found for exit on visit record {record.id}")
        if not last.is_open:
            raise AlreadyExitedError("Exit already logged for this visit")

        ledger_event = self.visit_store.record_exit(conn, record, now)
        logger.info("Exit logged for %s (record %s)", record.email, record.id)
        return ScanResult("exit", ledger_event.exit_time, record.id, record.name, record.email)
