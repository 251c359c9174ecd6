# =======================================================================================
# gatepass/services/credential_store.py - Credential Store
# =======================================================================================
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.engine import Connection

from ..config import config
from ..database import fetch_all, fetch_one
from ..models.records import Credential
from ..models.tables import credentials
from ..utils.exceptions import RecordNotFoundError
from ..utils.validators import utcnow

logger = logging.getLogger(__name__)


class CredentialStore:
    """Issues, resolves and revokes the scannable tokens bound to visit records."""

    def __init__(self, ttl_hours: Optional[int] = None, clock: Callable[[], datetime] = utcnow):
        self.ttl = timedelta(hours=ttl_hours or config.CREDENTIAL_TTL_HOURS)
        self.clock = clock

    @staticmethod
    def generate_token() -> str:
        return secrets.token_urlsafe(32)

    def issue(self, conn: Connection, visit_record_id: int) -> Credential:
        """
        Create a new active credential for the record.

        Any credential still active for the same record is deactivated first,
        so a record has at most one usable badge at a time.
        """
        revoked = conn.execute(
            update(credentials)
            .where(credentials.c.visit_record_id == visit_record_id, credentials.c.is_active.is_(True))
            .values(is_active=False)
        ).rowcount
        if revoked:
            logger.info("Deactivated %d previous credential(s) for visit record %s", revoked, visit_record_id)

        token = self.generate_token()
        issued_at = self.clock()
        result = conn.execute(
            insert(credentials).values(
                token=token, visit_record_id=visit_record_id, issued_at=issued_at, is_active=True
            )
        )
        return Credential(
            id=result.inserted_primary_key[0],
            token=token,
            visit_record_id=visit_record_id,
            issued_at=issued_at,
            is_active=True,
        )

    def resolve_active(self, conn: Connection, token: str) -> Optional[Credential]:
        """Return the credential if it exists, is active and has not expired."""
        row = fetch_one(
            conn,
            select(credentials).where(
                credentials.c.token == token,
                credentials.c.is_active.is_(True),
                credentials.c.issued_at > self.clock() - self.ttl,
            ),
        )
        return Credential.from_row(row) if row else None

    def get(self, conn: Connection, credential_id: int) -> Optional[Credential]:
        row = fetch_one(conn, select(credentials).where(credentials.c.id == credential_id))
        return Credential.from_row(row) if row else None

    def for_record(self, conn: Connection, visit_record_id: int) -> List[Credential]:
        rows = fetch_all(
            conn,
            select(credentials)
            .where(credentials.c.visit_record_id == visit_record_id)
            .order_by(credentials.c.id),
        )
        return [Credential.from_row(row) for row in rows]

    def deactivate(self, conn: Connection, credential_id: int) -> Credential:
        """Administrative revocation (lost badge). The scan engine never calls this."""
        credential = self.get(conn, credential_id)
        if credential is None:
            raise RecordNotFoundError("Credential not found")
        conn.execute(update(credentials).where(credentials.c.id == credential_id).values(is_active=False))
        credential.is_active = False
        logger.info("Credential %s for visit record %s deactivated", credential_id, credential.visit_record_id)
        return credential

    def purge_expired(self, conn: Connection) -> int:
        """Reclaim storage held by expired or revoked credentials."""
        result = conn.execute(
            delete(credentials).where(
                or_(credentials.c.issued_at <= self.clock() - self.ttl, credentials.c.is_active.is_(False))
            )
        )
        if result.rowcount:
            logger.info("Purged %d expired credentials", result.rowcount)
        return result.rowcount
