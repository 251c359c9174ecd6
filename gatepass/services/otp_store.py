# =======================================================================================
# gatepass/services/otp_store.py - One-Time-Code Store
# =======================================================================================
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Connection

from ..config import config
from ..database import fetch_one
from ..models.tables import one_time_codes
from ..utils.exceptions import InvalidCodeError
from ..utils.validators import utcnow

logger = logging.getLogger(__name__)


class OneTimeCodeStore:
    """
    Issues and consumes short-lived numeric verification codes.

    Expiry is checked at lookup time, so an expired code that the sweep has
    not reclaimed yet is treated exactly like a missing one. ``purge_expired``
    only frees storage.
    """

    def __init__(
        self,
        ttl_minutes: Optional[int] = None,
        length: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ttl = timedelta(minutes=ttl_minutes or config.OTP_TTL_MINUTES)
        self.length = length or config.OTP_LENGTH
        self.clock = clock

    def generate_code(self) -> str:
        return "".join(secrets.choice("0123456789") for _ in range(self.length))

    def issue(self, conn: Connection, email: str) -> str:
        """Persist a fresh code for ``email``; earlier unconsumed codes stay valid."""
        code = self.generate_code()
        conn.execute(
            insert(one_time_codes).values(email=email, code=code, issued_at=self.clock())
        )
        logger.debug("Issued one-time code for %s", email)
        return code

    def consume(self, conn: Connection, email: str, code: str) -> bool:
        """Delete the exact (email, code) pair; raises InvalidCodeError when absent or expired."""
        cutoff = self.clock() - self.ttl
        row = fetch_one(
            conn,
            select(one_time_codes.c.id)
            .where(
                one_time_codes.c.email == email,
                one_time_codes.c.code == code,
                one_time_codes.c.issued_at >= cutoff,
            )
            .order_by(one_time_codes.c.issued_at.desc())
            .limit(1),
        )
        if not row:
            raise InvalidCodeError("Invalid or expired OTP")

        # the delete is the single-use guard: a concurrent consume removes 0 rows
        result = conn.execute(delete(one_time_codes).where(one_time_codes.c.id == row["id"]))
        if result.rowcount != 1:
            raise InvalidCodeError("Invalid or expired OTP")
        return True

    def purge_expired(self, conn: Connection) -> int:
        cutoff = self.clock() - self.ttl
        result = conn.execute(delete(one_time_codes).where(one_time_codes.c.issued_at < cutoff))
        if result.rowcount:
            logger.info("Purged %d expired one-time codes", result.rowcount)
        return result.rowcount
