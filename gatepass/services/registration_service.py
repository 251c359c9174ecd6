# =======================================================================================
# gatepass/services/registration_service.py - Registration & Verification Flow
# =======================================================================================
import html
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.engine import Connection

from ..models.records import VisitRecord
from ..utils.validators import VisitorValidator
from .otp_store import OneTimeCodeStore
from .visit_store import VisitRecordStore

logger = logging.getLogger(__name__)


class RegistrationService:
    """Visitor self-registration: email code delivery, then code-verified upsert."""

    def __init__(
        self,
        mailer,
        otp_store: Optional[OneTimeCodeStore] = None,
        visit_store: Optional[VisitRecordStore] = None,
    ):
        self.mailer = mailer
        self.otp_store = otp_store or OneTimeCodeStore()
        self.visit_store = visit_store or VisitRecordStore()

    @staticmethod
    def _clean(
        email: Optional[str],
        name: Optional[str],
        mobile_number: Optional[str],
        purpose: Optional[str],
        visit_at: Any,
    ) -> Tuple[str, str, str, str, datetime]:
        VisitorValidator.require_fields(
            email=email, name=name, mobileNumber=mobile_number, purpose=purpose, visitDateAndTime=visit_at
        )
        email, name, purpose = email.strip(), name.strip(), purpose.strip()
        VisitorValidator.check_lengths(email=email, name=name, purpose=purpose)
        return (
            VisitorValidator.normalize_email(email),
            name,
            VisitorValidator.validate_mobile(mobile_number),
            purpose,
            VisitorValidator.parse_visit_datetime(visit_at),
        )

    def send_code(
        self,
        conn: Connection,
        email: Optional[str],
        name: Optional[str],
        mobile_number: Optional[str],
        purpose: Optional[str],
        visit_at: Any,
    ) -> Dict[str, Any]:
        """
        Validate the visit request and email a one-time code to the visitor.

        The code is persisted in the caller's transaction, so a failed delivery
        rolls it back along with the request.
        """
        email, name, mobile_number, purpose, visit_at = self._clean(email, name, mobile_number, purpose, visit_at)

        code = self.otp_store.issue(conn, email)
        minutes = int(self.otp_store.ttl.total_seconds() // 60)
        self.mailer.send(
            email,
            "Your One-Time Password (OTP)",
            f"Hello {name},\n\nYour OTP is: {code}. It is valid for {minutes} minutes.\n\nRegards,\nGatePass System",
            f"<p>Hello {html.escape(name)},</p><p>Your OTP is: <b>{code}</b>. It is valid for {minutes} minutes.</p>"
            f"<p>Regards,<br>GatePass System</p>",
        )
        logger.info("Verification code sent to %s", email)
        return {"email": email, "expiresInMinutes": minutes}

    def verify_and_register(
        self,
        conn: Connection,
        email: Optional[str],
        code: Optional[str],
        name: Optional[str],
        mobile_number: Optional[str],
        purpose: Optional[str],
        visit_at: Any,
    ) -> VisitRecord:
        VisitorValidator.require_fields(otp=code)
        email, name, mobile_number, purpose, visit_at = self._clean(email, name, mobile_number, purpose, visit_at)
        code = VisitorValidator.validate_code_shape(code, self.otp_store.length)

        self.otp_store.consume(conn, email, code)
        record = self.visit_store.upsert_registration(conn, email, name, mobile_number, purpose, visit_at)
        logger.info("Visitor %s registered (record %s), awaiting approval", email, record.id)
        return record
