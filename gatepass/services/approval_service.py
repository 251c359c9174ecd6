# =======================================================================================
# gatepass/services/approval_service.py - Approval Workflow
# =======================================================================================
import html
import logging
from typing import List, Optional

from sqlalchemy.engine import Connection

from ..database import DatabaseManager
from ..integrations.mailer import Attachment
from ..models.enums import VisitStatus
from ..models.records import Credential, VisitRecord
from ..utils.exceptions import DeliveryError, InvalidStateError
from .credential_store import CredentialStore
from .visit_store import VisitRecordStore

logger = logging.getLogger(__name__)


class ApprovalService:
    """
    Admin decisions on pending visit requests.

    Each step commits on its own: an approval or rejection is durable before
    any mail goes out, so a delivery failure never undoes it.
    """

    def __init__(
        self,
        db: DatabaseManager,
        mailer,
        renderer,
        visit_store: Optional[VisitRecordStore] = None,
        credential_store: Optional[CredentialStore] = None,
    ):
        self.db = db
        self.mailer = mailer
        self.renderer = renderer
        self.visit_store = visit_store or VisitRecordStore()
        self.credential_store = credential_store or CredentialStore()

    def list_pending(self, conn: Connection) -> List[VisitRecord]:
        return self.visit_store.list_by_status(conn, VisitStatus.PENDING)

    # ----------------------------------------------------------------------
    # Approve
    # ----------------------------------------------------------------------
    def approve(self, record_id: int) -> VisitRecord:
        with self.db.get_connection() as conn:
            record = self.visit_store.require(conn, record_id)
            record = self.visit_store.transition_status(
                conn, record, VisitStatus.PENDING, VisitStatus.APPROVED
            )
        logger.info("Visit request %s (%s) approved", record.id, record.email)

        self._issue_and_send(record)
        return record

    def resend_credential(self, record_id: int) -> VisitRecord:
        """Retry credential delivery for an approved record; replaces its active credential."""
        with self.db.get_connection() as conn:
            record = self.visit_store.require(conn, record_id)
        if record.status != VisitStatus.APPROVED:
            raise InvalidStateError("Request is not approved")
        self._issue_and_send(record)
        return record

    def _issue_and_send(self, record: VisitRecord) -> Credential:
        try:
            with self.db.get_connection() as conn:
                credential = self.credential_store.issue(conn, record.id)
        except Exception as e:
            logger.exception("Credential issuance failed for approved record %s", record.id)
            raise DeliveryError(f"Request approved but the QR code could not be issued: {e}") from e

        image = self.renderer.render(credential.token)
        self.mailer.send(
            record.email,
            "Your GatePass QR Code",
            (
                f"Hello {record.name},\n\n"
                "Your visitor request has been approved! Please use the attached QR code for entry.\n\n"
                f"Visit Date & Time: {record.visit_at:%Y-%m-%d %H:%M} UTC\n"
                f"Purpose: {record.purpose}\n\nRegards,\nGatePass System"
            ),
            (
                f"<p>Hello {html.escape(record.name)},</p>"
                "<p>Your visitor request has been approved! Please use the QR code below for entry:</p>"
                '<img src="cid:qrcode" alt="QR Code" />'
                f"<p><strong>Visit Date &amp; Time:</strong> {record.visit_at:%Y-%m-%d %H:%M} UTC</p>"
                f"<p><strong>Purpose:</strong> {html.escape(record.purpose)}</p>"
                "<p>Regards,<br>GatePass System</p>"
            ),
            [Attachment(filename="qrcode.png", content=image, mimetype="image/png", content_id="qrcode")],
        )
        logger.info("QR code email sent to %s (credential %s)", record.email, credential.id)
        return credential

    # ----------------------------------------------------------------------
    # Reject
    # ----------------------------------------------------------------------
    def reject(self, record_id: int) -> VisitRecord:
        with self.db.get_connection() as conn:
            record = self.visit_store.require(conn, record_id)
            record = self.visit_store.transition_status(
                conn, record, VisitStatus.PENDING, VisitStatus.REJECTED
            )
        logger.info("Visit request %s (%s) rejected", record.id, record.email)

        try:
            self.mailer.send(
                record.email,
                "GatePass Request Status",
                f"Hello {record.name},\n\nYour visitor request has been rejected.\n\nRegards,\nGatePass System",
                f"<p>Hello {html.escape(record.name)},</p><p>Your visitor request has been rejected.</p>"
                "<p>Regards,<br>GatePass System</p>",
            )
        except DeliveryError as e:
            # rejected records are not retained, notice or not
            logger.warning("Rejection notice to %s not delivered: %s", record.email, e)

        with self.db.get_connection() as conn:
            deleted = self.visit_store.delete(conn, record.id, only_status=VisitStatus.REJECTED)
        if deleted:
            logger.info("Rejected visit record %s deleted", record.id)
        else:
            logger.warning("Rejected visit record %s changed before deletion; kept", record.id)
        return record
