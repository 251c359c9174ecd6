# =======================================================================================
# gatepass/integrations/mailer.py - Outgoing Email
# =======================================================================================
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import List, Optional, Sequence

from ..config import config
from ..utils.exceptions import DeliveryError

logger = logging.getLogger(__name__)


@dataclass
class Attachment:
    filename: str
    content: bytes
    mimetype: str = "application/octet-stream"
    # when set, the part is embedded in the HTML body as cid:<content_id>
    content_id: Optional[str] = None


class SmtpMailer:
    """
    Thin SMTP client. Built once at startup and handed to the flows that send mail.

    ``send`` either delivers or raises DeliveryError; it never retries.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        timeout: Optional[int] = None,
        from_name: Optional[str] = None,
        from_address: Optional[str] = None,
    ):
        self.host = host or config.SMTP_HOST
        self.port = port or config.SMTP_PORT
        self.username = username if username is not None else config.SMTP_USER
        self.password = password if password is not None else config.SMTP_PASSWORD
        self.use_tls = config.SMTP_USE_TLS if use_tls is None else use_tls
        self.timeout = timeout or config.SMTP_TIMEOUT
        self.from_name = from_name or config.MAIL_FROM_NAME
        self.from_address = from_address or config.MAIL_FROM_ADDRESS or self.username

    def build_message(
        self,
        to_address: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
        attachments: Optional[Sequence[Attachment]] = None,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((self.from_name, self.from_address or ""))
        msg["To"] = to_address
        msg["Subject"] = subject
        msg.set_content(body_text)

        inline: List[Attachment] = [a for a in attachments or [] if a.content_id]
        regular: List[Attachment] = [a for a in attachments or [] if not a.content_id]

        if body_html:
            msg.add_alternative(body_html, subtype="html")
            html_part = msg.get_payload()[-1]
            for item in inline:
                maintype, subtype = item.mimetype.split("/", 1)
                html_part.add_related(
                    item.content,
                    maintype=maintype,
                    subtype=subtype,
                    cid=f"<{item.content_id}>",
                    filename=item.filename,
                )
        else:
            regular.extend(inline)

        for item in regular:
            maintype, subtype = item.mimetype.split("/", 1)
            msg.add_attachment(item.content, maintype=maintype, subtype=subtype, filename=item.filename)
        return msg

    def send(
        self,
        to_address: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
        attachments: Optional[Sequence[Attachment]] = None,
    ) -> None:
        if not self.username or not self.password:
            raise DeliveryError("Email credentials are missing (SMTP_USER / SMTP_PASSWORD)")

        msg = self.build_message(to_address, subject, body_text, body_html, attachments)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.ehlo()
                if self.use_tls:
                    smtp.starttls()
                    smtp.ehlo()
                smtp.login(self.username, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send '%s' to %s: %s", subject, to_address, e)
            raise DeliveryError(f"Failed to send email: {e}") from e

        logger.info("Email '%s' sent to %s", subject, to_address)
