# =======================================================================================
# gatepass/integrations/__init__.py - External Collaborators
# =======================================================================================
from .mailer import Attachment, SmtpMailer
from .credential_renderer import QRCredentialRenderer
from .report_renderer import ReportRenderer

__all__ = ["Attachment", "SmtpMailer", "QRCredentialRenderer", "ReportRenderer"]
