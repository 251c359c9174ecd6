# =======================================================================================
# gatepass/services/maintenance_service.py - Expiry Sweeps
# =======================================================================================
from typing import Dict, Optional

from sqlalchemy.engine import Connection

from .credential_store import CredentialStore
from .otp_store import OneTimeCodeStore


class MaintenanceService:
    """Storage reclamation for expired codes and credentials."""

    def __init__(self, otp_store: Optional[OneTimeCodeStore] = None,
                 credential_store: Optional[CredentialStore] = None):
        self.otp_store = otp_store or OneTimeCodeStore()
        self.credential_store = credential_store or CredentialStore()

    def purge_expired(self, conn: Connection) -> Dict[str, int]:
        """Lookups already ignore expired rows; this only frees the space."""
        return {
            "codes": self.otp_store.purge_expired(conn),
            "credentials": self.credential_store.purge_expired(conn),
        }
