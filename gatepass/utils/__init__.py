# =======================================================================================
# gatepass/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "GatePassError", "ValidationError", "InvalidCodeError", "InvalidCredentialError",
    "InvalidStateError", "AlreadyExitedError", "ScanConflictError", "CorruptStateError",
    "DeliveryError", "RecordNotFoundError", "AuthenticationError",
    "VisitorValidator", "utcnow",
]
