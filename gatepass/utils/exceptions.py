# =======================================================================================
# gatepass/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class GatePassError(Exception):
    """Base exception for the visitor gate pass system."""
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

class ValidationError(GatePassError):
    """Raised when request input is missing or malformed."""
    status_code = 400
    public_message = "Invalid request data"

class InvalidCodeError(GatePassError):
    """Raised when a one-time code is absent, wrong, expired or already used."""
    status_code = 400
    public_message = "Invalid or expired OTP"

class InvalidCredentialError(GatePassError):
    """Raised when a scanned token does not grant passage."""
    status_code = 403
    public_message = "Invalid or expired QR code"

class InvalidStateError(GatePassError):
    """Raised when a workflow action targets a record in the wrong status."""
    status_code = 409
    public_message = "Request is not pending"

class AlreadyExitedError(GatePassError):
    """Raised when an exit is scanned for a visit whose exit is already logged."""
    status_code = 409
    public_message = "Exit already logged for this visit"

class ScanConflictError(AlreadyExitedError):
    """Raised when another scan of the same visitor committed first."""
    public_message = "Scan already processed for this visitor, please rescan"

class CorruptStateError(GatePassError):
    """Raised when a visitor is marked inside but the ledger has no open entry."""
    status_code = 500
    public_message = "Internal server error"

class DeliveryError(GatePassError):
    """Raised when the mail or credential rendering collaborator fails."""
    status_code = 502
    public_message = "Failed to deliver message"

class RecordNotFoundError(GatePassError):
    """Raised when a visit record or credential is not found."""
    status_code = 404
    public_message = "Record not found"

class AuthenticationError(GatePassError):
    """Raised when admin authentication fails."""
    status_code = 401
    public_message = "Unauthorized request"
