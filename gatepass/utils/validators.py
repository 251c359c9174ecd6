# =======================================================================================
# gatepass/utils/validators.py - Validation Helpers
# =======================================================================================
import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

from .exceptions import ValidationError

MOBILE_PATTERN = re.compile(r"^[0-9]{10}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
OTP_PATTERN = re.compile(r"^[0-9]+$")

# column widths of visit_records
MAX_LENGTHS = {"email": 255, "name": 255, "mobileNumber": 20, "purpose": 500}


class VisitorValidator:
    """Validates visitor-supplied registration data."""

    @staticmethod
    def require_fields(**fields: Optional[str]) -> None:
        """All registration fields are mandatory."""
        missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
        if missing:
            raise ValidationError(f"All fields are required (missing: {', '.join(missing)})")

    @staticmethod
    def check_lengths(**fields: str) -> None:
        for name, value in fields.items():
            limit = MAX_LENGTHS.get(name)
            if limit is not None and len(value) > limit:
                raise ValidationError(f"{name} must be at most {limit} characters")

    @staticmethod
    def normalize_email(email: str) -> str:
        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email address")
        return email

    @staticmethod
    def validate_mobile(mobile: str) -> str:
        mobile = mobile.strip()
        if not MOBILE_PATTERN.match(mobile):
            raise ValidationError("Mobile number must be 10 digits")
        return mobile

    @staticmethod
    def parse_visit_datetime(value) -> datetime:
        """
        Parse the requested visit date/time.

        Aware values are converted to UTC; the result is always naive UTC,
        which is how timestamps are stored.
        """
        if isinstance(value, datetime):
            parsed = value
        else:
            try:
                parsed = date_parser.parse(str(value).strip())
            except (ValueError, OverflowError):
                raise ValidationError("Invalid visit date and time")
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    @staticmethod
    def validate_code_shape(code: str, length: int) -> str:
        code = code.strip()
        if len(code) != length or not OTP_PATTERN.match(code):
            raise ValidationError(f"Please enter a valid {length}-digit OTP")
        return code


def utcnow() -> datetime:
    """Naive UTC now; every stored timestamp uses this clock."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
