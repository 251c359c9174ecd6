# =======================================================================================
# gatepass/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
ScanEvent = Literal["entry", "exit"]
ReportStatusFilter = Literal["all", "completed", "inside", "scheduled"]

class VisitStatus(str, Enum):
    """Approval status of a visit record."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Presence(str, Enum):
    """Where the visitor currently is relative to the gate."""
    OUTSIDE = "OUTSIDE"
    INSIDE = "INSIDE"

class ReportRowStatus(str, Enum):
    """Per-row status shown in visit reports."""
    COMPLETED = "Completed"
    INSIDE = "Inside"
    SCHEDULED = "Scheduled"
