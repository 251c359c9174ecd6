# =======================================================================================
# gatepass/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *
from .records import *

__all__ = [
    "ApiResponse", "SendCodeRequest", "VerifyCodeRequest", "VisitOut", "EntryExitOut",
    "ScanRequest", "ScanOut", "ScanVisitor", "AdminAuthRequest", "AdminAuthOut", "AdminInfo",
    "ReportRowOut", "ReportSummaryOut", "HealthResponse", "Summary",
    "VisitStatus", "Presence", "ReportRowStatus", "ScanEvent", "ReportStatusFilter",
    "VisitRecord", "EntryExitEvent", "Credential", "ScanResult", "ReportRow", "ReportSummary",
]
