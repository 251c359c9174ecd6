# =======================================================================================
# gatepass/services/__init__.py - Services Package
# =======================================================================================
from .otp_store import OneTimeCodeStore
from .visit_store import VisitRecordStore, check_ledger_invariant
from .credential_store import CredentialStore
from .registration_service import RegistrationService
from .approval_service import ApprovalService
from .gate_scan import GateScanService
from .report_service import ReportService, parse_date_range
from .auth_service import AuthService
from .dashboard_service import DashboardService
from .maintenance_service import MaintenanceService

__all__ = [
    "OneTimeCodeStore", "VisitRecordStore", "check_ledger_invariant", "CredentialStore",
    "RegistrationService", "ApprovalService", "GateScanService", "ReportService",
    "parse_date_range", "AuthService", "DashboardService", "MaintenanceService",
]
