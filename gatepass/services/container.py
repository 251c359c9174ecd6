# =======================================================================================
# gatepass/services/container.py - Service Wiring
# =======================================================================================
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from ..database import DatabaseManager
from ..utils.validators import utcnow
from .approval_service import ApprovalService
from .auth_service import AuthService
from .credential_store import CredentialStore
from .dashboard_service import DashboardService
from .gate_scan import GateScanService
from .maintenance_service import MaintenanceService
from .otp_store import OneTimeCodeStore
from .registration_service import RegistrationService
from .report_service import ReportService
from .visit_store import VisitRecordStore


@dataclass
class ServiceContainer:
    registration: RegistrationService
    approval: ApprovalService
    gate_scan: GateScanService
    reports: ReportService
    dashboard: DashboardService
    maintenance: MaintenanceService
    auth: AuthService
    credentials: CredentialStore
    report_renderer: object


def build_services(
    db: DatabaseManager,
    mailer,
    credential_renderer,
    report_renderer,
    clock: Callable[[], datetime] = utcnow,
) -> ServiceContainer:
    """Wire every service around one shared set of stores and collaborators."""
    otp_store = OneTimeCodeStore(clock=clock)
    visit_store = VisitRecordStore(clock=clock)
    credential_store = CredentialStore(clock=clock)

    return ServiceContainer(
        registration=RegistrationService(mailer, otp_store, visit_store),
        approval=ApprovalService(db, mailer, credential_renderer, visit_store, credential_store),
        gate_scan=GateScanService(credential_store, visit_store, clock),
        reports=ReportService(visit_store),
        dashboard=DashboardService(visit_store),
        maintenance=MaintenanceService(otp_store, credential_store),
        auth=AuthService(),
        credentials=credential_store,
        report_renderer=report_renderer,
    )
