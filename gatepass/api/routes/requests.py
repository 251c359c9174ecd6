# =======================================================================================
# gatepass/api/routes/requests.py - Approval Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.engine import Connection
from ...models.schemas import ApiResponse, VisitOut
from ...services.dashboard_service import DashboardService
from ..dependencies import get_db_connection, get_services, require_admin

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/requests", response_model=ApiResponse)
def list_pending_visits(conn: Connection = Depends(get_db_connection), services=Depends(get_services)):
    records = services.approval.list_pending(conn)
    return ApiResponse(
        message="Requests fetched successfully",
        data={"requests": [VisitOut(**DashboardService.serialize_visit(r)) for r in records]},
    )


@router.post("/requests/{record_id}/approve", response_model=ApiResponse)
def approve_visit(record_id: int, services=Depends(get_services)):
    """Approve, then issue and email the QR credential. Delivery errors leave the approval in place."""
    services.approval.approve(record_id)
    return ApiResponse(message="Request approved and QR code sent")


@router.post("/requests/{record_id}/resend-credential", response_model=ApiResponse)
def resend_credential(record_id: int, services=Depends(get_services)):
    services.approval.resend_credential(record_id)
    return ApiResponse(message="QR code re-issued and sent")


@router.post("/requests/{record_id}/reject", response_model=ApiResponse)
def reject_visit(record_id: int, services=Depends(get_services)):
    services.approval.reject(record_id)
    return ApiResponse(message="Request rejected")
