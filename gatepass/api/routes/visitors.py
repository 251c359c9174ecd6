# =======================================================================================
# gatepass/api/routes/visitors.py - Visitor Self-Registration Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.engine import Connection
from ...models.schemas import ApiResponse, SendCodeRequest, VerifyCodeRequest, VisitOut
from ...services.dashboard_service import DashboardService
from ..dependencies import get_db_connection, get_services

router = APIRouter()


@router.post("/visitors/send-code", response_model=ApiResponse)
def send_verification_code(
    request: SendCodeRequest,
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    """Validate the visit request and email a one-time code."""
    data = services.registration.send_code(
        conn, request.email, request.name, request.mobileNumber, request.purpose, request.visitDateAndTime
    )
    return ApiResponse(message="OTP sent successfully", data=data)


@router.post("/visitors/verify", response_model=ApiResponse, status_code=201)
def verify_and_register(
    request: VerifyCodeRequest,
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    """Consume the code and submit the visit request for approval."""
    record = services.registration.verify_and_register(
        conn,
        request.email,
        request.otp,
        request.name,
        request.mobileNumber,
        request.purpose,
        request.visitDateAndTime,
    )
    return ApiResponse(
        statusCode=201,
        message="Visitor request submitted",
        data=VisitOut(**DashboardService.serialize_visit(record)),
    )
