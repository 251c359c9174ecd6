# =======================================================================================
# gatepass/api/routes/scan.py - Scan Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.engine import Connection
from ...models.schemas import ApiResponse, ScanOut, ScanRequest, ScanVisitor
from ..dependencies import get_db_connection, get_services, require_admin

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/scan", response_model=ApiResponse)
def scan_credential(
    request: ScanRequest,
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    """Process a QR scan at the gate: entry if the visitor is outside, exit if inside."""
    result = services.gate_scan.scan(conn, request.qrString)
    return ApiResponse(
        message="Entry logged successfully" if result.event == "entry" else "Exit logged successfully",
        data=ScanOut(
            event=result.event,
            time=result.time,
            user=ScanVisitor(name=result.name, email=result.email),
        ),
    )


@router.post("/credentials/{credential_id}/deactivate", response_model=ApiResponse)
def deactivate_credential(
    credential_id: int,
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    """Revoke a credential, e.g. a reported lost badge."""
    credential = services.credentials.deactivate(conn, credential_id)
    return ApiResponse(
        message="Credential deactivated",
        data={"id": credential.id, "visitRecordId": credential.visit_record_id, "isActive": False},
    )
