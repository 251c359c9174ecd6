# =======================================================================================
# gatepass/api/routes/maintenance.py - Maintenance Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.engine import Connection
from ...models.schemas import ApiResponse
from ..dependencies import get_db_connection, get_services, require_admin

router = APIRouter(dependencies=[Depends(require_admin)])

@router.post("/maintenance/purge-expired", response_model=ApiResponse)
def purge_expired(conn: Connection = Depends(get_db_connection), services=Depends(get_services)):
    """Delete expired one-time codes and credentials."""
    return ApiResponse(message="Expired records purged", data=services.maintenance.purge_expired(conn))
