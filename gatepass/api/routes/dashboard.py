# =======================================================================================
# gatepass/api/routes/dashboard.py
# =======================================================================================

from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Connection

from ...models.schemas import ApiResponse, Summary, VisitOut
from ...utils.exceptions import RecordNotFoundError
from ..dependencies import get_db_connection, get_services, require_admin

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/analytics", response_model=ApiResponse)
def get_analytics(conn: Connection = Depends(get_db_connection), services=Depends(get_services)):
    summary = services.dashboard.get_summary(conn)
    return ApiResponse(message="Summary fetched", data={"summary": Summary(**summary)})


@router.get("/visits/lookup", response_model=ApiResponse)
def lookup_visit(
    email: str = Query(..., description="Visitor email"),
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    visit = services.dashboard.lookup(conn, email)
    if visit is None:
        raise RecordNotFoundError("No visit record for this email")
    return ApiResponse(message="Visit found", data=VisitOut(**visit))


@router.get("/visits/search", response_model=ApiResponse)
def search_visits(
    query: str = Query(..., description="Name, email, purpose or mobile"),
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    visits = services.dashboard.search(conn, query)
    return ApiResponse(message="Search complete", data=[VisitOut(**v) for v in visits])
