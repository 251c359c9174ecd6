# =======================================================================================
# gatepass/api/routes/reports.py - Visit Report Endpoints
# =======================================================================================
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.engine import Connection

from ...models.enums import ReportStatusFilter
from ...models.schemas import ApiResponse, ReportRowOut, ReportSummaryOut
from ...services.report_service import parse_date_range
from ..dependencies import get_db_connection, get_services, require_admin

router = APIRouter(dependencies=[Depends(require_admin)])


def _build(conn, services, start_date, end_date, status, search):
    start, end = parse_date_range(start_date, end_date)
    records = services.reports.query_events(conn, start, end, status, search)
    rows = services.reports.build_report_rows(records, start, end)
    summary = services.reports.summarize(rows, start, end, status, search)
    return rows, summary


@router.get("/reports/visits", response_model=ApiResponse)
def query_visit_events(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    status: ReportStatusFilter = Query("all", description="all | completed | inside | scheduled"),
    search: Optional[str] = Query(None, description="Matches name, email, purpose or mobile"),
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    rows, summary = _build(conn, services, startDate, endDate, status, search)
    return ApiResponse(
        message="Report generated",
        data={
            "rows": [
                ReportRowOut(
                    name=r.name,
                    email=r.email,
                    mobileNumber=r.mobile_number,
                    purpose=r.purpose,
                    visitDateAndTime=r.visit_at,
                    entryTime=r.entry_time,
                    exitTime=r.exit_time,
                    status=r.status,
                    durationMinutes=r.duration_minutes,
                )
                for r in rows
            ],
            "summary": ReportSummaryOut(
                total=summary.total,
                completed=summary.completed,
                inside=summary.inside,
                scheduled=summary.scheduled,
            ),
        },
    )


@router.get("/reports/visits.pdf")
def download_visit_report(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    status: ReportStatusFilter = Query("all"),
    search: Optional[str] = Query(None),
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    rows, summary = _build(conn, services, startDate, endDate, status, search)
    pdf = services.report_renderer.render(rows, summary)
    filename = f"visitor-report-{summary.start:%Y-%m-%d}-to-{summary.end:%Y-%m-%d}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
