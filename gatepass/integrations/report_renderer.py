# =======================================================================================
# gatepass/integrations/report_renderer.py - PDF Visit Reports
# =======================================================================================
import io
from xml.sax.saxutils import escape
from datetime import datetime
from typing import Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models.enums import ReportRowStatus
from ..models.records import ReportRow, ReportSummary
from ..utils.validators import utcnow

PRIMARY = colors.HexColor("#2c3e50")
SECONDARY = colors.HexColor("#3498db")
BORDER = colors.HexColor("#bdc3c7")
STATUS_COLORS = {
    ReportRowStatus.COMPLETED.value: colors.HexColor("#27ae60"),
    ReportRowStatus.INSIDE.value: colors.HexColor("#f39c12"),
    ReportRowStatus.SCHEDULED.value: SECONDARY,
}
HEADERS = ["Name", "Email", "Mobile", "Purpose", "Visit Date", "Entry Time", "Exit Time", "Status"]
COL_WIDTHS = [28 * mm, 38 * mm, 22 * mm, 26 * mm, 18 * mm, 18 * mm, 18 * mm, 20 * mm]


def _fmt(value: Optional[datetime], pattern: str) -> str:
    return value.strftime(pattern) if value else "-"


class ReportRenderer:
    """Lays out report rows as a paginated A4 PDF."""

    title = "GatePass System"

    def render(self, rows: Sequence[ReportRow], summary: ReportSummary) -> bytes:
        buf = io.BytesIO()
        period = f"{summary.start:%b %d, %Y} to {summary.end:%b %d, %Y}"
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=12 * mm,
            rightMargin=12 * mm,
            topMargin=15 * mm,
            bottomMargin=18 * mm,
            title=f"Visitor Report - {period}",
            author=self.title,
        )
        styles = getSampleStyleSheet()
        cell = styles["BodyText"].clone("cell", fontSize=7, leading=9)

        story = [
            Paragraph(self.title, styles["Title"]),
            Paragraph(f"Visitor Report - {period}", styles["Heading3"]),
            Spacer(1, 4 * mm),
            self._summary_table(summary, styles),
            Spacer(1, 6 * mm),
        ]

        if rows:
            data = [HEADERS]
            for row in rows:
                data.append([
                    Paragraph(escape(row.name or ""), cell),
                    Paragraph(escape(row.email or ""), cell),
                    row.mobile_number or "",
                    Paragraph(escape(row.purpose or ""), cell),
                    _fmt(row.visit_at, "%b %d"),
                    _fmt(row.entry_time, "%I:%M %p"),
                    _fmt(row.exit_time, "%I:%M %p"),
                    row.status or "Unknown",
                ])
            table = Table(data, colWidths=COL_WIDTHS, repeatRows=1)
            style = [
                ("BACKGROUND", (0, 0), (-1, 0), SECONDARY),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 7),
                ("ALIGN", (4, 0), (-1, -1), "CENTER"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("GRID", (0, 0), (-1, -1), 0.5, BORDER),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.HexColor("#f9f9f9"), colors.white]),
            ]
            for index, row in enumerate(rows, start=1):
                color = STATUS_COLORS.get(row.status)
                if color is not None:
                    style.append(("TEXTCOLOR", (7, index), (7, index), color))
            table.setStyle(TableStyle(style))
            story.append(table)
        else:
            story.append(Paragraph("No records found matching the selected criteria.", styles["Italic"]))

        generated = utcnow()

        def footer(canvas, document):
            canvas.saveState()
            canvas.setFont("Helvetica", 8)
            canvas.setFillColor(colors.HexColor("#666666"))
            canvas.drawString(12 * mm, 10 * mm, f"Generated on {generated:%b %d, %Y at %I:%M %p} UTC")
            canvas.drawRightString(A4[0] - 12 * mm, 10 * mm, f"Page {document.page}")
            canvas.restoreState()

        doc.build(story, onFirstPage=footer, onLaterPages=footer)
        return buf.getvalue()

    @staticmethod
    def _summary_table(summary: ReportSummary, styles) -> Table:
        filter_label = "All Status" if summary.status_filter == "all" else summary.status_filter.capitalize()
        data = [
            [f"Total Records: {summary.total}", f"Completed Visits: {summary.completed}"],
            [f"Filter Applied: {filter_label}", f"Currently Inside: {summary.inside}"],
            [f'Search Term: "{summary.search}"' if summary.search else "", f"Scheduled Only: {summary.scheduled}"],
        ]
        table = Table(data, colWidths=[90 * mm, 90 * mm])
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#f2f9ff")),
            ("BOX", (0, 0), (-1, -1), 0.5, BORDER),
            ("TEXTCOLOR", (0, 0), (-1, -1), PRIMARY),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
        ]))
        return table
