# =======================================================================================
# gatepass/services/dashboard_service.py
# =======================================================================================

from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Connection

from ..models.records import VisitRecord
from .visit_store import VisitRecordStore


class DashboardService:
    """Aggregated counts and visitor lookups for the admin dashboard."""

    def __init__(self, visit_store: Optional[VisitRecordStore] = None):
        self.visit_store = visit_store or VisitRecordStore()

    # ---------- helper mapping ----------

    @staticmethod
    def serialize_visit(record: VisitRecord) -> Dict[str, Any]:
        """Record -> camelCase dict the frontend expects."""
        return {
            "id": record.id,
            "name": record.name,
            "email": record.email,
            "mobileNumber": record.mobile_number,
            "purpose": record.purpose,
            "visitDateAndTime": record.visit_at,
            "isVerified": record.is_verified,
            "status": record.status.value,
            "isVisited": record.is_visited,
            "entries": [
                {"entryTime": e.entry_time, "exitTime": e.exit_time} for e in record.events
            ],
        }

    # ---------- summary ----------

    def get_summary(self, conn: Connection) -> Dict[str, int]:
        return self.visit_store.summary(conn)

    # ---------- lookups ----------

    def lookup(self, conn: Connection, email: str) -> Optional[Dict[str, Any]]:
        record = self.visit_store.get_by_email(conn, email.strip().lower())
        return self.serialize_visit(record) if record else None

    def search(self, conn: Connection, query: str) -> List[Dict[str, Any]]:
        if not query or not query.strip():
            return []
        return [self.serialize_visit(r) for r in self.visit_store.search(conn, query)]
