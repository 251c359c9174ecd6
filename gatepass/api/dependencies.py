# =======================================================================================
# gatepass/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from typing import Any, Dict, Iterator, Optional

from fastapi import Header, Request
from sqlalchemy.engine import Connection

from ..utils.exceptions import AuthenticationError


def get_db_connection(request: Request) -> Iterator[Connection]:
    """Dependency to get a database connection; one transaction per request."""
    with request.app.state.db.get_connection() as conn:
        yield conn


def get_services(request: Request):
    """Collaborators and services built once in create_app()."""
    return request.app.state.services


def require_admin(request: Request, authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    """Bearer-token guard for admin endpoints."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationError("Unauthorized request: No token provided")
    token = authorization.split(" ", 1)[1].strip()
    return request.app.state.services.auth.decode_access_token(token)
