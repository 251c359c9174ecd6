# =======================================================================================
# gatepass/api/routes/auth.py - Admin Authentication Endpoints
# =======================================================================================


from fastapi import APIRouter, Depends
from sqlalchemy.engine import Connection
from ...config import config
from ...models.schemas import AdminAuthOut, AdminAuthRequest, AdminInfo, ApiResponse
from ...utils.exceptions import AuthenticationError, ValidationError
from ..dependencies import get_db_connection, get_services

router = APIRouter()


@router.post("/auth/register", response_model=ApiResponse, status_code=201)
def register_admin(
    request: AdminAuthRequest,
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    if not config.ADMIN_REGISTRATION_OPEN:
        raise AuthenticationError("Admin registration is closed")

    admin_id = services.auth.create_admin(conn, request.name, request.password)
    return ApiResponse(
        statusCode=201,
        message="Admin registered successfully",
        data=AdminAuthOut(admin=AdminInfo(id=admin_id, name=request.name.strip())),
    )


@router.post("/auth/login", response_model=ApiResponse)
def login_admin(
    request: AdminAuthRequest,
    conn: Connection = Depends(get_db_connection),
    services=Depends(get_services),
):
    if not request.name or not request.password:
        raise ValidationError("Name and password are required")

    admin = services.auth.authenticate_admin(conn, request.name, request.password)
    if not admin:
        raise AuthenticationError("Invalid credentials")

    token = services.auth.create_access_token(admin["id"], admin["username"])
    return ApiResponse(
        message="Admin logged in successfully",
        data=AdminAuthOut(admin=AdminInfo(id=admin["id"], name=admin["username"]), accessToken=token),
    )
