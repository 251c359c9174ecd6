# =======================================================================================
# gatepass/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import config
from .api.routes.auth import router as auth_router
from .api.routes.dashboard import router as dashboard_router
from .api.routes.maintenance import router as maintenance_router
from .api.routes.reports import router as reports_router
from .api.routes.requests import router as requests_router
from .api.routes.scan import router as scan_router
from .api.routes.visitors import router as visitors_router
from .database import DatabaseManager
from .integrations import QRCredentialRenderer, ReportRenderer, SmtpMailer
from .models.schemas import HealthResponse
from .services.container import build_services
from .utils.exceptions import CorruptStateError, GatePassError
from .utils.validators import utcnow

logger = logging.getLogger("gatepass")


def configure_logging() -> None:
    level = logging.DEBUG if config.API_DEBUG else getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _error_body(status_code: int, message: str, errors: Optional[list] = None) -> dict:
    return {"success": False, "statusCode": status_code, "message": message, "errors": errors or []}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatePassError)
    async def gatepass_error(request: Request, exc: GatePassError):
        if isinstance(exc, CorruptStateError):
            logger.critical("Corrupt visit state on %s %s: %s", request.method, request.url.path, exc.message)
            message = exc.public_message
        elif exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
            message = exc.public_message
        else:
            message = exc.message
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.status_code, message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content=_error_body(400, "Invalid request data", errors))

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body(500, "Internal Server Error"))


def create_app(
    db: Optional[DatabaseManager] = None,
    mailer=None,
    credential_renderer=None,
    report_renderer=None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """Build the app; collaborators are constructed once here and shared by reference."""
    app = FastAPI(
        title="GatePass Visitor Management API",
        version="1.0.0",
        description="Visitor registration, approval and gate entry/exit ledger",
        debug=config.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db = db or DatabaseManager()
    app.state.services = build_services(
        app.state.db,
        mailer or SmtpMailer(),
        credential_renderer or QRCredentialRenderer(),
        report_renderer or ReportRenderer(),
        clock=clock,
    )

    register_error_handlers(app)

    # Routers
    app.include_router(visitors_router, prefix="/api", tags=["visitors"])
    app.include_router(requests_router, prefix="/api", tags=["requests"])
    app.include_router(scan_router, prefix="/api", tags=["scan"])
    app.include_router(reports_router, prefix="/api", tags=["reports"])
    app.include_router(dashboard_router, prefix="/api", tags=["dashboard"])
    app.include_router(maintenance_router, prefix="/api", tags=["maintenance"])
    app.include_router(auth_router, prefix="/api", tags=["auth"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            app.state.db.ping()
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except Exception as e:
            logger.warning("Health check failed: %s", e)
            return HealthResponse(status="error", dataAvailable=False, message=str(e))

    @app.on_event("startup")
    async def startup_event():
        if config.DB_AUTO_CREATE:
            app.state.db.create_schema()
        logger.info("GatePass API started")

    @app.on_event("shutdown")
    async def shutdown_event():
        app.state.db.dispose()

    return app


configure_logging()
app = create_app()
