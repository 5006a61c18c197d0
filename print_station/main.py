"""Printer Station API - FastAPI application."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from print_station.config import get_settings
from print_station.database import init_db
from print_station.errors import AppError
from print_station.routers import auth, clients, dashboard, otp, print_jobs, users
from print_station.services.maintenance import start_scheduler
from print_station.utils import utcnow

log = logging.getLogger("uvicorn.error")


def _error(status_code: int, message: str, errors=None, **extra) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


def _field_name(loc) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI puts first
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form", "header")]
    return ".".join(parts) or "request"


def register_exception_handlers(app: FastAPI) -> None:
    settings = get_settings()

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _error(exc.status_code, exc.message, exc.errors, **exc.extra)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [{"field": _field_name(e.get("loc", ())), "message": e.get("msg", "Invalid value")} for e in exc.errors()]
        return _error(400, "Validation failed", errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(404, "Route not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, str(exc) if settings.debug else "Internal server error")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(clients.router)
    app.include_router(print_jobs.router)
    app.include_router(otp.router)
    app.include_router(dashboard.router)

    @app.on_event("startup")
    def startup():
        if not settings.email_configured:
            log.warning("[Email] Not configured - OTP and welcome emails will fail; set BREVO_API_KEY or RESEND_API_KEY")
        if not settings.storage_configured:
            log.warning("[Storage] S3_BUCKET_NAME not set - uploaded files stay in %s", settings.upload_dir)
        try:
            init_db()
        except Exception as e:
            log.warning("Database startup failed (tables not created). Check DATABASE_URL. Error: %s", e)
        app.state.scheduler = start_scheduler(settings)

    @app.on_event("shutdown")
    def shutdown():
        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.shutdown(wait=False)

    @app.get("/")
    def root():
        return {
            "success": True,
            "message": f"{settings.app_name} is running",
            "version": settings.app_version,
            "environment": settings.app_env,
        }

    @app.get("/health")
    def health():
        return {
            "success": True,
            "message": "Server is healthy",
            "timestamp": utcnow().isoformat(),
            "version": settings.app_version,
        }

    return app


app = create_app()
