"""
D.N Express - Courier & Logistics Back-Office
FastAPI Application Entry Point
"""
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import logging
import time

import httpx

from dnexpress.core import EntityStore, Settings, build_persistence, get_settings
from dnexpress.core.exceptions import AppError
from dnexpress.core.logging_config import configure_logging
from dnexpress.core.security import hash_password
from dnexpress.api.router import api_router
from dnexpress.integrations import SethwanClient
from dnexpress.models import utcnow
from dnexpress.services import IdentifierGenerator, LogNotifier, ShipmentStatusService

logger = logging.getLogger("dnexpress")


def seed_admin(store: EntityStore, settings: Settings) -> None:
    """Create the configured administrator once"""
    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return
    if store.get_user_by_email(settings.ADMIN_EMAIL):
        return
    admin = store.create_user({
        "company_name": settings.WAREHOUSE_COMPANY,
        "first_name": "System",
        "last_name": "Administrator",
        "email": settings.ADMIN_EMAIL,
        "password": hash_password(settings.ADMIN_PASSWORD, settings.BCRYPT_ROUNDS),
        "role": "admin",
    })
    logger.info(f"Admin account created: {admin.email}")


def _validation_errors(exc: RequestValidationError):
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]


def create_app(
    settings: Optional[Settings] = None,
    sethwan_transport: Optional[httpx.AsyncBaseTransport] = None,
    notifier=None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    # Lifespan for startup/shutdown
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: wire the store and its collaborators
        generator = IdentifierGenerator(
            tracking_prefix=settings.TRACKING_PREFIX,
            customer_prefix=settings.CUSTOMER_PREFIX,
            sku_prefix=settings.SKU_PREFIX,
            manifest_prefix=settings.MANIFEST_PREFIX,
        )
        store = EntityStore(generator, build_persistence(settings.DATABASE_URL), settings)
        store.load()
        seed_admin(store, settings)

        app.state.settings = settings
        app.state.store = store
        app.state.status_service = ShipmentStatusService(
            store, notifier or LogNotifier(), strict=settings.STRICT_STATUS_TRANSITIONS
        )
        app.state.sethwan = SethwanClient(
            base_url=settings.SETHWAN_API_URL,
            api_key=settings.SETHWAN_API_KEY,
            account_id=settings.SETHWAN_ACCOUNT_ID,
            timeout=settings.SETHWAN_TIMEOUT,
            transport=sethwan_transport,
        )
        logger.info(f"{settings.APP_NAME} starting on port {settings.APP_PORT} ({settings.ENVIRONMENT})")

        yield

        # Shutdown
        store.close()
        logger.info(f"{settings.APP_NAME} shutting down")

    # Create FastAPI app
    app = FastAPI(
        title=settings.APP_NAME,
        description="Courier & logistics back-office: customers, shipments, inventory, manifests",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message} {exc.extra}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Invalid request data", "errors": _validation_errors(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            content = {"success": False, "message": "Endpoint not found", "path": request.url.path}
        else:
            content = {"success": False, "message": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        content = {"success": False, "message": "Internal server error"}
        if settings.DEBUG and not settings.is_production:
            content["error"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    # Include routers
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "success": True,
            "service": settings.APP_NAME,
            "status": "running",
            "version": "1.0.0",
            "docs": "/docs",
        }

    # Health check
    @app.get("/health")
    async def health_check():
        return {
            "success": True,
            "status": "healthy",
            "app": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
            "timestamp": utcnow().isoformat(),
        }

    return app


app = create_app()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.DEBUG
    )
