"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.bookshelf.api.http.app_data import ApplicationDependencies
from src.bookshelf.api.http.headers import failure_alert_headers
from src.bookshelf.api.http.routers import health
from src.bookshelf.api.http.routers.service import book
from src.bookshelf.api.utils.app_startup import configure_logging
from src.bookshelf.core.errors import EntityNotFoundError, ValidationAlertError
from src.bookshelf.core.services import DbManageService, DbSessionService
from src.bookshelf.core.storage import get_search_index
from src.bookshelf.runtime.context import get_config

configure_logging()


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


# --- Request logging middleware ---
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except Exception as exc:
            # Store failures are not translated; they end up here as a 500
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


# --- Domain error handlers ---
async def handle_validation_alert(request: Request, exc: ValidationAlertError) -> JSONResponse:
    logger.bind(error_key=exc.error_key, entity_name=exc.entity_name).warning(
        "request.rejected: {}", exc.message
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "title": exc.message,
            "status": exc.status_code,
            "entityName": exc.entity_name,
            "errorKey": exc.error_key,
            "message": f"error.{exc.error_key}",
            "params": exc.entity_name,
        },
        headers=failure_alert_headers(get_config().app.name, exc.entity_name, exc.error_key),
    )


async def handle_not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def build_dependencies() -> ApplicationDependencies:
    """Create the application-wide services from configuration."""
    config = get_config()
    database_service = DbSessionService()
    DbManageService(database_service.engine).create_all()
    search_index = get_search_index(config.search, config.app.environment)
    return ApplicationDependencies(
        database_service=database_service,
        search_index=search_index,
    )


def create_app(dependencies: ApplicationDependencies | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        dependencies: Pre-built services, mainly for tests; built from config on startup when omitted.
    """
    config = get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up application in {} environment", config.app.environment)
        app.state.app_dependencies = dependencies or build_dependencies()
        try:
            yield
        finally:
            logger.info("Shutting down application")
            if dependencies is None:
                app.state.app_dependencies.database_service.dispose()

    app = FastAPI(
        title="Bookshelf",
        lifespan=lifespan,
        docs_url=None if config.app.environment == "production" else "/docs",
        redoc_url=None if config.app.environment == "production" else "/redoc",
    )

    app.add_middleware(SecurityHeadersMiddleware)

    if config.app.environment == "production" and "*" in config.app.cors.origins:
        raise RuntimeError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
        expose_headers=config.app.cors.expose_headers,
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(ValidationAlertError, handle_validation_alert)
    app.add_exception_handler(EntityNotFoundError, handle_not_found)

    app.include_router(health.router)
    app.include_router(book.router, prefix="/api")

    return app


app = create_app()

__all__ = ["app", "create_app", "build_dependencies"]


if __name__ == "__main__":
    import uvicorn

    main_config = get_config()
    uvicorn.run(
        app,
        host=main_config.app.host,
        port=main_config.app.port,
        access_log=False,  # We handle access logging in middleware
    )
