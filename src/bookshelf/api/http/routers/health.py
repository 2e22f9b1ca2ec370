"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.bookshelf.api.http.app_data import ApplicationDependencies
from src.bookshelf.core.storage import InMemoryBookIndex
from src.bookshelf.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 as long as the process is running."""
    return {"status": "healthy", "service": "bookshelf"}


@router.get("/ready", response_model=None)
def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness check across the primary store and the search index.

    Returns 503 when the database is unavailable. The search index is a
    best-effort replica, so an unreachable index only reports ``degraded``.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    config = get_config()

    checks: dict[str, dict[str, Any]] = {}
    all_healthy = True

    db_healthy = app_deps.database_service.health_check()
    checks["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "type": "postgresql" if "postgresql" in config.database.url else "sqlite",
    }
    if not db_healthy:
        all_healthy = False

    search_index = app_deps.search_index
    index_type = "in-memory" if isinstance(search_index, InMemoryBookIndex) else "elasticsearch"
    checks["search"] = {
        "status": "healthy" if search_index.health_check() else "degraded",
        "type": index_type,
    }

    body = {"status": "ready" if all_healthy else "not_ready", "checks": checks}
    if not all_healthy:
        return JSONResponse(status_code=503, content=body)
    return body
