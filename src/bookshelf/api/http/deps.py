"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Query, Request
from sqlmodel import Session

from src.bookshelf.api.http.app_data import ApplicationDependencies
from src.bookshelf.core.services import BookService
from src.bookshelf.core.storage import BookSearchIndex
from src.bookshelf.entities.core.paging import PageRequest, SortOrder
from src.bookshelf.entities.service.book.repository import SORTABLE_FIELDS
from src.bookshelf.runtime.context import get_config


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session that is closed once the response is sent."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_search_index(request: Request) -> BookSearchIndex:
    """Get the book search index instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.search_index


def get_book_service(
    db: Session = Depends(get_db_session),
    search_index: BookSearchIndex = Depends(get_search_index),
) -> BookService:
    """Get a BookService bound to the request's database session."""
    return BookService(db, search_index)


def get_page_request(
    page: int = Query(default=0, ge=0, description="Zero-based page number"),
    size: int | None = Query(default=None, ge=1, description="Page size"),
    sort: list[str] | None = Query(default=None, description="Sort as field,asc|desc"),
) -> PageRequest:
    """Build a PageRequest from ``page``, ``size`` and repeated ``sort`` parameters."""
    pagination = get_config().app.pagination
    if size is None:
        size = pagination.default_size
    if size > pagination.max_size:
        raise HTTPException(
            status_code=400, detail=f"Page size must not exceed {pagination.max_size}"
        )

    try:
        orders = [SortOrder.parse(raw) for raw in sort or [] if raw]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    unknown = [order.field for order in orders if order.field not in SORTABLE_FIELDS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Cannot sort books by {unknown}")

    return PageRequest(page=page, size=size, sort=orders)
