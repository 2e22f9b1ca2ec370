"""Book API router with CRUD and search operations."""

from fastapi import APIRouter, Depends, Query, Request, Response, status

from src.bookshelf.api.http.deps import get_book_service, get_page_request
from src.bookshelf.api.http.headers import (
    entity_creation_alert,
    entity_deletion_alert,
    entity_update_alert,
    pagination_headers,
)
from src.bookshelf.core.services import BookService
from src.bookshelf.core.services.book.book_service import ENTITY_NAME
from src.bookshelf.entities.core.paging import PageRequest
from src.bookshelf.entities.service.book import Book
from src.bookshelf.runtime.context import get_config

router = APIRouter(tags=["books"])


def _app_name() -> str:
    return get_config().app.name


@router.post("/books", response_model=Book, status_code=status.HTTP_201_CREATED)
def create_book(
    book: Book,
    response: Response,
    service: BookService = Depends(get_book_service),
) -> Book:
    """Create a new book. The body must not carry an id."""
    result = service.create(book)
    response.headers["Location"] = f"/api/books/{result.id}"
    response.headers.update(entity_creation_alert(_app_name(), ENTITY_NAME, str(result.id)))
    return result


@router.put("/books/{book_id}", response_model=Book)
def update_book(
    book_id: int,
    book: Book,
    response: Response,
    service: BookService = Depends(get_book_service),
) -> Book:
    """Replace an existing book. The body id must match the path id."""
    result = service.update(book_id, book)
    response.headers.update(entity_update_alert(_app_name(), ENTITY_NAME, str(book.id)))
    return result


@router.patch("/books/{book_id}", response_model=Book)
def partial_update_book(
    book_id: int,
    book: Book,
    response: Response,
    service: BookService = Depends(get_book_service),
) -> Book:
    """Update the given fields of an existing book; null or absent fields are left alone.

    Accepts ``application/json`` and ``application/merge-patch+json`` bodies.
    """
    result = service.partial_update(book_id, book)
    response.headers.update(entity_update_alert(_app_name(), ENTITY_NAME, str(book.id)))
    return result


@router.get("/books", response_model=list[Book])
def list_books(
    request: Request,
    response: Response,
    page_request: PageRequest = Depends(get_page_request),
    service: BookService = Depends(get_book_service),
) -> list[Book]:
    """Get a page of books from the primary store."""
    page = service.list(page_request)
    response.headers.update(pagination_headers(request.url, page))
    return page.content


@router.get("/books/{book_id}", response_model=Book)
def get_book(
    book_id: int,
    service: BookService = Depends(get_book_service),
) -> Book:
    """Get a book by id."""
    return service.get(book_id)


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    book_id: int,
    service: BookService = Depends(get_book_service),
) -> Response:
    """Delete a book from the primary store and the search index."""
    service.delete(book_id)
    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers=entity_deletion_alert(_app_name(), ENTITY_NAME, str(book_id)),
    )


@router.get("/_search/books", response_model=list[Book])
def search_books(
    request: Request,
    response: Response,
    query: str = Query(..., description="Free-text query"),
    page_request: PageRequest = Depends(get_page_request),
    service: BookService = Depends(get_book_service),
) -> list[Book]:
    """Search the book index. Results reflect only what has been indexed."""
    page = service.search(query, page_request)
    response.headers.update(pagination_headers(request.url, page))
    return page.content
