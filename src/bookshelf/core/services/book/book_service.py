"""Book service: dual writes to the primary store and the search index."""

from collections.abc import Callable

from loguru import logger
from sqlmodel import Session

from src.bookshelf.core.errors import EntityNotFoundError, ValidationAlertError
from src.bookshelf.core.storage.search_index import BookSearchIndex
from src.bookshelf.entities.core.paging import Page, PageRequest
from src.bookshelf.entities.service.book import Book, BookRepository

ENTITY_NAME = "book"


class BookService:
    """Keeps the search index in step with the book table.

    Every mutation is committed to the primary store first and only then
    propagated to the index. There is no rollback and no retry: when the index
    write fails after a successful commit the error propagates and the index
    stays stale until the next write for that book or a full reindex.
    Validation always happens before either store is touched.
    """

    def __init__(self, session: Session, search_index: BookSearchIndex) -> None:
        self._session = session
        self._repository = BookRepository(session)
        self._search_index = search_index

    def create(self, book: Book) -> Book:
        """Persist a new book, then index it under its generated id."""
        logger.debug("Request to save Book: {}", book)
        if book.id is not None:
            raise ValidationAlertError("A new book cannot already have an ID", ENTITY_NAME, "idexists")

        result = self._repository.save(book)
        self._session.commit()
        self._propagate(result.id, lambda: self._search_index.index(result))
        return result

    def update(self, book_id: int, book: Book) -> Book:
        """Overwrite every field of an existing book, then re-index it."""
        logger.debug("Request to update Book: {}, {}", book_id, book)
        self._validate_target(book_id, book)

        result = self._repository.save(book)
        self._session.commit()
        self._propagate(result.id, lambda: self._search_index.index(result))
        return result

    def partial_update(self, book_id: int, book: Book) -> Book:
        """Merge the non-null fields of ``book`` into the stored book, then re-index it."""
        logger.debug("Request to partially update Book: {}, {}", book_id, book)
        self._validate_target(book_id, book)

        existing = self._repository.find_by_id(book_id)
        if existing is None:
            raise EntityNotFoundError(ENTITY_NAME, book_id)

        result = self._repository.save(existing.merged_with(book))
        self._session.commit()
        self._propagate(result.id, lambda: self._search_index.index(result))
        return result

    def get(self, book_id: int) -> Book:
        logger.debug("Request to get Book: {}", book_id)
        book = self._repository.find_by_id(book_id)
        if book is None:
            raise EntityNotFoundError(ENTITY_NAME, book_id)
        return book

    def list(self, page_request: PageRequest) -> Page[Book]:
        logger.debug("Request to get a page of Books")
        return self._repository.find_all(page_request)

    def delete(self, book_id: int) -> None:
        """Delete from the primary store, then drop the index document."""
        logger.debug("Request to delete Book: {}", book_id)
        self._repository.delete_by_id(book_id)
        self._session.commit()
        self._propagate(book_id, lambda: self._search_index.delete_by_id(book_id))

    def search(self, query: str, page_request: PageRequest) -> Page[Book]:
        """Free-text search answered by the index alone."""
        logger.debug("Request to search for a page of Books for query {}", query)
        return self._search_index.search(query, page_request)

    def reindex(self, batch_size: int = 500) -> int:
        """Rebuild every index document from the primary store.

        Documents for books that no longer exist in the primary store are
        removed afterwards.

        Returns:
            Number of books written to the index
        """
        total = 0
        live_ids: set[int] = set()
        for batch in self._repository.iter_all(batch_size):
            live_ids.update(book.id for book in batch)
            total += self._search_index.bulk_index(batch)
        removed = self._search_index.delete_stale(live_ids)
        logger.info("Reindexed {} books, removed {} stale documents", total, removed)
        return total

    def _validate_target(self, book_id: int, book: Book) -> None:
        if book.id is None:
            raise ValidationAlertError("Invalid id", ENTITY_NAME, "idnull")
        if book.id != book_id:
            raise ValidationAlertError("Invalid ID", ENTITY_NAME, "idinvalid")
        if not self._repository.exists(book_id):
            raise ValidationAlertError("Entity not found", ENTITY_NAME, "idnotfound")

    def _propagate(self, book_id: int | None, write: Callable[[], None]) -> None:
        try:
            write()
        except Exception:
            logger.bind(book_id=book_id).warning(
                "search.divergence: primary store committed but index write failed"
            )
            raise
