"""Search index interface and implementations.

Provides a unified interface over the full-text replica of the book table
with an Elasticsearch-first approach and an in-memory fallback.
"""

from __future__ import annotations

import fnmatch
import re
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from elasticsearch import Elasticsearch, helpers
from elasticsearch.exceptions import NotFoundError
from loguru import logger

from src.bookshelf.entities.core.paging import Page, PageRequest
from src.bookshelf.entities.service.book.entity import Book
from src.bookshelf.runtime.config.config_data import SearchConfig

_BOOK_MAPPINGS: dict[str, Any] = {
    "properties": {
        "id": {"type": "long"},
        "title": {"type": "text", "fields": {"keyword": {"type": "keyword", "ignore_above": 256}}},
        "description": {"type": "text", "fields": {"keyword": {"type": "keyword", "ignore_above": 256}}},
        "publicationDate": {"type": "date"},
        "price": {"type": "scaled_float", "scaling_factor": 100},
    }
}

# Text fields sort on their keyword sub-field.
_SORT_FIELDS = {
    "id": "id",
    "title": "title.keyword",
    "description": "description.keyword",
    "publication_date": "publicationDate",
    "price": "price",
}


class SearchIndexError(RuntimeError):
    """Raised when the search backend cannot be reached or configured."""


class BookSearchIndex(ABC):
    """Abstract interface for the book search index."""

    @abstractmethod
    def index(self, book: Book) -> None:
        """Store the full book document under the book's id.

        Args:
            book: Persisted book; its ``id`` must be set.
        """

    @abstractmethod
    def delete_by_id(self, book_id: int) -> None:
        """Remove the document for ``book_id``; a missing document is not an error."""

    @abstractmethod
    def search(self, query: str, page_request: PageRequest) -> Page[Book]:
        """Run a free-text query and return one page of matching books.

        Args:
            query: Query text, Lucene ``query_string`` syntax for Elasticsearch
            page_request: Page number, size and sort orders

        Returns:
            Matching books plus the total hit count
        """

    @abstractmethod
    def bulk_index(self, books: Iterable[Book]) -> int:
        """Index many books at once.

        Returns:
            Number of documents written
        """

    @abstractmethod
    def delete_stale(self, live_ids: set[int]) -> int:
        """Remove every document whose id is not in ``live_ids``.

        Returns:
            Number of documents removed
        """

    @abstractmethod
    def ensure_index(self, recreate: bool = False) -> None:
        """Create the index if it does not exist yet."""

    @abstractmethod
    def health_check(self) -> bool:
        """Return True when the backend is reachable."""


class InMemoryBookIndex(BookSearchIndex):
    """Dictionary-backed index matching query terms against title and description.

    Every whitespace-separated term must match at least one word of the book;
    terms may use ``*`` and ``?`` wildcards and ``*`` alone matches everything.
    Sync endpoints call it from worker threads, so access goes through a lock.
    """

    _WORD = re.compile(r"\w+")

    def __init__(self):
        self._documents: dict[int, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def index(self, book: Book) -> None:
        if book.id is None:
            raise ValueError("Cannot index a book without an id")
        document = book.to_document()
        with self._lock:
            self._documents[book.id] = document

    def delete_by_id(self, book_id: int) -> None:
        with self._lock:
            self._documents.pop(book_id, None)

    def _matches(self, terms: list[str], document: dict[str, Any]) -> bool:
        text = " ".join(document.get(field) or "" for field in ("title", "description"))
        words = [word.lower() for word in self._WORD.findall(text)]
        return all(fnmatch.filter(words, term) for term in terms)

    def search(self, query: str, page_request: PageRequest) -> Page[Book]:
        terms = [term.lower() for term in query.split() if term != "*"]
        with self._lock:
            documents = list(self._documents.values())
        hits = [
            Book.model_validate(document)
            for document in documents
            if self._matches(terms, document)
        ]

        hits.sort(key=lambda book: book.id)
        # Stable sorts applied last-key-first; books missing the field stay at the end
        for order in reversed(page_request.sort):
            if order.field not in _SORT_FIELDS:
                raise ValueError(f"Cannot sort books by '{order.field}'")
            present = [book for book in hits if getattr(book, order.field) is not None]
            missing = [book for book in hits if getattr(book, order.field) is None]
            present.sort(
                key=lambda book, name=order.field: getattr(book, name),
                reverse=order.direction == "desc",
            )
            hits = present + missing

        start = page_request.offset
        return Page[Book](
            content=hits[start : start + page_request.size],
            total=len(hits),
            page=page_request.page,
            size=page_request.size,
        )

    def bulk_index(self, books: Iterable[Book]) -> int:
        count = 0
        for book in books:
            self.index(book)
            count += 1
        return count

    def delete_stale(self, live_ids: set[int]) -> int:
        with self._lock:
            stale = [book_id for book_id in self._documents if book_id not in live_ids]
            for book_id in stale:
                del self._documents[book_id]
        return len(stale)

    def ensure_index(self, recreate: bool = False) -> None:
        if recreate:
            with self._lock:
                self._documents.clear()

    def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, book_id: object) -> bool:
        with self._lock:
            return book_id in self._documents


class ElasticsearchBookIndex(BookSearchIndex):
    """Book index stored in Elasticsearch, keyed by the primary-store id."""

    def __init__(self, client: Elasticsearch, index_name: str = "book", refresh: str = "wait_for"):
        self._client = client
        self._index_name = index_name
        self._refresh = refresh

    @classmethod
    def from_config(cls, config: SearchConfig) -> ElasticsearchBookIndex:
        """Build the index wrapper and its client from configuration."""
        basic_auth = (config.username, config.password) if config.username else None
        client = Elasticsearch(
            config.hosts,
            request_timeout=config.request_timeout,
            basic_auth=basic_auth,
        )
        return cls(client, index_name=config.index_name, refresh=config.refresh)

    @property
    def index_name(self) -> str:
        return self._index_name

    def index(self, book: Book) -> None:
        if book.id is None:
            raise ValueError("Cannot index a book without an id")
        self._client.index(
            index=self._index_name,
            id=str(book.id),
            document=book.to_document(),
            refresh=self._refresh,
        )
        logger.debug("Indexed book {} into '{}'", book.id, self._index_name)

    def delete_by_id(self, book_id: int) -> None:
        try:
            self._client.delete(index=self._index_name, id=str(book_id), refresh=self._refresh)
        except NotFoundError:
            logger.debug("Book {} was not in index '{}'", book_id, self._index_name)

    def _sort_clause(self, page_request: PageRequest) -> list[dict[str, Any]]:
        clause = []
        for order in page_request.sort:
            if order.field not in _SORT_FIELDS:
                raise ValueError(f"Cannot sort books by '{order.field}'")
            clause.append({_SORT_FIELDS[order.field]: {"order": order.direction}})
        clause.append({"_score": {"order": "desc"}})
        clause.append({"id": {"order": "asc"}})
        return clause

    def search(self, query: str, page_request: PageRequest) -> Page[Book]:
        response = self._client.search(
            index=self._index_name,
            query={"query_string": {"query": query}},
            from_=page_request.offset,
            size=page_request.size,
            sort=self._sort_clause(page_request),
            track_total_hits=True,
        )
        hits = response["hits"]
        return Page[Book](
            content=[Book.model_validate(hit["_source"]) for hit in hits["hits"]],
            total=hits["total"]["value"],
            page=page_request.page,
            size=page_request.size,
        )

    def bulk_index(self, books: Iterable[Book]) -> int:
        actions = (
            {
                "_op_type": "index",
                "_index": self._index_name,
                "_id": str(book.id),
                "_source": book.to_document(),
            }
            for book in books
        )
        success, _ = helpers.bulk(self._client, actions, refresh=self._refresh)
        logger.info("Indexed {} books into '{}'", success, self._index_name)
        return success

    def delete_stale(self, live_ids: set[int]) -> int:
        hits = helpers.scan(
            self._client,
            index=self._index_name,
            query={"query": {"match_all": {}}, "_source": False},
        )
        actions = [
            {"_op_type": "delete", "_index": self._index_name, "_id": hit["_id"]}
            for hit in hits
            if int(hit["_id"]) not in live_ids
        ]
        if not actions:
            return 0
        success, _ = helpers.bulk(
            self._client, actions, refresh=self._refresh, ignore_status=(404,)
        )
        logger.info("Removed {} stale books from '{}'", success, self._index_name)
        return success

    def ensure_index(self, recreate: bool = False) -> None:
        if recreate:
            try:
                self._client.indices.delete(index=self._index_name)
                logger.info("Deleted existing index '{}'", self._index_name)
            except NotFoundError:
                pass

        if self._client.indices.exists(index=self._index_name):
            logger.info("Index '{}' already exists; skipping creation", self._index_name)
            return

        self._client.indices.create(index=self._index_name, mappings=_BOOK_MAPPINGS)
        logger.info("Created index '{}'", self._index_name)

    def health_check(self) -> bool:
        try:
            return bool(self._client.ping())
        except Exception as e:
            logger.error(
                "Search index health check failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False

    def close(self) -> None:
        self._client.close()


def get_search_index(config: SearchConfig, environment: str = "development") -> BookSearchIndex:
    """Build the configured search index.

    Elasticsearch is used when enabled. Outside production an unreachable
    cluster falls back to the in-memory index; in production it is fatal.
    """
    if not config.enabled:
        logger.info("Search index disabled; using in-memory book index")
        return InMemoryBookIndex()

    search_index = ElasticsearchBookIndex.from_config(config)
    if search_index.health_check():
        search_index.ensure_index()
        logger.info("Connected to Elasticsearch at {}", config.hosts)
        return search_index

    if environment == "production":
        raise SearchIndexError(f"Unable to connect to Elasticsearch at {config.hosts}")

    logger.warning("Elasticsearch unavailable at {}; using in-memory book index", config.hosts)
    search_index.close()
    return InMemoryBookIndex()
