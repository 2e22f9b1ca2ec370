"""Entities module with an entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model shared by the store, the index and the API
- table.py: Database persistence model
- repository.py: Data access layer

Paging primitives and the base classes live under ``entities.core``.
"""

from .core.paging import Page, PageRequest, SortOrder
from .service.book import Book, BookRepository, BookTable

__all__ = [
    "Book",
    "BookTable",
    "BookRepository",
    "Page",
    "PageRequest",
    "SortOrder",
]
