"""Search index abstractions for the book replica."""

from .search_index import (
    BookSearchIndex,
    ElasticsearchBookIndex,
    InMemoryBookIndex,
    SearchIndexError,
    get_search_index,
)

__all__ = [
    "BookSearchIndex",
    "ElasticsearchBookIndex",
    "InMemoryBookIndex",
    "SearchIndexError",
    "get_search_index",
]
