"""Core services exports."""

# Book Services
from .book.book_service import BookService

# Database Services
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

__all__ = [
    # Book Services
    "BookService",
    # Database Services
    "DbManageService",
    "DbSessionService",
]
