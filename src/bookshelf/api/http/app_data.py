from dataclasses import dataclass

from src.bookshelf.core.services import DbSessionService
from src.bookshelf.core.storage import BookSearchIndex


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    search_index: BookSearchIndex
