"""Book database table model."""

from datetime import date
from decimal import Decimal

from sqlmodel import Field

from src.bookshelf.entities.core._base import EntityTable


class BookTable(EntityTable, table=True):
    """Database persistence model for books.

    This represents how the Book entity is stored in the database.
    It's separate from the domain entity so the HTTP and search layers
    never see ORM state.
    """

    __tablename__ = "book"

    title: str | None = None
    description: str | None = None
    publication_date: date | None = None
    price: Decimal | None = Field(default=None, max_digits=21, decimal_places=2)
