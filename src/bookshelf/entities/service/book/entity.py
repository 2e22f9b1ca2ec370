"""Entity: Book."""

from datetime import date
from decimal import Decimal
from typing import Annotated, Any

from pydantic import Field, PlainSerializer

from src.bookshelf.entities.core._base import Entity

# Prices stay exact in Python and go out as JSON numbers.
Price = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(value), return_type=float, when_used="json"),
]

MUTABLE_FIELDS = ("title", "description", "publication_date", "price")


class Book(Entity):
    """Book entity representing a book in the catalogue.

    This is the domain model shared by the primary store, the search index and
    the HTTP layer. Every attribute apart from the identifier is optional.
    """

    title: str | None = Field(default=None, description="Title")
    description: str | None = Field(default=None, description="Description")
    publication_date: date | None = Field(
        default=None, alias="publicationDate", description="Publication date"
    )
    price: Price | None = Field(default=None, description="Price")

    def merged_with(self, patch: "Book") -> "Book":
        """Return a copy of this book with every non-null field of ``patch`` applied.

        Fields that are absent or null on the patch keep their current value.
        The identifier is never taken from the patch.
        """
        changes = {
            name: getattr(patch, name)
            for name in MUTABLE_FIELDS
            if getattr(patch, name) is not None
        }
        return self.model_copy(update=changes)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document stored in the search index."""
        return self.model_dump(mode="json", by_alias=True)

    def __eq__(self, other: Any) -> bool:
        """Compare books by business attributes."""
        if not isinstance(other, Book):
            return False

        return (
            self.id == other.id
            and self.title == other.title
            and self.description == other.description
            and self.publication_date == other.publication_date
            and self.price == other.price
        )

    def __hash__(self) -> int:
        """Hash based on business attributes."""
        return hash((
            self.id,
            self.title,
            self.description,
            self.publication_date,
            self.price,
        ))
