"""Paging primitives shared by the primary store and the search index."""

from math import ceil
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class SortOrder(BaseModel):
    """A single ``field,direction`` sort instruction."""

    field: str
    direction: Literal["asc", "desc"] = "asc"

    @classmethod
    def parse(cls, raw: str) -> "SortOrder":
        """Parse ``"title,desc"`` style query values; direction defaults to asc."""
        name, _, direction = raw.partition(",")
        direction = direction.strip().lower() or "asc"
        if direction not in ("asc", "desc"):
            raise ValueError(f"Invalid sort direction '{direction}'")
        return cls(field=name.strip(), direction=direction)


class PageRequest(BaseModel):
    """Zero-based page number, page size and sort orders."""

    page: int = Field(default=0, ge=0)
    size: int = Field(default=20, ge=1)
    sort: list[SortOrder] = Field(default_factory=list)

    @property
    def offset(self) -> int:
        return self.page * self.size


class Page(BaseModel, Generic[T]):
    """One page of results plus the total number of matches."""

    content: list[T]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 0
