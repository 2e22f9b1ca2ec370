"""Book repository: primary-store access over SQLModel."""

from collections.abc import Iterator

from sqlalchemy import func
from sqlmodel import Session, select

from src.bookshelf.entities.core.paging import Page, PageRequest
from src.bookshelf.entities.service.book.entity import MUTABLE_FIELDS, Book
from src.bookshelf.entities.service.book.table import BookTable

SORTABLE_FIELDS = ("id", *MUTABLE_FIELDS)


class BookRepository:
    """Data-access layer for books.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def save(self, book: Book) -> Book:
        """Insert a new book or overwrite every column of an existing one."""
        if book.id is None:
            row = BookTable(**book.model_dump(exclude={"id"}))
            self._session.add(row)
        else:
            row = self._session.get(BookTable, book.id)
            if row is None:
                row = BookTable(id=book.id)
                self._session.add(row)
            for name in MUTABLE_FIELDS:
                setattr(row, name, getattr(book, name))

        self._session.flush()
        self._session.refresh(row)
        return Book.model_validate(row, from_attributes=True)

    def exists(self, book_id: int) -> bool:
        statement = select(BookTable.id).where(BookTable.id == book_id)
        return self._session.exec(statement).first() is not None

    def find_by_id(self, book_id: int) -> Book | None:
        row = self._session.get(BookTable, book_id)
        if row is None:
            return None
        return Book.model_validate(row, from_attributes=True)

    def find_all(self, page_request: PageRequest) -> Page[Book]:
        """Return one page of books ordered by the requested sort (id by default)."""
        total = self._session.exec(select(func.count()).select_from(BookTable)).one()

        statement = select(BookTable)
        for order in page_request.sort:
            if order.field not in SORTABLE_FIELDS:
                raise ValueError(f"Cannot sort books by '{order.field}'")
            column = getattr(BookTable, order.field)
            statement = statement.order_by(column.desc() if order.direction == "desc" else column.asc())
        statement = statement.order_by(BookTable.id).offset(page_request.offset).limit(page_request.size)

        rows = self._session.exec(statement).all()
        return Page[Book](
            content=[Book.model_validate(row, from_attributes=True) for row in rows],
            total=total,
            page=page_request.page,
            size=page_request.size,
        )

    def delete_by_id(self, book_id: int) -> None:
        """Delete a book; deleting a missing id is a no-op."""
        row = self._session.get(BookTable, book_id)
        if row is not None:
            self._session.delete(row)
            self._session.flush()

    def iter_all(self, batch_size: int = 500) -> Iterator[list[Book]]:
        """Yield every stored book in id order, ``batch_size`` at a time."""
        last_id = 0
        while True:
            statement = (
                select(BookTable)
                .where(BookTable.id > last_id)
                .order_by(BookTable.id)
                .limit(batch_size)
            )
            rows = self._session.exec(statement).all()
            if not rows:
                return
            yield [Book.model_validate(row, from_attributes=True) for row in rows]
            last_id = rows[-1].id
