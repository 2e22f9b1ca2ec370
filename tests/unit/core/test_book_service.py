"""Unit tests for the dual-write BookService."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlmodel import Session

from src.bookshelf.core.errors import EntityNotFoundError, ValidationAlertError
from src.bookshelf.core.services import BookService
from src.bookshelf.core.storage import BookSearchIndex, InMemoryBookIndex
from src.bookshelf.entities.core.paging import PageRequest
from src.bookshelf.entities.service.book import Book, BookRepository


class TestCreate:
    def test_create_assigns_id_and_indexes(
        self, book_service: BookService, search_index: InMemoryBookIndex, dune: Book
    ):
        created = book_service.create(dune)

        assert created.id is not None
        assert created.id in search_index
        assert book_service.search("Dune", PageRequest()).content == [created]

    def test_create_commits_before_indexing(self, session: Session, dune: Book):
        """The index is only written once the primary record is committed."""
        observed = {}

        index = MagicMock(spec=BookSearchIndex)

        def check_committed(book: Book) -> None:
            observed["in_transaction"] = session.in_transaction()
            observed["id"] = book.id

        index.index.side_effect = check_committed

        created = BookService(session, index).create(dune)

        assert observed == {"in_transaction": False, "id": created.id}

    def test_create_with_id_is_rejected_without_writes(self, session: Session, dune: Book):
        index = MagicMock(spec=BookSearchIndex)
        dune.id = 42

        with pytest.raises(ValidationAlertError) as exc_info:
            BookService(session, index).create(dune)

        assert exc_info.value.error_key == "idexists"
        assert exc_info.value.status_code == 400
        assert BookRepository(session).find_all(PageRequest()).total == 0
        index.index.assert_not_called()

    def test_index_failure_leaves_primary_record(self, session: Session, dune: Book):
        """No rollback: the committed record survives a failed index write."""
        index = MagicMock(spec=BookSearchIndex)
        index.index.side_effect = ConnectionError("index unavailable")

        with pytest.raises(ConnectionError):
            BookService(session, index).create(dune)

        page = BookRepository(session).find_all(PageRequest())
        assert page.total == 1
        assert page.content[0].title == "Dune"

    def test_primary_failure_skips_index(self, dune: Book):
        session = MagicMock(spec=Session)
        session.flush.side_effect = RuntimeError("database down")
        index = MagicMock(spec=BookSearchIndex)

        with pytest.raises(RuntimeError, match="database down"):
            BookService(session, index).create(dune)

        index.index.assert_not_called()


class TestUpdate:
    def test_update_overwrites_and_reindexes(
        self, book_service: BookService, search_index: InMemoryBookIndex, dune: Book
    ):
        created = book_service.create(dune)

        updated = book_service.update(created.id, Book(id=created.id, title="Dune Messiah"))

        assert updated.title == "Dune Messiah"
        assert updated.price is None
        assert book_service.get(created.id) == updated
        assert book_service.search("Messiah", PageRequest()).content == [updated]

    @pytest.mark.parametrize(
        ("body_id", "error_key", "status_code"),
        [
            (None, "idnull", 400),
            (2, "idinvalid", 400),
        ],
    )
    def test_update_identifier_validation(
        self, session: Session, dune: Book, body_id, error_key, status_code
    ):
        index = MagicMock(spec=BookSearchIndex)
        service = BookService(session, index)
        created = BookRepository(session).save(dune)
        session.commit()

        with pytest.raises(ValidationAlertError) as exc_info:
            service.update(created.id, Book(id=body_id, title="Changed"))

        assert exc_info.value.error_key == error_key
        assert exc_info.value.status_code == status_code
        assert service.get(created.id).title == "Dune"
        index.index.assert_not_called()

    def test_update_missing_target(self, session: Session):
        index = MagicMock(spec=BookSearchIndex)

        with pytest.raises(ValidationAlertError) as exc_info:
            BookService(session, index).update(5, Book(id=5, title="Ghost"))

        assert exc_info.value.error_key == "idnotfound"
        assert exc_info.value.status_code == 400
        index.index.assert_not_called()


class TestPartialUpdate:
    def test_partial_update_changes_only_given_fields(
        self, book_service: BookService, search_index: InMemoryBookIndex, dune: Book
    ):
        created = book_service.create(dune)

        patched = book_service.partial_update(created.id, Book(id=created.id, price=Decimal("9.99")))

        assert patched.price == Decimal("9.99")
        assert patched.title == "Dune"
        assert patched.description == dune.description
        assert patched.publication_date == date(1965, 8, 1)

        indexed = book_service.search("Dune", PageRequest()).content
        assert indexed == [patched]

    def test_partial_update_validation_matches_update(self, book_service: BookService, dune: Book):
        created = book_service.create(dune)

        with pytest.raises(ValidationAlertError) as exc_info:
            book_service.partial_update(created.id, Book(id=created.id + 1, price=Decimal("1")))

        assert exc_info.value.error_key == "idinvalid"

    def test_partial_update_missing_target(self, book_service: BookService):
        with pytest.raises(ValidationAlertError) as exc_info:
            book_service.partial_update(3, Book(id=3, price=Decimal("1")))

        assert exc_info.value.error_key == "idnotfound"

    def test_partial_update_vanished_record(self, session: Session, search_index: InMemoryBookIndex):
        """A record that disappears between the existence check and the load is not found."""
        service = BookService(session, search_index)
        repository = MagicMock(spec=BookRepository)
        repository.exists.return_value = True
        repository.find_by_id.return_value = None
        service._repository = repository

        with pytest.raises(EntityNotFoundError):
            service.partial_update(1, Book(id=1, title="Gone"))

        repository.save.assert_not_called()


class TestReadsAndDelete:
    def test_get_missing_raises(self, book_service: BookService):
        with pytest.raises(EntityNotFoundError, match="book 77 not found"):
            book_service.get(77)

    def test_list_reads_primary_store(self, book_service: BookService, search_index: InMemoryBookIndex):
        for title in ["Dune", "Emma", "Ulysses"]:
            book_service.create(Book(title=title))
        search_index.ensure_index(recreate=True)

        page = book_service.list(PageRequest(size=2))

        assert page.total == 3
        assert [book.title for book in page.content] == ["Dune", "Emma"]

    def test_search_never_reads_primary_store(self, book_service: BookService, dune: Book, session: Session):
        """A record missing from the index is invisible to search."""
        BookRepository(session).save(dune)
        session.commit()

        assert book_service.search("Dune", PageRequest()).total == 0

    def test_delete_removes_from_both_stores(
        self, book_service: BookService, search_index: InMemoryBookIndex, dune: Book
    ):
        created = book_service.create(dune)

        book_service.delete(created.id)

        with pytest.raises(EntityNotFoundError):
            book_service.get(created.id)
        assert created.id not in search_index
        assert book_service.search("Dune", PageRequest()).total == 0

    def test_delete_when_index_document_missing(
        self, book_service: BookService, search_index: InMemoryBookIndex, dune: Book
    ):
        created = book_service.create(dune)
        search_index.delete_by_id(created.id)

        book_service.delete(created.id)

        with pytest.raises(EntityNotFoundError):
            book_service.get(created.id)


class TestReindex:
    def test_reindex_repairs_divergence(
        self, session: Session, search_index: InMemoryBookIndex
    ):
        repository = BookRepository(session)
        for title in ["Dune", "Emma", "Ulysses"]:
            repository.save(Book(title=title))
        session.commit()
        assert len(search_index) == 0

        total = BookService(session, search_index).reindex(batch_size=2)

        assert total == 3
        assert len(search_index) == 3

    def test_reindex_removes_orphaned_documents(
        self, session: Session, search_index: InMemoryBookIndex
    ):
        """Documents left behind by a failed index delete are dropped."""
        saved = BookRepository(session).save(Book(title="Dune"))
        session.commit()
        search_index.index(Book(id=saved.id + 10, title="Deleted long ago"))

        total = BookService(session, search_index).reindex()

        assert total == 1
        assert saved.id in search_index
        assert saved.id + 10 not in search_index
        assert len(search_index) == 1
