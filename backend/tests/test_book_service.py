"""
Library Lending API — Book Service Unit Tests
==============================================

What:  Tests for BookService business logic against an in-memory database.
How:   Uses the db_session fixture for real persistence and mock_db_session
       where a driver failure has to be injected.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from library_api.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from library_api.schemas.book import BookCreate, BookUpdate
from library_api.services.book_service import DUPLICATE_ISBN, book_service
from library_api.validators import INVALID_DATA, NAME_SYNTAX_ERROR
from conftest import DUNE_ISBN, GATSBY_ISBN, HOBBIT_ISBN


class TestCreateBook:

    @pytest.mark.asyncio
    async def test_new_book_is_available(self, db_session):
        book = await book_service.create_book(
            db_session, BookCreate(name="Dune", ISBN=DUNE_ISBN)
        )
        assert book.id is not None
        assert book.name == "Dune"
        assert book.isbn == DUNE_ISBN
        assert book.loaned is False
        assert book.reader_id is None

    @pytest.mark.asyncio
    async def test_isbn_stored_as_sent(self, db_session):
        book = await book_service.create_book(
            db_session, BookCreate(name="Gatsby", ISBN=GATSBY_ISBN)
        )
        assert book.isbn == GATSBY_ISBN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["[Dune]", "Dune/Messiah", "Dune."])
    async def test_metacharacters_in_name_rejected(self, db_session, name):
        with pytest.raises(ValidationError) as exc_info:
            await book_service.create_book(db_session, BookCreate(name=name, ISBN=DUNE_ISBN))
        assert exc_info.value.message == NAME_SYNTAX_ERROR

    @pytest.mark.asyncio
    async def test_duplicate_isbn_is_conflict(self, db_session, book):
        with pytest.raises(ConflictError) as exc_info:
            await book_service.create_book(
                db_session, BookCreate(name="Another Dune", ISBN=DUNE_ISBN)
            )
        assert exc_info.value.message == DUPLICATE_ISBN

        # The session is still usable after the rolled back insert
        page = await book_service.list_books(db_session)
        assert page.total == 1


class TestListBooks:

    @pytest.mark.asyncio
    async def test_pagination(self, db_session):
        for name, isbn in (("Dune", DUNE_ISBN), ("The Hobbit", HOBBIT_ISBN), ("Gatsby", GATSBY_ISBN)):
            await book_service.create_book(db_session, BookCreate(name=name, ISBN=isbn))

        first = await book_service.list_books(db_session, limit=2, offset=0)
        assert [b.name for b in first.items] == ["Dune", "The Hobbit"]
        assert first.total == 3
        assert first.current_page == 1
        assert first.total_pages == 2

        second = await book_service.list_books(db_session, limit=2, offset=2)
        assert [b.name for b in second.items] == ["Gatsby"]
        assert second.current_page == 2

    @pytest.mark.asyncio
    async def test_empty(self, db_session):
        page = await book_service.list_books(db_session, limit=10, offset=0)
        assert page.items == []
        assert page.total == 0
        assert page.total_pages == 0


class TestGetUpdateDelete:

    @pytest.mark.asyncio
    async def test_get_by_isbn(self, db_session, book):
        found = await book_service.get_book(db_session, DUNE_ISBN)
        assert found.id == book.id

    @pytest.mark.asyncio
    async def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await book_service.get_book(db_session, HOBBIT_ISBN)
        assert exc_info.value.message == f"The book with ISBN {HOBBIT_ISBN} does not exist in database"

    @pytest.mark.asyncio
    async def test_update_name_keeps_isbn(self, db_session, book):
        updated = await book_service.update_book(
            db_session, DUNE_ISBN, BookUpdate(name="Dune Messiah")
        )
        assert updated.name == "Dune Messiah"
        assert updated.isbn == DUNE_ISBN

    @pytest.mark.asyncio
    async def test_update_isbn(self, db_session, book):
        updated = await book_service.update_book(
            db_session, DUNE_ISBN, BookUpdate(ISBN=HOBBIT_ISBN)
        )
        assert updated.isbn == HOBBIT_ISBN
        assert updated.name == "Dune"
        with pytest.raises(NotFoundError):
            await book_service.get_book(db_session, DUNE_ISBN)

    @pytest.mark.asyncio
    async def test_update_to_existing_isbn_is_conflict(self, db_session, book):
        await book_service.create_book(db_session, BookCreate(name="The Hobbit", ISBN=HOBBIT_ISBN))
        with pytest.raises(ConflictError) as exc_info:
            await book_service.update_book(db_session, DUNE_ISBN, BookUpdate(ISBN=HOBBIT_ISBN))
        assert exc_info.value.message == DUPLICATE_ISBN

    @pytest.mark.asyncio
    async def test_update_missing_book(self, db_session):
        with pytest.raises(NotFoundError):
            await book_service.update_book(db_session, DUNE_ISBN, BookUpdate(name="Dune"))

    @pytest.mark.asyncio
    async def test_update_with_bad_name(self, db_session, book):
        with pytest.raises(ValidationError):
            await book_service.update_book(db_session, DUNE_ISBN, BookUpdate(name="Dune (1965)"))

    @pytest.mark.asyncio
    async def test_delete_available_book(self, db_session, book):
        await book_service.delete_book(db_session, DUNE_ISBN)
        with pytest.raises(NotFoundError):
            await book_service.get_book(db_session, DUNE_ISBN)

    @pytest.mark.asyncio
    async def test_delete_missing_book(self, db_session):
        with pytest.raises(NotFoundError):
            await book_service.delete_book(db_session, DUNE_ISBN)


class TestDriverFailures:

    @pytest.mark.asyncio
    async def test_unknown_failure_is_internal_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError(
            "SELECT", {}, Exception("connection lost")
        )
        with pytest.raises(InternalError) as exc_info:
            await book_service.get_book(mock_db_session, DUNE_ISBN)
        assert exc_info.value.message == "Checks Server logs."

    @pytest.mark.asyncio
    async def test_rejected_value_is_validation_error(self, mock_db_session):
        mock_db_session.commit.side_effect = IntegrityError(
            "INSERT INTO books (name, isbn) VALUES (?, ?)",
            ("Dune", DUNE_ISBN),
            Exception("NOT NULL constraint failed: books.name"),
        )
        with pytest.raises(ValidationError) as exc_info:
            await book_service.create_book(
                mock_db_session, BookCreate(name="Dune", ISBN=DUNE_ISBN)
            )
        assert exc_info.value.message == INVALID_DATA
        assert exc_info.value.field is None
        mock_db_session.rollback.assert_awaited_once()
