"""
Library Lending API — Reader Service Unit Tests
================================================

What:  Tests for ReaderService: CRUD, default seeding, and the rule that a
       reader with open lendings cannot be deleted.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from library_api.exceptions import ConflictError, NotFoundError, ValidationError
from library_api.models.reader import Reader
from library_api.schemas.lending import LendingCreate
from library_api.schemas.reader import ReaderCreate, ReaderUpdate
from library_api.services.lending_service import lending_service
from library_api.services.reader_service import (
    DEFAULT_READER_NAMES,
    READER_HAS_LENDINGS,
    READER_NOT_FOUND,
    reader_service,
)
from library_api.validators import INVALID_DATA, NAME_SYNTAX_ERROR
from conftest import DUNE_ISBN


class TestSeedDefaults:

    @pytest.mark.asyncio
    async def test_seeds_both_readers_once(self, db_session):
        created = await reader_service.seed_defaults(db_session)
        assert created == list(DEFAULT_READER_NAMES)

        again = await reader_service.seed_defaults(db_session)
        assert again == []

        names = (await db_session.execute(select(Reader.name))).scalars().all()
        assert sorted(names) == ["reader 1", "reader 2"]

    @pytest.mark.asyncio
    async def test_only_missing_names_are_created(self, db_session):
        await reader_service.create_reader(db_session, ReaderCreate(name="reader 1"))
        created = await reader_service.seed_defaults(db_session)
        assert created == ["reader 2"]


class TestReaderCrud:

    @pytest.mark.asyncio
    async def test_create_and_get(self, db_session):
        created = await reader_service.create_reader(db_session, ReaderCreate(name="Ada Lovelace"))
        found = await reader_service.get_reader(db_session, created.id)
        assert found.name == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_names_need_not_be_unique(self, db_session):
        a = await reader_service.create_reader(db_session, ReaderCreate(name="Sam"))
        b = await reader_service.create_reader(db_session, ReaderCreate(name="Sam"))
        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_metacharacters_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await reader_service.create_reader(db_session, ReaderCreate(name="[admin]"))
        assert exc_info.value.message == NAME_SYNTAX_ERROR

    @pytest.mark.asyncio
    async def test_value_rejected_by_database(self, mock_db_session):
        mock_db_session.commit.side_effect = IntegrityError(
            "INSERT INTO readers (name) VALUES (?)",
            ("Sam",),
            Exception("NOT NULL constraint failed: readers.name"),
        )
        with pytest.raises(ValidationError) as exc_info:
            await reader_service.create_reader(mock_db_session, ReaderCreate(name="Sam"))
        assert exc_info.value.message == INVALID_DATA

    @pytest.mark.asyncio
    async def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await reader_service.get_reader(db_session, 999)
        assert exc_info.value.message == READER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_name(self, db_session, reader):
        updated = await reader_service.update_reader(
            db_session, reader.id, ReaderUpdate(name="reader renamed")
        )
        assert updated.name == "reader renamed"

    @pytest.mark.asyncio
    async def test_update_without_changes(self, db_session, reader):
        updated = await reader_service.update_reader(db_session, reader.id, ReaderUpdate())
        assert updated.name == reader.name

    @pytest.mark.asyncio
    async def test_list(self, db_session, reader):
        page = await reader_service.list_readers(db_session, limit=10, offset=0)
        assert page.total == 1
        assert page.items[0].id == reader.id


class TestDeleteReader:

    @pytest.mark.asyncio
    async def test_delete(self, db_session, reader):
        await reader_service.delete_reader(db_session, reader.id)
        with pytest.raises(NotFoundError):
            await reader_service.get_reader(db_session, reader.id)

    @pytest.mark.asyncio
    async def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError):
            await reader_service.delete_reader(db_session, 42)

    @pytest.mark.asyncio
    async def test_reader_with_lendings_cannot_be_deleted(self, db_session, book, reader):
        result = await lending_service.realize_lending(
            db_session, LendingCreate(bookISBN=DUNE_ISBN, readerId=reader.id)
        )

        with pytest.raises(ConflictError) as exc_info:
            await reader_service.delete_reader(db_session, reader.id)
        assert exc_info.value.message == READER_HAS_LENDINGS

        # Once the book is back the reader can go
        await lending_service.return_book(db_session, result.lending.id)
        await reader_service.delete_reader(db_session, reader.id)
