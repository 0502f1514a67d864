"""
Library Lending API — Reader Service (Reader Registry)
=======================================================

What:  CRUD over readers, the open-lending guard on delete, and the
       idempotent seeding of the two default readers.
Who:   Called by the /reader route handlers and by the application lifespan.
"""

import logging
from typing import List, NoReturn

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.config import settings
from library_api.database import DbErrorKind, classify_db_error
from library_api.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from library_api.models.lending import Lending
from library_api.models.reader import Reader
from library_api.pagination import page_info
from library_api.schemas.common import PaginatedResponse
from library_api.schemas.reader import ReaderCreate, ReaderResponse, ReaderUpdate
from library_api.validators import INVALID_DATA, ensure_valid_name

logger = logging.getLogger(__name__)

DEFAULT_READER_NAMES = ("reader 1", "reader 2")

READER_NOT_FOUND = "Reader not found in database."
READER_HAS_LENDINGS = (
    "The reader cannot be deleted as they have books checked out. "
    "They must return them first."
)


class ReaderService:
    """Business logic layer for readers. Stateless; sessions are passed in."""

    async def seed_defaults(self, db: AsyncSession) -> List[str]:
        """
        Creates "reader 1" and "reader 2" if no reader with that name exists.

        When:    Once per process start, from the lifespan handler.
        Returns: The names that were actually inserted (empty on re-runs).
        """
        created = []
        for name in DEFAULT_READER_NAMES:
            result = await db.execute(
                select(Reader.id).where(Reader.name == name).limit(1)
            )
            if result.scalar_one_or_none() is None:
                db.add(Reader(name=name))
                created.append(name)

        if created:
            await db.commit()
            logger.info("Seeded default readers: %s", ", ".join(created))
        return created

    async def create_reader(self, db: AsyncSession, data: ReaderCreate) -> ReaderResponse:
        ensure_valid_name(data.name)

        reader = Reader(name=data.name)
        db.add(reader)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            self._raise_db_error(e)

        await db.refresh(reader)
        logger.info("Reader created: %d (%s)", reader.id, reader.name)
        return ReaderResponse.model_validate(reader)

    async def list_readers(
        self,
        db: AsyncSession,
        limit: int = settings.default_page_limit,
        offset: int = 0,
    ) -> PaginatedResponse[ReaderResponse]:
        result = await db.execute(
            select(Reader).order_by(Reader.id).offset(offset).limit(limit)
        )
        readers = result.scalars().all()
        total = (await db.execute(select(func.count()).select_from(Reader))).scalar_one()

        current_page, total_pages = page_info(total, limit, offset)
        return PaginatedResponse[ReaderResponse](
            items=[ReaderResponse.model_validate(r) for r in readers],
            total=total,
            current_page=current_page,
            total_pages=total_pages,
        )

    async def get_reader(self, db: AsyncSession, reader_id: int) -> ReaderResponse:
        reader = await self._get_reader_row(db, reader_id)
        return ReaderResponse.model_validate(reader)

    async def update_reader(
        self, db: AsyncSession, reader_id: int, data: ReaderUpdate
    ) -> ReaderResponse:
        reader = await self._get_reader_row(db, reader_id)
        ensure_valid_name(data.name)

        if data.name is not None:
            reader.name = data.name
            try:
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                self._raise_db_error(e)

        return ReaderResponse.model_validate(reader)

    async def delete_reader(self, db: AsyncSession, reader_id: int) -> None:
        reader = await self._get_reader_row(db, reader_id)

        result = await db.execute(
            select(Lending.id).where(Lending.reader_id == reader.id).limit(1)
        )
        if result.scalar_one_or_none() is not None:
            logger.warning("Refusing to delete reader %d: open lendings", reader_id)
            raise ConflictError(
                message=READER_HAS_LENDINGS,
                context={"reader_id": reader_id},
            )

        await db.delete(reader)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            self._raise_db_error(e)

        logger.info("Reader deleted: %d", reader_id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_reader_row(self, db: AsyncSession, reader_id: int) -> Reader:
        try:
            reader = await db.get(Reader, reader_id)
        except SQLAlchemyError as e:
            self._raise_db_error(e)

        if reader is None:
            logger.warning("Reader not found: %s", reader_id)
            raise NotFoundError(
                message=READER_NOT_FOUND,
                resource="reader",
                resource_id=reader_id,
            )
        return reader

    def _raise_db_error(self, exc: SQLAlchemyError) -> NoReturn:
        kind = classify_db_error(exc)
        context = {"kind": kind.value, "original_error": str(exc)}

        if kind is DbErrorKind.DUPLICATE_KEY:
            logger.error("Duplicate key: %s", exc)
            raise ConflictError(message="Reader already exists in database", context=context) from exc
        elif kind is DbErrorKind.VALIDATION:
            logger.error("Bad request: %s", exc)
            raise ValidationError(message=INVALID_DATA, context=context) from exc
        elif kind is DbErrorKind.NOT_FOUND:
            logger.error("Not found: %s", exc)
            raise NotFoundError(message=READER_NOT_FOUND, context=context) from exc
        else:
            logger.error("Unknown database error for reader: %s", exc, exc_info=True)
            raise InternalError(message="Checks Server logs.", context=context) from exc


reader_service = ReaderService()
