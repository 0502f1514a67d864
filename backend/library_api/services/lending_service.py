"""
Library Lending API — Lending Service (Lending Coordinator)
============================================================

What:  Drives the loan/return state machine and lists open lendings.
Why:   A loan touches two rows (a new Lending and the Book's loaned/reader_id
       projection). Both must change together or not at all.
Who:   Called by the /lending route handlers.

State machine (per book):

        realize_lending                      return_book
    ┌───────────┐  insert Lending  ┌────────┐  delete Lending  ┌───────────┐
    │ Available │ ───────────────▶ │ OnLoan │ ───────────────▶ │ Available │
    │ loaned=F  │  loaned=T, rid   │        │  loaned=F, None  │           │
    └───────────┘                  └────────┘                  └───────────┘

Consistency:
    The availability check and the write run in ONE transaction:
    1. The book row is read with SELECT ... FOR UPDATE, so a concurrent lend
       of the same book waits until this transaction commits and then sees
       loaned=True. Locked reads use populate_existing, so the row state the
       rules are checked against comes from the database, not from objects
       already held by the session.
    2. lendings.book_isbn is UNIQUE. On stores without row locks (SQLite) a
       racing second insert fails at commit; that violation is reported as
       the same "Book not available" conflict.
    Any other commit failure rolls back both rows and surfaces as
    "Failed to execute transaction."
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from library_api.config import settings
from library_api.database import DbErrorKind, classify_db_error
from library_api.exceptions import ConflictError, InternalError, NotFoundError
from library_api.models.book import Book
from library_api.models.lending import Lending
from library_api.models.reader import Reader
from library_api.pagination import page_info
from library_api.schemas.book import BookResponse
from library_api.schemas.common import MessageResponse, PaginatedResponse
from library_api.schemas.lending import (
    LendingCreate,
    LendingDetail,
    LendingResponse,
    LendingResult,
)

logger = logging.getLogger(__name__)

BOOK_NOT_FOUND = "Book not found in database"
READER_NOT_FOUND = "Reader not found in database"
BOOK_NOT_AVAILABLE = "Book not available"
BOOK_NOT_LOANED = "The book is not currently loaned out."
TRANSACTION_FAILED = "Failed to execute transaction."
FETCH_FAILED = "Failed to fetch lendings."
RETURN_SUCCESS = "Book returned successfully."


class LendingService:
    """
    Coordinator for the lending lifecycle.

    Responsibilities:
        - realize_lending(): Available → OnLoan
        - return_book(): OnLoan → Available
        - list_lendings(): paginated open lendings with book and reader
    """

    async def realize_lending(
        self, db: AsyncSession, data: LendingCreate
    ) -> LendingResult:
        """
        Lends a book to a reader.

        Workflow:
            1. Read the book (locked) and the reader
            2. Book missing   → NotFoundError "Book not found in database"
            3. Reader missing → NotFoundError "Reader not found in database"
               (book is checked first; a request missing both reports the book)
            4. Book on loan   → ConflictError "Book not available"
            5. Insert Lending + set book.loaned/reader_id, commit once

        Raises:
            NotFoundError, ConflictError, InternalError
        """
        book = (
            await db.execute(
                select(Book)
                .where(Book.isbn == data.book_isbn)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        reader = await db.get(Reader, data.reader_id)

        if book is None:
            logger.error("Lend rejected: book %s not found", data.book_isbn)
            raise NotFoundError(
                message=BOOK_NOT_FOUND, resource="book", resource_id=data.book_isbn
            )

        if reader is None:
            logger.error("Lend rejected: reader %s not found", data.reader_id)
            raise NotFoundError(
                message=READER_NOT_FOUND, resource="reader", resource_id=data.reader_id
            )

        if book.loaned:
            logger.error("Lend rejected: book %s not available", book.isbn)
            raise ConflictError(
                message=BOOK_NOT_AVAILABLE,
                context={"isbn": book.isbn, "reader_id": book.reader_id},
            )

        lending = Lending(
            date=datetime.now(timezone.utc),
            book_isbn=book.isbn,
            reader_id=reader.id,
        )
        db.add(lending)
        book.loaned = True
        book.reader_id = reader.id

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            if classify_db_error(e) is DbErrorKind.DUPLICATE_KEY:
                # Another transaction opened a lending for this ISBN first
                logger.error("Lend rejected: concurrent lending of %s", data.book_isbn)
                raise ConflictError(
                    message=BOOK_NOT_AVAILABLE,
                    context={"isbn": data.book_isbn, "original_error": str(e)},
                ) from e
            logger.error("Failed to execute transaction: %s", e, exc_info=True)
            raise InternalError(
                message=TRANSACTION_FAILED,
                context={"isbn": data.book_isbn, "original_error": str(e)},
            ) from e

        logger.info(
            "Book %s lent to reader %d (lending %d)",
            book.isbn, reader.id, lending.id,
        )
        return LendingResult(
            lending=LendingResponse.model_validate(lending),
            updated_book=BookResponse.model_validate(book),
        )

    async def return_book(self, db: AsyncSession, lending_id: int) -> MessageResponse:
        """
        Closes a lending and makes its book available again.

        Workflow:
            1. Read the lending joined with its book (both rows locked)
            2. Missing lending  → NotFoundError "Lending with ID {id} not found."
            3. Book not loaned  → ConflictError "The book is not currently loaned out."
               (the lending row and the book flag disagree)
            4. Clear book.loaned/reader_id + delete the lending, commit once
        """
        lending = (
            await db.execute(
                select(Lending)
                .options(joinedload(Lending.book, innerjoin=True))
                .where(Lending.id == lending_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()

        if lending is None:
            logger.error("Return rejected: lending %s not found", lending_id)
            raise NotFoundError(
                message=f"Lending with ID {lending_id} not found.",
                resource="lending",
                resource_id=lending_id,
            )

        book = lending.book
        if not book.loaned:
            logger.error(
                "Return rejected: book %s has an open lending but is not loaned",
                book.isbn,
            )
            raise ConflictError(
                message=BOOK_NOT_LOANED,
                context={"lending_id": lending_id, "isbn": book.isbn},
            )

        book.loaned = False
        book.reader_id = None
        await db.delete(lending)

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to execute transaction: %s", e, exc_info=True)
            raise InternalError(
                message=TRANSACTION_FAILED,
                context={"lending_id": lending_id, "original_error": str(e)},
            ) from e

        logger.info("Lending %d closed, book %s returned", lending_id, book.isbn)
        return MessageResponse(message=RETURN_SUCCESS)

    async def list_lendings(
        self,
        db: AsyncSession,
        limit: int = settings.default_page_limit,
        offset: int = 0,
    ) -> PaginatedResponse[LendingDetail]:
        """Open lendings, oldest first, each joined with its book and reader."""
        try:
            result = await db.execute(
                select(Lending)
                .options(selectinload(Lending.book), selectinload(Lending.reader))
                .order_by(Lending.id)
                .offset(offset)
                .limit(limit)
            )
            lendings = result.scalars().all()
            total = (
                await db.execute(select(func.count()).select_from(Lending))
            ).scalar_one()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch lendings: %s", e, exc_info=True)
            raise InternalError(
                message=FETCH_FAILED,
                context={"original_error": str(e)},
            ) from e

        current_page, total_pages = page_info(total, limit, offset)
        return PaginatedResponse[LendingDetail](
            items=[LendingDetail.model_validate(item) for item in lendings],
            total=total,
            current_page=current_page,
            total_pages=total_pages,
        )


lending_service = LendingService()
