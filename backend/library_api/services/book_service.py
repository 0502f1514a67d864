"""
Library Lending API — Book Service (Book Registry)
===================================================

What:  CRUD over books: name syntax rule, ISBN uniqueness, and the
       "cannot delete a book on loan" guard.
Who:   Called by the /book route handlers.

Error mapping:
    Name with metacharacters     → ValidationError  "Syntax Error: not allowed characters"
    Unique violation on ISBN     → ConflictError    "Duplicate ISBN, the element already exists in database"
    Missing book                 → NotFoundError
    Book on loan at delete time  → ConflictError    "The book {name} cannot be deleted because it is currently on loan."
    Anything else from the DB    → InternalError    "Checks Server logs."
"""

import logging
from typing import NoReturn

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
from library_api.models.book import Book
from library_api.pagination import page_info
from library_api.schemas.book import BookCreate, BookResponse, BookUpdate
from library_api.schemas.common import PaginatedResponse
from library_api.validators import INVALID_DATA, ensure_valid_name

logger = logging.getLogger(__name__)

DUPLICATE_ISBN = "Duplicate ISBN, the element already exists in database"


class BookService:
    """
    Business logic layer for books.

    Stateless: the session is passed into every call, so one instance serves
    all requests.
    """

    async def create_book(self, db: AsyncSession, data: BookCreate) -> BookResponse:
        ensure_valid_name(data.name)

        book = Book(name=data.name, isbn=data.isbn, loaned=False, reader_id=None)
        db.add(book)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            self._raise_db_error(e, isbn=data.isbn)

        await db.refresh(book)
        logger.info("Book created: %s (%s)", book.isbn, book.name)
        return BookResponse.model_validate(book)

    async def list_books(
        self,
        db: AsyncSession,
        limit: int = settings.default_page_limit,
        offset: int = 0,
    ) -> PaginatedResponse[BookResponse]:
        result = await db.execute(
            select(Book).order_by(Book.id).offset(offset).limit(limit)
        )
        books = result.scalars().all()
        total = (await db.execute(select(func.count()).select_from(Book))).scalar_one()

        current_page, total_pages = page_info(total, limit, offset)
        return PaginatedResponse[BookResponse](
            items=[BookResponse.model_validate(b) for b in books],
            total=total,
            current_page=current_page,
            total_pages=total_pages,
        )

    async def get_book(self, db: AsyncSession, isbn: str) -> BookResponse:
        book = await self._get_book_row(db, isbn)
        return BookResponse.model_validate(book)

    async def update_book(
        self, db: AsyncSession, isbn: str, data: BookUpdate
    ) -> BookResponse:
        """
        Applies a partial update. Name and ISBN may change while the book is
        on loan; the lending row follows the ISBN through ON UPDATE CASCADE.
        """
        book = await self._get_book_row(db, isbn)
        ensure_valid_name(data.name)

        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        for field, value in changes.items():
            setattr(book, field, value)

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            self._raise_db_error(e, isbn=changes.get("isbn", isbn))

        logger.info("Book %s updated: %s", isbn, sorted(changes))
        return BookResponse.model_validate(book)

    async def delete_book(self, db: AsyncSession, isbn: str) -> None:
        book = await self._get_book_row(db, isbn)

        if book.loaned or book.reader_id is not None:
            logger.warning("Refusing to delete book %s: currently on loan", isbn)
            raise ConflictError(
                message=f"The book {book.name} cannot be deleted because it is currently on loan.",
                context={"isbn": isbn, "reader_id": book.reader_id},
            )

        await db.delete(book)
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            self._raise_db_error(e, isbn=isbn)

        logger.info("Book deleted: %s", isbn)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_book_row(self, db: AsyncSession, isbn: str) -> Book:
        try:
            result = await db.execute(select(Book).where(Book.isbn == isbn))
            book = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._raise_db_error(e, isbn=isbn)

        if book is None:
            logger.warning("Book not found: %s", isbn)
            raise NotFoundError(
                message=f"The book with ISBN {isbn} does not exist in database",
                resource="book",
                resource_id=isbn,
            )
        return book

    def _raise_db_error(self, exc: SQLAlchemyError, isbn: str) -> NoReturn:
        kind = classify_db_error(exc)
        context = {"isbn": isbn, "kind": kind.value, "original_error": str(exc)}

        if kind is DbErrorKind.DUPLICATE_KEY:
            logger.error("Duplicate element: %s", isbn)
            raise ConflictError(message=DUPLICATE_ISBN, context=context) from exc
        elif kind is DbErrorKind.VALIDATION:
            logger.error("Bad request: %s", exc)
            raise ValidationError(message=INVALID_DATA, context=context) from exc
        elif kind is DbErrorKind.NOT_FOUND:
            logger.error("Not found: %s", exc)
            raise NotFoundError(message="Element not found in database.", context=context) from exc
        else:
            logger.error("Unknown database error for book %s: %s", isbn, exc, exc_info=True)
            raise InternalError(message="Checks Server logs.", context=context) from exc


# ── Singleton Instance ────────────────────────────────────────────────────
book_service = BookService()
