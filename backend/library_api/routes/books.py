"""
Library Lending API — Book Route Handlers
==========================================

What:  POST/GET/PATCH/DELETE on /book.
How:   Path ISBNs are checksum-validated by the `valid_isbn` dependency
       (400 "Invalid ISBN"); everything else is delegated to BookService.
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.config import settings
from library_api.database import get_db_session
from library_api.schemas.book import BookCreate, BookResponse, BookUpdate
from library_api.schemas.common import ErrorResponse, PaginatedResponse
from library_api.services.book_service import book_service
from library_api.validators import ensure_valid_isbn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/book", tags=["Book"])

_ERRORS = {
    400: {"description": "Bad Request", "model": ErrorResponse},
    404: {"description": "Not Found", "model": ErrorResponse},
    500: {"description": "Internal Server Error", "model": ErrorResponse},
}


def valid_isbn(isbn: str = Path(description="ISBN-10 or ISBN-13 of the book")) -> str:
    """Path dependency: rejects malformed ISBNs before any lookup."""
    return ensure_valid_isbn(isbn)


@router.post(
    "",
    status_code=201,
    response_model=BookResponse,
    responses={k: v for k, v in _ERRORS.items() if k != 404},
    summary="Insert a new Book",
)
async def create_book(
    body: BookCreate,
    db: AsyncSession = Depends(get_db_session),
) -> BookResponse:
    return await book_service.create_book(db, body)


@router.get(
    "",
    response_model=PaginatedResponse[BookResponse],
    summary="Retrieve a list of books with optional pagination",
)
async def list_books(
    limit: int = Query(default=settings.default_page_limit, ge=1, description="Items per page"),
    offset: int = Query(default=0, ge=0, description="Items to skip"),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse[BookResponse]:
    return await book_service.list_books(db, limit=limit, offset=offset)


@router.get(
    "/{isbn}",
    response_model=BookResponse,
    responses=_ERRORS,
    summary="Find a Book by ISBN",
)
async def get_book(
    isbn: str = Depends(valid_isbn),
    db: AsyncSession = Depends(get_db_session),
) -> BookResponse:
    return await book_service.get_book(db, isbn)


@router.patch(
    "/{isbn}",
    response_model=BookResponse,
    responses=_ERRORS,
    summary="Update a Book",
)
async def update_book(
    body: BookUpdate,
    isbn: str = Depends(valid_isbn),
    db: AsyncSession = Depends(get_db_session),
) -> BookResponse:
    return await book_service.update_book(db, isbn, body)


@router.delete(
    "/{isbn}",
    status_code=200,
    response_class=Response,
    responses=_ERRORS,
    summary="Delete a Book",
)
async def delete_book(
    isbn: str = Depends(valid_isbn),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await book_service.delete_book(db, isbn)
    return Response(status_code=200)
