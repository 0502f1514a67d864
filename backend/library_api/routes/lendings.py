"""
Library Lending API — Lending Route Handlers
=============================================

What:  POST /lending (lend), GET /lending (list), PATCH /lending/{id} (return).
Why PATCH for return: a return is modelled as an update of the
       lending resource, even though the row is deleted.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.config import settings
from library_api.database import get_db_session
from library_api.schemas.common import ErrorResponse, MessageResponse, PaginatedResponse
from library_api.schemas.lending import LendingCreate, LendingDetail, LendingResult
from library_api.services.lending_service import lending_service

router = APIRouter(prefix="/lending", tags=["Lending"])

_ERRORS = {
    400: {"description": "Bad Request", "model": ErrorResponse},
    404: {"description": "Not Found", "model": ErrorResponse},
    500: {"description": "Internal Server Error", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=LendingResult,
    responses=_ERRORS,
    summary="Realize a lending process",
)
async def realize_lending(
    body: LendingCreate,
    db: AsyncSession = Depends(get_db_session),
) -> LendingResult:
    return await lending_service.realize_lending(db, body)


@router.get(
    "",
    response_model=PaginatedResponse[LendingDetail],
    responses={500: _ERRORS[500]},
    summary="Retrieve a list of lendings with optional pagination",
)
async def list_lendings(
    limit: int = Query(default=settings.default_page_limit, ge=1),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse[LendingDetail]:
    return await lending_service.list_lendings(db, limit=limit, offset=offset)


@router.patch(
    "/{lending_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Return the book of a lending",
)
async def return_book(
    lending_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await lending_service.return_book(db, lending_id)
