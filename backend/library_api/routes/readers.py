"""Reader route handlers: POST/GET/PATCH/DELETE on /reader."""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.config import settings
from library_api.database import get_db_session
from library_api.schemas.common import ErrorResponse, PaginatedResponse
from library_api.schemas.reader import ReaderCreate, ReaderResponse, ReaderUpdate
from library_api.services.reader_service import reader_service

router = APIRouter(prefix="/reader", tags=["Reader"])

_ERRORS = {
    400: {"description": "Bad Request", "model": ErrorResponse},
    404: {"description": "Not Found", "model": ErrorResponse},
    500: {"description": "Internal Server Error", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=ReaderResponse,
    responses={k: v for k, v in _ERRORS.items() if k != 404},
    summary="Insert a new Reader",
)
async def create_reader(
    body: ReaderCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ReaderResponse:
    return await reader_service.create_reader(db, body)


@router.get(
    "",
    response_model=PaginatedResponse[ReaderResponse],
    summary="Retrieve a list of readers with optional pagination",
)
async def list_readers(
    limit: int = Query(default=settings.default_page_limit, ge=1),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse[ReaderResponse]:
    return await reader_service.list_readers(db, limit=limit, offset=offset)


@router.get("/{reader_id}", response_model=ReaderResponse, responses=_ERRORS, summary="Find a Reader by ID")
async def get_reader(
    reader_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> ReaderResponse:
    return await reader_service.get_reader(db, reader_id)


@router.patch("/{reader_id}", response_model=ReaderResponse, responses=_ERRORS, summary="Update a Reader")
async def update_reader(
    reader_id: int,
    body: ReaderUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> ReaderResponse:
    return await reader_service.update_reader(db, reader_id, body)


@router.delete(
    "/{reader_id}",
    status_code=200,
    response_class=Response,
    responses=_ERRORS,
    summary="Delete a Reader",
)
async def delete_reader(
    reader_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await reader_service.delete_reader(db, reader_id)
    return Response(status_code=200)
