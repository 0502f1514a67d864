"""
Library Lending API — Lending Request/Response Schemas
=======================================================

What:  Pydantic models for the /lending endpoints.

Shapes:
    POST /lending  {"bookISBN": "9780441013593", "readerId": 1}
    → 201 {"lending": {...}, "updatedBook": {...}}

    GET /lending   → PaginatedResponse[LendingDetail]; each item carries the
                     lending fields plus nested "Book" and "Reader" objects.

    PATCH /lending/{id} → {"message": "Book returned successfully."}
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, field_validator
from pydantic_core import PydanticCustomError

from library_api.schemas.book import BookResponse
from library_api.schemas.reader import ReaderResponse
from library_api.validators import INVALID_ISBN, is_valid_isbn


class LendingCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    book_isbn: str = Field(
        min_length=1,
        validation_alias=AliasChoices("bookISBN", "book_isbn"),
        description="ISBN of the book to lend",
    )
    reader_id: StrictInt = Field(
        validation_alias=AliasChoices("readerId", "reader_id"),
        description="ID of the borrowing reader",
    )

    @field_validator("book_isbn")
    @classmethod
    def validate_isbn(cls, v: str) -> str:
        if not is_valid_isbn(v):
            raise PydanticCustomError("isbn", INVALID_ISBN)
        return v


class LendingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int = Field(description="The unique ID of the lending")
    date: datetime = Field(description="When the book was loaned (UTC)")
    book_isbn: str = Field(
        validation_alias=AliasChoices("book_isbn", "bookISBN"),
        serialization_alias="bookISBN",
    )
    reader_id: int = Field(
        validation_alias=AliasChoices("reader_id", "readerId"),
        serialization_alias="readerId",
    )


class LendingDetail(LendingResponse):
    """A lending joined with its book and reader, for listings."""

    book: BookResponse = Field(
        validation_alias=AliasChoices("book", "Book"),
        serialization_alias="Book",
    )
    reader: ReaderResponse = Field(
        validation_alias=AliasChoices("reader", "Reader"),
        serialization_alias="Reader",
    )


class LendingResult(BaseModel):
    """Both snapshots produced by a successful lend transaction."""
    model_config = ConfigDict(populate_by_name=True)

    lending: LendingResponse
    updated_book: BookResponse = Field(
        validation_alias=AliasChoices("updated_book", "updatedBook"),
        serialization_alias="updatedBook",
    )
