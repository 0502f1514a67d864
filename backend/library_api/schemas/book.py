"""
Library Lending API — Book Request/Response Schemas
====================================================

What:  Pydantic models for the /book endpoints.
How:   Request models reject unknown fields (extra="forbid"), enforce the
       3-character minimum and the ISBN checksum. The metacharacter rule on
       names is enforced by BookService so it also applies outside HTTP.

Example (create):
    POST /book
    {"name": "Dune", "ISBN": "9780441013593"}
    → 201 {"id": 1, "name": "Dune", "ISBN": "9780441013593", "loaned": false, "readerId": null}
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from library_api.validators import INVALID_ISBN, is_valid_isbn


class BookCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str = Field(min_length=3, description="Title of the book")
    isbn: str = Field(
        min_length=1,
        validation_alias=AliasChoices("ISBN", "isbn"),
        description="ISBN-10 or ISBN-13",
    )

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str) -> str:
        if not is_valid_isbn(v):
            raise PydanticCustomError("isbn", INVALID_ISBN)
        return v


class BookUpdate(BaseModel):
    """Partial update: only the fields present in the request change."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=3)
    isbn: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ISBN", "isbn"),
    )

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_isbn(v):
            raise PydanticCustomError("isbn", INVALID_ISBN)
        return v


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int = Field(description="The unique ID of the book")
    name: str = Field(description="Title of the book")
    isbn: str = Field(
        validation_alias=AliasChoices("isbn", "ISBN"),
        serialization_alias="ISBN",
        description="The unique ISBN of the book",
    )
    loaned: bool = Field(description="Whether the book is currently on loan")
    reader_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("reader_id", "readerId"),
        serialization_alias="readerId",
        description="Reader holding the book, null while available",
    )
