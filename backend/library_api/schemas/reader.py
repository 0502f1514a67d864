"""Pydantic models for the /reader endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReaderCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=3, description="Reader's name")


class ReaderUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=3)


class ReaderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="The unique ID of the reader")
    name: str = Field(description="Reader's name")
