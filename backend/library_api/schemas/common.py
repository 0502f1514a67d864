"""
Library Lending API — Shared Response Schemas
==============================================

What:  Envelopes shared by every resource: paginated lists, plain messages,
       errors and the health check.
Why:   Clients parse one error shape and one page shape regardless of resource.

Wire naming:
    The JSON contract uses camelCase (currentPage, totalPages). Python code
    uses snake_case; each aliased field accepts both on input and emits the
    camelCase name on output.
"""

from typing import Generic, List, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """
    What:  One page of a listing plus totals.
    How:   currentPage = offset / limit + 1, totalPages = ceil(total / limit)
           (see library_api.pagination).
    """
    model_config = ConfigDict(populate_by_name=True)

    items: List[T] = Field(description="Entities on this page")
    total: int = Field(description="Total number of entities")
    current_page: Union[int, float] = Field(
        validation_alias=AliasChoices("current_page", "currentPage"),
        serialization_alias="currentPage",
        description="offset / limit + 1",
    )
    total_pages: int = Field(
        validation_alias=AliasChoices("total_pages", "totalPages"),
        serialization_alias="totalPages",
        description="ceil(total / limit)",
    )


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable result of the operation")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code ("validation_error", "conflict", "not_found", ...)
        message: Human-readable description
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
