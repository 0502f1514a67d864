"""
Library Lending API — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Services raise typed errors immediately when a rule is violated; the
       HTTP layer only maps the type to a status code.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and route dependencies; caught by global handlers.

Exception Hierarchy:
    LibraryError (base)
    ├── ValidationError   → 400 Bad Request (malformed field)
    ├── ConflictError     → 400 Bad Request (duplicate key, business rule)
    ├── NotFoundError     → 404 Not Found
    └── InternalError     → 500 Internal Server Error (persistence failure)
"""

from typing import Any, Dict, Optional


class LibraryError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(LibraryError):
    """
    Raised when client input fails validation.

    When:    Name contains regex metacharacters, ISBN fails its checksum,
             required field missing.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(LibraryError):
    """
    Raised when a request is well-formed but breaks a state rule.

    When:    Duplicate ISBN, lending a book already on loan, returning a book
             that is not loaned, deleting a loaned book or a reader with open
             lendings.
    HTTP:    400 Bad Request (clients of this API never receive 409)
    """

    def __init__(
        self,
        message: str = "The request conflicts with the current state",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(LibraryError):
    """
    Raised when a referenced entity does not exist.

    SQLAlchemy returns None for missing records; services convert that None
    into this exception with an entity-specific message.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        message: str = "Element not found in database.",
        resource: Optional[str] = None,
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource:
            ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class InternalError(LibraryError):
    """
    Raised when a persistence operation fails unexpectedly.

    Security Note:
        The message is always one of a few fixed strings. The driver error,
        SQL text and constraint names go into `context`, which is logged
        server-side only.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Checks Server logs.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
