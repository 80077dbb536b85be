"""
Readlog Backend — Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return the `{success: false, ...}` error envelope.
Who:   Raised by the identifier codec, store adapter and services.

Exception Hierarchy:
    ReadlogError (base)
    ├── ValidationError              → 400 Bad Request
    │   └── InvalidIdentifierError   → 400 Bad Request (malformed identifier)
    ├── NotFoundError                → 404 Not Found
    │   └── BookNotFoundError        → 404 Not Found (note creation target missing)
    ├── DetachFailedError            → 409 Conflict (note kept, still referenced)
    └── StoreError                   → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ReadlogError(Exception):
    """
    Base exception for all Readlog application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (returned as `details` for 4xx errors,
                  logged only for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ReadlogError):
    """
    Raised when client input fails validation.

    When:    Unknown or immutable field in a patch, id mismatch between path and body.
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


class InvalidIdentifierError(ValidationError):
    """
    Raised when an identifier string is not in canonical form (24 hex characters).

    Raised by the identifier codec before any store access happens, so a
    request carrying a malformed id never reaches the database.
    """

    def __init__(self, value: Any = None, field: str = "id"):
        shown = value if isinstance(value, str) else repr(value)
        super().__init__(
            message=f"Invalid identifier for '{field}': {shown!s}",
            field=field,
            context={"value": shown},
        )
        self.value = value


class NotFoundError(ReadlogError):
    """
    Raised when a requested document does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class BookNotFoundError(NotFoundError):
    """Raised when a note is created against a book that does not exist."""

    def __init__(self, book_id: Optional[str] = None):
        super().__init__(resource="book", resource_id=book_id)


class DetachFailedError(ReadlogError):
    """
    Raised when a note id could not be removed from its book's `notes` list.

    The note document is left in place: a note referenced by a book must
    always exist.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        note_id: str,
        book_id: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"note_id": note_id, "book_id": book_id})
        super().__init__(
            message=f"Cannot remove note {note_id} from book {book_id}",
            context=ctx,
        )
        self.note_id = note_id
        self.book_id = book_id


class StoreError(ReadlogError):
    """
    Raised when the underlying store fails (connection loss, timeout, constraint).

    Security Note:
        The message returned to the client is always generic; the original
        driver error is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
