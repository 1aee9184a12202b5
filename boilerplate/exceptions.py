"""
API Boilerplate - Custom Exception Hierarchy
=============================================

What:  Faults that route handlers and services raise on purpose.
How:   The envelope middleware catches anything that escapes the router and
       translates it into a JSON envelope (see middleware/outcome.py).

Exception Hierarchy:
    ApiException (status supplied by the raiser)  → surfaced verbatim
    ├── ValidationError                           → 400 with per-field errors
    └── NotFoundError                             → 404
    UnauthorizedAccessError (PermissionError)     → 401 "Unauthorized Access"
    anything else                                 → 500

Only ApiException messages reach the client unchanged. The other two
categories are replaced by fixed text so internals never leak in production.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Union

ErrorMessages = Union[str, Iterable[str]]


def _normalize_errors(errors: Optional[Mapping[str, ErrorMessages]]) -> Optional[Dict[str, List[str]]]:
    """Field name → list of messages; a bare message becomes a one-item list."""
    if errors is None:
        return None
    normalized: Dict[str, List[str]] = {}
    for field, messages in errors.items():
        if isinstance(messages, str) or not isinstance(messages, Iterable):
            normalized[str(field)] = [str(messages)]
        else:
            normalized[str(field)] = [str(m) for m in messages]
    return normalized


class ApiException(Exception):
    """
    Domain fault carrying an explicit HTTP status and structured detail.

    Attributes:
        message:                 Client-facing description
        status_code:             HTTP status written to the response
        errors:                  Optional field name → list of messages
                                 (a single string per field is accepted)
        reference_error_code:    Optional code the client can look up
        reference_document_link: Optional documentation URL
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        errors: Optional[Mapping[str, ErrorMessages]] = None,
        reference_error_code: Optional[str] = None,
        reference_document_link: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.errors = _normalize_errors(errors)
        self.reference_error_code = reference_error_code
        self.reference_document_link = reference_document_link
        super().__init__(self.message)


class ValidationError(ApiException):
    """
    Raised when client input fails business validation.

    Example:
        raise ValidationError(errors={"toAddress": ["Not a valid email"]})
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[Mapping[str, ErrorMessages]] = None,
        reference_error_code: Optional[str] = None,
        reference_document_link: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            status_code=400,
            errors=errors,
            reference_error_code=reference_error_code,
            reference_document_link=reference_document_link,
        )


class NotFoundError(ApiException):
    """Raised when a requested resource does not exist."""

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        reference_error_code: Optional[str] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        super().__init__(
            message=message,
            status_code=404,
            reference_error_code=reference_error_code,
        )
        self.resource = resource
        self.resource_id = resource_id


class UnauthorizedAccessError(PermissionError):
    """
    Raised when the caller may not perform the operation.

    The message is for server logs only; clients always see
    "Unauthorized Access".
    """
