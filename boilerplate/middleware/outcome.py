"""
API Boilerplate - Outcome Normalization
========================================

What:  Pure functions that turn the result of the inner ASGI app into the
       response envelope and the HTTP status to write.
Who:   Called by APIResponseRequestLoggingMiddleware once per API request.

The inner call boundary never raises; it returns an `Outcome` tagged with
one of three kinds, and `normalize()` maps each kind deterministically:

    SUCCESS      status == 200            → reuse or wrap the JSON body
    NOT_SUCCESS  any other status         → canned message, "Failure"
    FAULT        exception escaped        → classified error, "Exception"

Envelope detection heuristic (SUCCESS only):
    A JSON object counts as an envelope when it validates against
    APIResponse (a missing statusCode defaults to 0) AND has a non-null
    `result` or a non-empty `message`. Any handler payload that happens to
    carry a non-empty string `message` is therefore taken as an envelope and
    its other keys are dropped; tests pin this behavior down.
"""

import enum
import json
import traceback
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from boilerplate.exceptions import ApiException
from boilerplate.schemas.envelope import (
    EXCEPTION_MESSAGE,
    FAILURE_MESSAGE,
    SUCCESS_MESSAGE,
    ApiError,
    APIResponse,
)

NOT_FOUND_MESSAGE = "The specified URI does not exist. Please verify and try again."
NO_CONTENT_MESSAGE = "The specified URI does not contain any content."
CANNOT_PROCESS_MESSAGE = "Your request cannot be processed. Please contact a support."
UNAUTHORIZED_MESSAGE = "Unauthorized Access"
UNHANDLED_MESSAGE = "An unhandled error occurred."

Headers = List[Tuple[bytes, bytes]]


class OutcomeKind(enum.Enum):
    SUCCESS = "success"
    NOT_SUCCESS = "not_success"
    FAULT = "fault"


@dataclass(frozen=True)
class Outcome:
    """What the inner app produced for one request."""

    kind: OutcomeKind
    status_code: int = 0
    body: bytes = b""
    headers: Headers = field(default_factory=list)
    error: Optional[Exception] = None

    @classmethod
    def from_response(cls, status_code: int, body: bytes, headers: Headers) -> "Outcome":
        kind = OutcomeKind.SUCCESS if status_code == 200 else OutcomeKind.NOT_SUCCESS
        return cls(kind=kind, status_code=status_code, body=body, headers=headers)

    @classmethod
    def from_fault(cls, error: Exception) -> "Outcome":
        return cls(kind=OutcomeKind.FAULT, error=error)


# ══════════════════════════════════════════════════════════════════════════
# SUCCESS
# ══════════════════════════════════════════════════════════════════════════

def as_envelope(body: Any) -> Optional[APIResponse]:
    """Return `body` as an APIResponse if it already looks like one."""
    if not isinstance(body, dict):
        return None
    try:
        candidate = APIResponse.model_validate({"statusCode": 0, **body})
    except PydanticValidationError:
        return None
    if candidate.result is None and not candidate.message:
        return None
    return candidate


def wrap_success(body: bytes, status_code: int = 200) -> APIResponse:
    try:
        parsed = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return APIResponse(status_code=status_code)

    envelope = as_envelope(parsed)
    if envelope is None:
        return APIResponse(status_code=status_code, message=SUCCESS_MESSAGE, result=parsed)

    if envelope.status_code != status_code:
        envelope = envelope.model_copy(update={"status_code": status_code})
    return envelope


# ══════════════════════════════════════════════════════════════════════════
# NOT_SUCCESS
# ══════════════════════════════════════════════════════════════════════════

def not_success_message(status_code: int) -> str:
    if status_code == 404:
        return NOT_FOUND_MESSAGE
    if status_code == 204:
        return NO_CONTENT_MESSAGE
    return CANNOT_PROCESS_MESSAGE


def wrap_not_success(status_code: int) -> APIResponse:
    return APIResponse(
        status_code=status_code,
        message=FAILURE_MESSAGE,
        response_exception=ApiError(message=not_success_message(status_code)),
    )


# ══════════════════════════════════════════════════════════════════════════
# FAULT
# ══════════════════════════════════════════════════════════════════════════

def _root_cause(error: BaseException) -> BaseException:
    seen = {id(error)}
    while error.__cause__ is not None and id(error.__cause__) not in seen:
        error = error.__cause__
        seen.add(id(error))
    return error


def describe_fault(error: Exception, production: bool) -> Tuple[int, ApiError]:
    """Classify a fault into the HTTP status and error body the client sees."""
    if isinstance(error, ApiException):
        return error.status_code, ApiError(
            message=error.message,
            validation_errors=error.errors,
            reference_error_code=error.reference_error_code,
            reference_document_link=error.reference_document_link,
        )

    if isinstance(error, PermissionError):
        return 401, ApiError(message=UNAUTHORIZED_MESSAGE)

    if production:
        return 500, ApiError(message=UNHANDLED_MESSAGE)

    root = _root_cause(error)
    return 500, ApiError(
        message=str(root) or type(root).__name__,
        details="".join(traceback.format_exception(type(error), error, error.__traceback__)),
    )


def wrap_fault(error: Exception, production: bool) -> APIResponse:
    status_code, api_error = describe_fault(error, production)
    return APIResponse(
        status_code=status_code,
        message=EXCEPTION_MESSAGE,
        response_exception=api_error,
    )


def normalize(outcome: Outcome, production: bool) -> APIResponse:
    """Map a tagged outcome to its envelope; `status_code` is the status to write."""
    if outcome.kind is OutcomeKind.FAULT:
        return wrap_fault(outcome.error, production)
    if outcome.kind is OutcomeKind.SUCCESS:
        return wrap_success(outcome.body, outcome.status_code)
    return wrap_not_success(outcome.status_code)
