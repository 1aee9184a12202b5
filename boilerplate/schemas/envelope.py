"""
API Boilerplate - Response Envelope Schemas
============================================

What:  The uniform JSON wrapper every /api response is normalized into.
Who:   Built by the envelope middleware; returned directly by route handlers
       that want to choose their own message (e.g. POST /api/email/send).

Wire format (compact JSON, key order fixed, null optionals omitted):
    {
        "version": "0.1.9",
        "statusCode": 404,
        "message": "Exception",
        "responseException": {
            "message": "not found",
            "validationErrors": {"field": ["msg"]},
            "referenceErrorCode": "X1",
            "referenceDocumentLink": "https://..."
        },
        "result": ...
    }

Existing clients parse this byte-for-byte, so serialization goes through
`APIResponse.to_json()` rather than Pydantic's own JSON dump (which would
emit `null` for absent optionals).
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from boilerplate import __version__

SUCCESS_MESSAGE = "Success"
FAILURE_MESSAGE = "Failure"
EXCEPTION_MESSAGE = "Exception"


class ApiError(BaseModel):
    """Structured error carried in `responseException`."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    validation_errors: Optional[Dict[str, List[str]]] = Field(
        default=None, alias="validationErrors"
    )
    reference_error_code: Optional[str] = Field(default=None, alias="referenceErrorCode")
    reference_document_link: Optional[str] = Field(
        default=None, alias="referenceDocumentLink"
    )
    # Traceback text; only filled outside production
    details: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class APIResponse(BaseModel):
    """
    The response envelope.

    `status_code` always mirrors the HTTP status the middleware writes,
    even when a handler built the envelope itself.
    """

    model_config = ConfigDict(populate_by_name=True)

    version: str = __version__
    status_code: int = Field(alias="statusCode")
    message: str = ""
    response_exception: Optional[ApiError] = Field(default=None, alias="responseException")
    result: Any = None

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "version": self.version,
            "statusCode": self.status_code,
            "message": self.message,
        }
        if self.response_exception is not None:
            data["responseException"] = self.response_exception.to_wire()
        if self.result is not None:
            data["result"] = self.result
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), separators=(",", ":"), ensure_ascii=False)
