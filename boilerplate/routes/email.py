"""
API Boilerplate - Email Route
==============================

What:  POST /api/email/send: validates an email request and applies the
       Test template. Delivery (SMTP) is not part of this service; the
       outgoing message is logged.
How:   The handler validates the body itself and answers with its own
       envelope ("User Model is Invalid") instead of FastAPI's 422.
       The envelope middleware keeps that message and only corrects the
       statusCode to the HTTP status actually written.

Every message sent through the API uses the "Test" template regardless of
what the client asked for, so the endpoint cannot be used to relay
arbitrary content.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body
from pydantic import ValidationError as PydanticValidationError

from boilerplate.schemas.email import EmailDto
from boilerplate.schemas.envelope import APIResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email", tags=["Email"])

TEST_TEMPLATE = "Test"
TEST_SUBJECT = "Boilerplate test email"
TEST_BODY = "This is a test email sent from the API Boilerplate."


def build_test_email(parameters: EmailDto) -> EmailDto:
    return parameters.model_copy(
        update={"template_name": TEST_TEMPLATE, "subject": TEST_SUBJECT, "body": TEST_BODY}
    )


@router.post("/send", summary="Send an email using the Test template")
async def send(payload: Dict[str, Any] = Body(...)) -> APIResponse:
    try:
        parameters = EmailDto.model_validate(payload)
    except PydanticValidationError:
        return APIResponse(status_code=400, message="User Model is Invalid")

    email = build_test_email(parameters)
    logger.info("Test Email: %s -> %s", email.subject, email.to_address)

    return APIResponse(status_code=200, message="Email Successfully Sent")
