"""
API Boilerplate - Email Request Schema
=======================================

What:  Body accepted by POST /api/email/send.
Why:   The handler validates this itself (instead of letting FastAPI answer
       422) so it can reply with its own envelope message.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Shape check only; deliverability is the mail relay's problem
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class EmailDto(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to_address: str = Field(alias="toAddress", pattern=EMAIL_PATTERN, max_length=254)
    to_name: str = Field(alias="toName", min_length=1, max_length=200)
    subject: Optional[str] = Field(default=None, max_length=998)
    body: Optional[str] = None
    template_name: Optional[str] = Field(default=None, alias="templateName")
