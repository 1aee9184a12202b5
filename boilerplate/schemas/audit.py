"""
API Boilerplate - Audit Record
===============================

What:  One immutable description of a single /api call.
Who:   Built by the envelope middleware, handed to the audit writer
       (ApiLogService), which stores it as an ApiLogItem row.

Text fields arrive already truncated (see middleware/audit.py); the record
itself performs no validation.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AuditRecord:
    request_time: datetime
    duration_ms: int
    status_code: int
    method: str
    path: str
    query_string: str
    request_body: str
    response_body: str
    remote_address: str
    user_id: Optional[str] = None
