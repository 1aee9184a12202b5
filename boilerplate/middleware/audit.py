"""
API Boilerplate - Audit Record Construction
============================================

What:  Pure helpers that decide whether a request is audited and shape the
       text that goes into the AuditRecord.
Who:   Called by APIResponseRequestLoggingMiddleware after the response has
       been flushed.

Truncation policy:
    Any text longer than 256 characters is replaced by
    "(Truncated to 200 chars) " followed by its first 200 characters.
    Applied to the request body, the query string, and the response body.

Response body extraction:
    When the serialized envelope contains the substring `"result":`, only the
    inner result value is stored (compact JSON; strings stored raw). This is
    a textual check, not a structural one: a nested `"result":` key (for
    example a validation error on a field named "result") also triggers it,
    in which case parsing finds no top-level result and the raw text is
    kept. Audit consumers rely on this exact behavior.
"""

import json
from datetime import datetime
from typing import Iterable, Optional

from boilerplate.schemas.audit import AuditRecord

TRUNCATE_THRESHOLD = 256
TRUNCATE_LENGTH = 200
TRUNCATION_PREFIX = f"(Truncated to {TRUNCATE_LENGTH} chars) "
RESULT_MARKER = '"result":'


def truncate(text: str) -> str:
    if len(text) > TRUNCATE_THRESHOLD:
        return f"{TRUNCATION_PREFIX}{text[:TRUNCATE_LENGTH]}"
    return text


def is_excluded(path: str, excluded_prefixes: Iterable[str]) -> bool:
    """Login and profile endpoints are never audited (credentials, PII)."""
    lowered = path.lower()
    return any(lowered.startswith(prefix.lower()) for prefix in excluded_prefixes)


def extract_result(response_body: str) -> str:
    if RESULT_MARKER not in response_body:
        return response_body
    try:
        result = json.loads(response_body).get("result")
    except (ValueError, AttributeError):
        return response_body
    if result is None:
        return response_body
    if isinstance(result, str):
        return result
    return json.dumps(result, separators=(",", ":"), ensure_ascii=False)


def format_query_string(raw: bytes) -> str:
    query = raw.decode("utf-8", errors="replace")
    return f"?{query}" if query else ""


def build_audit_record(
    *,
    request_time: datetime,
    duration_ms: int,
    status_code: int,
    method: str,
    path: str,
    query_string: str,
    request_body: str,
    response_body: str,
    remote_address: str,
    user_id: Optional[str],
) -> AuditRecord:
    return AuditRecord(
        request_time=request_time,
        duration_ms=max(0, duration_ms),
        status_code=status_code,
        method=method,
        path=path,
        query_string=truncate(query_string),
        request_body=truncate(request_body),
        response_body=truncate(extract_result(response_body)),
        remote_address=remote_address,
        user_id=user_id,
    )
