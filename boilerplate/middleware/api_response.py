"""
API Boilerplate - Response Envelope & Audit Middleware
=======================================================

What:  Wraps every /api response in the uniform JSON envelope and records one
       audit entry per call.
How:   Pure ASGI middleware. The request body is read up front and replayed
       to the inner app; the inner app's `send` is replaced by an in-memory
       buffer so the response can be inspected and rewritten before anything
       reaches the client.
Who:   Registered in main.create_app() as the innermost user middleware, so
       GZip and CORS see the rewritten body.

Request flow:
    request ─▶ buffer body ─▶ inner app (send → BytesIO) ─▶ Outcome
            ─▶ normalize() ─▶ write envelope to real send ─▶ audit record

Bypassed entirely (passed through untouched):
    - non-HTTP scopes (websocket, lifespan)
    - paths outside the API prefix (default /api)
    - documentation paths: /swagger/... and /api/swagger/...

Concurrency:
    One instance serves every request. It holds only configuration; all
    per-request state (buffers, timings, the response writer) is local to
    __call__. Cancellation is never caught: only `Exception` is handled.
"""

import io
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from boilerplate.config import Settings, settings
from boilerplate.exceptions import ApiException
from boilerplate.middleware.audit import build_audit_record, format_query_string, is_excluded
from boilerplate.middleware.outcome import Headers, Outcome, OutcomeKind, normalize, wrap_fault
from boilerplate.services.api_log_service import ApiLogService
from boilerplate.services.identity import get_subject_claim

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = b"application/json"
_REWRITTEN_HEADERS = {b"content-length", b"content-type"}


def _matches_segment(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


async def _buffer_request_body(receive: Receive) -> Tuple[bytes, Receive]:
    """
    Drain the request body and return it with a receive callable that
    replays it once, then defers to the real receive (disconnect events).
    """
    chunks: List[bytes] = []
    disconnect: Optional[Message] = None
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] != "http.request":
            disconnect = message
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)

    body = b"".join(chunks)
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if disconnect is not None:
            return disconnect
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return body, replay


class _ResponseWriter:
    """Per-request wrapper around the real `send` that remembers if it started."""

    def __init__(self, send: Send):
        self._send = send
        self.started = False

    async def write(self, status_code: int, headers: Headers, body: bytes) -> None:
        raw_headers = [
            (name, value) for name, value in headers
            if name.lower() not in _REWRITTEN_HEADERS
        ]
        raw_headers.append((b"content-type", JSON_CONTENT_TYPE))
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

        self.started = True
        await self._send({"type": "http.response.start", "status": status_code, "headers": raw_headers})
        await self._send({"type": "http.response.body", "body": body, "more_body": False})


class APIResponseRequestLoggingMiddleware:
    """
    Envelope + audit middleware.

    Args:
        app:             The inner ASGI application
        api_log_service: Audit writer; None disables audit records
        config:          Settings to read prefixes, deny-list and flags from
    """

    def __init__(
        self,
        app: ASGIApp,
        api_log_service: Optional[ApiLogService] = None,
        config: Settings = settings,
    ) -> None:
        self.app = app
        self.api_log_service = api_log_service
        self.config = config

    def is_api_request(self, path: str) -> bool:
        lowered = path.lower()
        api_prefix = self.config.api_prefix.lower()
        docs_prefix = self.config.documentation_prefix.lower()
        if not _matches_segment(lowered, api_prefix):
            return False
        if _matches_segment(lowered, docs_prefix):
            return False
        return not _matches_segment(lowered[len(api_prefix):], docs_prefix)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.is_api_request(scope["path"]):
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request_time = datetime.now(timezone.utc)
        production = self.config.is_production

        request_body, replay_receive = await _buffer_request_body(receive)
        writer = _ResponseWriter(send)

        try:
            outcome = await self._invoke(scope, replay_receive)
            if outcome.kind is OutcomeKind.FAULT:
                self._log_fault(scope, outcome.error)

            envelope = normalize(outcome, production)
            payload = envelope.to_json()
            status_code = envelope.status_code
            await writer.write(status_code, outcome.headers, payload.encode("utf-8"))
        except Exception as exc:
            # Bytes already on the wire cannot be replaced by an envelope
            if writer.started:
                logger.warning(
                    "A middleware exception occurred, but the response has already started: %s %s",
                    scope["method"],
                    scope["path"],
                )
                raise
            self._log_fault(scope, exc)
            envelope = wrap_fault(exc, production)
            payload = envelope.to_json()
            status_code = envelope.status_code
            await writer.write(status_code, [], payload.encode("utf-8"))

        if self.config.enable_api_logging and self.api_log_service is not None:
            await self._safe_log(
                scope,
                request_time=request_time,
                duration_ms=int((time.perf_counter() - start_time) * 1000),
                status_code=status_code,
                request_body=request_body,
                response_body=payload,
            )

    async def _invoke(self, scope: Scope, receive: Receive) -> Outcome:
        """Run the inner app against an in-memory response buffer."""
        start_message: Optional[Message] = None

        with io.BytesIO() as response_buffer:

            async def buffered_send(message: Message) -> None:
                nonlocal start_message
                if message["type"] == "http.response.start":
                    start_message = message
                elif message["type"] == "http.response.body":
                    response_buffer.write(message.get("body", b""))

            try:
                await self.app(scope, receive, buffered_send)
            except Exception as exc:
                return Outcome.from_fault(exc)

            if start_message is None:
                return Outcome.from_fault(RuntimeError("No response returned."))

            headers = [(bytes(name), bytes(value)) for name, value in start_message.get("headers", [])]
            return Outcome.from_response(start_message["status"], response_buffer.getvalue(), headers)

    def _log_fault(self, scope: Scope, error: Exception) -> None:
        if isinstance(error, ApiException):
            logger.warning(
                "API exception on %s %s: %d %s",
                scope["method"],
                scope["path"],
                error.status_code,
                error.message,
            )
        else:
            logger.error(
                "Unhandled exception on %s %s: %s",
                scope["method"],
                scope["path"],
                error,
                exc_info=error,
            )

    async def _safe_log(
        self,
        scope: Scope,
        *,
        request_time: datetime,
        duration_ms: int,
        status_code: int,
        request_body: bytes,
        response_body: str,
    ) -> None:
        """Build and store the audit record. Never raises."""
        path = scope["path"]
        if is_excluded(path, self.config.api_log_excluded_paths):
            return

        try:
            client = scope.get("client")
            record = build_audit_record(
                request_time=request_time,
                duration_ms=duration_ms,
                status_code=status_code,
                method=scope["method"],
                path=path,
                query_string=format_query_string(scope.get("query_string", b"")),
                request_body=request_body.decode("utf-8", errors="replace"),
                response_body=response_body,
                remote_address=client[0] if client else "unknown",
                user_id=get_subject_claim(scope),
            )
            await self.api_log_service.log(record)
        except Exception:
            logger.warning(
                "Failed to store API log for %s %s",
                scope["method"],
                path,
                exc_info=True,
            )
