"""
API Boilerplate - Audit Log Writer
===================================

What:  Persists AuditRecords produced by the envelope middleware.
How:   Converts the record into an ApiLogItem row and commits it in its own
       session, retrying transient database errors with tenacity.
Who:   Injected into APIResponseRequestLoggingMiddleware at app construction.
When:  After each audited response has been flushed to the client.

Failure policy:
    Transient OperationalErrors (locked SQLite file, dropped PostgreSQL
    connection) are retried with exponential backoff + jitter. Anything left
    after the last attempt is raised to the caller; the middleware logs it
    and moves on, so a broken audit store never changes what the client sees.
"""

import logging
from typing import Callable

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from boilerplate.config import Settings, settings
from boilerplate.database import async_session_factory
from boilerplate.models.api_log import ApiLogItem
from boilerplate.schemas.audit import AuditRecord

logger = logging.getLogger(__name__)


class ApiLogService:
    """
    Audit writer backed by the application database.

    Stateless apart from the session factory and its settings, so one
    instance is shared by all concurrent requests.

    Args:
        session_factory: Callable returning an async session context manager
        config:          Settings to read the retry policy from
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = async_session_factory,
        config: Settings = settings,
    ):
        self._session_factory = session_factory
        self.config = config

    def _retrying(self) -> AsyncRetrying:
        # wait = min(max_wait, min_wait * 2^attempt) + random(0, min_wait)
        return AsyncRetrying(
            retry=retry_if_exception_type(OperationalError),
            stop=stop_after_attempt(self.config.api_log_retry_attempts),
            wait=wait_exponential(
                multiplier=self.config.api_log_retry_min_wait,
                max=self.config.api_log_retry_max_wait,
            )
            + wait_random(0, self.config.api_log_retry_min_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def log(self, record: AuditRecord) -> None:
        """Store one audit record. Raises if every attempt fails."""
        async for attempt in self._retrying():
            with attempt:
                await self._persist(record)
        logger.debug(
            "Audit record stored: %s %s %d",
            record.method,
            record.path,
            record.status_code,
        )

    async def _persist(self, record: AuditRecord) -> None:
        async with self._session_factory() as session:
            try:
                session.add(ApiLogItem.from_record(record))
                await session.commit()
            except Exception:
                await session.rollback()
                raise
