"""
API Boilerplate - ApiLogItem SQLAlchemy Model
==============================================

What:  ORM model representing the `api_logs` table.
How:   Inherits from DeclarativeBase; Alembic reads this for migrations.
Who:   Written by ApiLogService, one row per audited /api request.

Table Design Rationale:
    - Integer autoincrement key: rows are append-only and only ever listed
      in insertion order; no need for globally unique ids
    - Generic SQLAlchemy types: the same model runs on PostgreSQL and SQLite
    - request_body / response_body are TEXT even though the middleware
      truncates them, so the truncation policy can change without a migration
    - user_id is a string: it stores the identity provider's subject claim
      verbatim, whatever its format

    Index on request_time: audit reports are always time-ranged.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from boilerplate.database import Base
from boilerplate.schemas.audit import AuditRecord


class ApiLogItem(Base):
    """
    Persisted audit entry. Rows are never updated after insert.
    """

    __tablename__ = "api_logs"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    request_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When the request arrived (UTC)",
    )

    response_millis: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Wall-clock handling time in milliseconds",
    )

    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    path: Mapped[str] = mapped_column(String(2048), nullable=False)
    query_string: Mapped[str] = mapped_column(Text, nullable=False, default="")
    request_body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    response_body: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # IPv6 textual form is at most 45 characters
    ip_address: Mapped[str] = mapped_column(String(45), nullable=False, default="")

    user_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
        comment="Subject claim of the authenticated caller; NULL when anonymous",
    )

    __table_args__ = (
        Index("idx_api_logs_request_time", request_time.desc()),
    )

    @classmethod
    def from_record(cls, record: AuditRecord) -> "ApiLogItem":
        return cls(
            request_time=record.request_time,
            response_millis=record.duration_ms,
            status_code=record.status_code,
            method=record.method,
            path=record.path,
            query_string=record.query_string,
            request_body=record.request_body,
            response_body=record.response_body,
            ip_address=record.remote_address,
            user_id=record.user_id,
        )

    def __repr__(self) -> str:
        return (
            f"<ApiLogItem(id={self.id}, method='{self.method}', path='{self.path}', "
            f"status_code={self.status_code})>"
        )
