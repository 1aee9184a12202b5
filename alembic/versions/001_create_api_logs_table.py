"""Create api_logs table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `api_logs` audit table written by the envelope middleware.
How:   Generic column types only, so the same revision runs on SQLite and
       PostgreSQL.

Rollback: downgrade() drops the table entirely (all audit history is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the api_logs table and its request_time index."""
    op.create_table(
        "api_logs",

        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            autoincrement=True,
            nullable=False,
        ),

        sa.Column(
            "request_time",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="When the request arrived (UTC)",
        ),

        sa.Column(
            "response_millis",
            sa.BigInteger(),
            nullable=False,
            comment="Wall-clock handling time in milliseconds",
        ),

        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("method", sa.String(16), nullable=False),
        sa.Column("path", sa.String(2048), nullable=False),
        sa.Column("query_string", sa.Text(), nullable=False),
        sa.Column("request_body", sa.Text(), nullable=False),
        sa.Column("response_body", sa.Text(), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=False),

        sa.Column(
            "user_id",
            sa.String(255),
            nullable=True,
            comment="Subject claim of the authenticated caller; NULL when anonymous",
        ),

        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(
        "idx_api_logs_request_time",
        "api_logs",
        [sa.text("request_time DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_api_logs_request_time", table_name="api_logs")
    op.drop_table("api_logs")
