"""Add completed_at so on-time completion can be measured

Revision ID: 002
Revises: 001
Create Date: 2026-10-12

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import text

revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()

    # Check existing columns
    columns = {row[1] for row in conn.execute(text("PRAGMA table_info(todos)")).fetchall()}

    if "completed_at" not in columns:
        conn.execute(text("ALTER TABLE todos ADD COLUMN completed_at TEXT"))
        # Best guess for rows completed before the column existed
        conn.execute(text("UPDATE todos SET completed_at = updated_at WHERE is_completed = 1"))


def downgrade() -> None:
    # SQLite doesn't support DROP COLUMN easily; downgrade is a no-op
    pass
