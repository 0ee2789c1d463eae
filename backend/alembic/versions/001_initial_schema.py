"""Initial schema - categories reference data and todos

Revision ID: 001
Revises: None
Create Date: 2026-10-05

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy import text

revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = ("업무", "개인", "건강", "학습")


def upgrade() -> None:
    conn = op.get_bind()

    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL UNIQUE
        )
    """))

    # Seed the fixed category set; ids follow the canonical order
    for category_id, name in enumerate(CATEGORIES, start=1):
        conn.execute(
            text("INSERT OR IGNORE INTO categories (id, name) VALUES (:id, :name)"),
            {"id": category_id, "name": name}
        )

    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS todos (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            due_date TEXT,
            priority TEXT NOT NULL DEFAULT 'medium',
            category_id INTEGER REFERENCES categories(id),
            is_completed INTEGER DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """))
    conn.execute(text("CREATE INDEX IF NOT EXISTS ix_todos_user_id ON todos (user_id)"))


def downgrade() -> None:
    conn = op.get_bind()
    conn.execute(text("DROP INDEX IF EXISTS ix_todos_user_id"))
    conn.execute(text("DROP TABLE IF EXISTS todos"))
    conn.execute(text("DROP TABLE IF EXISTS categories"))
