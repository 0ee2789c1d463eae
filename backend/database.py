import sqlite3
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

import config
from models import Category, Todo, TodoFilters

DATABASE_PATH = config.DATABASE_PATH

TODO_COLUMNS = """
    t.id, t.user_id, t.title, t.description, t.due_date, t.priority,
    t.category_id, t.is_completed, t.completed_at, t.created_at, t.updated_at,
    c.name AS category_name
"""

# Higher rank = more important, so "desc" lists high priority first
PRIORITY_RANK_SQL = "CASE t.priority WHEN 'high' THEN 3 WHEN 'medium' THEN 2 WHEN 'low' THEN 1 ELSE 0 END"

SORT_COLUMNS = {
    "priority": PRIORITY_RANK_SQL,
    "due_date": "t.due_date",
    "created_at": "t.created_at",
}


@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db():
    """Initialize database by running Alembic migrations against DATABASE_PATH."""
    import subprocess
    import os

    backend_dir = os.path.dirname(os.path.abspath(__file__))
    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=backend_dir,
        env={**os.environ, "DATABASE_PATH": DATABASE_PATH},
        check=True
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_db_timestamp(moment: Optional[datetime]) -> Optional[str]:
    """Store timestamps as UTC ISO strings so they sort lexically.
    Naive values are taken to be in the configured local timezone."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=config.LOCAL_TIMEZONE)
    return moment.astimezone(timezone.utc).isoformat()


def _row_to_todo(row) -> Todo:
    """Convert a joined todos/categories row to a Todo model."""
    category = None
    if row["category_id"] is not None and row["category_name"] is not None:
        category = Category(id=row["category_id"], name=row["category_name"])
    return Todo(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"],
        due_date=row["due_date"],
        priority=row["priority"],
        category_id=row["category_id"],
        category=category,
        is_completed=bool(row["is_completed"]),
        completed_at=row["completed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def get_categories() -> list[Category]:
    with get_db() as conn:
        rows = conn.execute("SELECT id, name FROM categories ORDER BY id").fetchall()
        return [Category(id=row["id"], name=row["name"]) for row in rows]


def get_category(category_id: int) -> Optional[Category]:
    with get_db() as conn:
        row = conn.execute("SELECT id, name FROM categories WHERE id = ?", (category_id,)).fetchone()
        return Category(id=row["id"], name=row["name"]) if row else None


def get_todos_for_user(
    user_id: str,
    filters: Optional[TodoFilters] = None,
    sort_key: str = "created_at",
    direction: str = "desc",
) -> list[Todo]:
    """
    List the user's todos, newest first by default.

    Args:
        user_id: Owner whose todos are returned; other users' rows are never visible
        filters: Optional title search / priority / category / completion filters
        sort_key: One of priority, due_date, created_at
        direction: asc or desc
    """
    filters = filters or TodoFilters()
    clauses = ["t.user_id = ?"]
    params: list = [user_id]

    if filters.search:
        clauses.append("t.title LIKE ?")
        params.append(f"%{filters.search}%")
    if filters.is_completed is not None:
        clauses.append("t.is_completed = ?")
        params.append(int(filters.is_completed))
    if filters.priority:
        clauses.append("t.priority = ?")
        params.append(filters.priority)
    if filters.category_id:
        clauses.append("t.category_id = ?")
        params.append(filters.category_id)

    order_column = SORT_COLUMNS.get(sort_key, SORT_COLUMNS["created_at"])
    order = "ASC" if direction == "asc" else "DESC"

    with get_db() as conn:
        rows = conn.execute(
            f"""SELECT {TODO_COLUMNS}
                FROM todos t LEFT JOIN categories c ON c.id = t.category_id
                WHERE {' AND '.join(clauses)}
                ORDER BY {order_column} {order}, t.created_at DESC""",
            params
        ).fetchall()
        return [_row_to_todo(row) for row in rows]


def get_todo_db(todo_id: str, user_id: str) -> Optional[Todo]:
    with get_db() as conn:
        row = conn.execute(
            f"""SELECT {TODO_COLUMNS}
                FROM todos t LEFT JOIN categories c ON c.id = t.category_id
                WHERE t.id = ? AND t.user_id = ?""",
            (todo_id, user_id)
        ).fetchone()
        return _row_to_todo(row) if row else None


def create_todo_db(
    todo_id: str,
    user_id: str,
    title: str,
    description: Optional[str] = None,
    due_date: Optional[datetime] = None,
    priority: str = "medium",
    category_id: Optional[int] = None,
    is_completed: bool = False,
) -> Todo:
    """Create a todo owned by user_id. completed_at is stamped when created completed."""
    now = _now()
    completed_at = now if is_completed else None

    with get_db() as conn:
        conn.execute(
            """INSERT INTO todos
               (id, user_id, title, description, due_date, priority, category_id,
                is_completed, completed_at, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (todo_id, user_id, title, description, to_db_timestamp(due_date), priority,
             category_id, int(is_completed), completed_at, now, now)
        )
        conn.commit()

    return get_todo_db(todo_id, user_id)


def update_todo_db(todo_id: str, user_id: str, **updates) -> Optional[Todo]:
    """
    Update the user's todo with any fields provided.
    Only updates fields that differ from current values.
    Toggling is_completed keeps completed_at in step with it.

    Args:
        todo_id: Todo ID to update
        user_id: Owner; a todo belonging to someone else is treated as missing
        **updates: title, description, due_date, priority, category_id, is_completed
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM todos WHERE id = ? AND user_id = ?", (todo_id, user_id)
        ).fetchone()
        if not row:
            return None

        keys = row.keys()
        changes = {}
        for field, new_value in updates.items():
            if field not in keys or field in ("id", "user_id", "completed_at", "created_at", "updated_at"):
                continue
            if isinstance(new_value, datetime):
                new_value = to_db_timestamp(new_value)
            elif isinstance(new_value, bool):
                new_value = int(new_value)
            if new_value != row[field]:
                changes[field] = new_value

        if "is_completed" in changes:
            changes["completed_at"] = _now() if changes["is_completed"] else None

        if changes:
            changes["updated_at"] = _now()
            set_clause = ", ".join(f"{field} = ?" for field in changes.keys())
            values = list(changes.values()) + [todo_id, user_id]
            conn.execute(f"UPDATE todos SET {set_clause} WHERE id = ? AND user_id = ?", values)
            conn.commit()

    return get_todo_db(todo_id, user_id)


def delete_todo_db(todo_id: str, user_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM todos WHERE id = ? AND user_id = ?", (todo_id, user_id))
        conn.commit()
        return cursor.rowcount > 0
