"""
tasks/store.py -- SQLAlchemy-backed persistence layer for task records.

Uses SQLAlchemy Core (not ORM) so the Task dataclass in tasks/models.py
remains the authoritative domain representation.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore()
    task_id = store.create_task(Task(title="Write report", due_date="2030-01-01", priority=2))
    tasks = store.list_tasks()
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from core.db import make_engine
from core.config import get_settings
from tasks.models import Task

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_tasks = Table(
    "tasks",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(100), nullable=False),
    Column("due_date", String(10), nullable=False),
    Column("priority", Integer, nullable=False),
    Column("description", Text),
    Column("created_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskStore:
    """Repository for Task records."""

    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    def create_task(self, task: Task) -> int:
        """Insert a task and return its assigned ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.insert().values(
                    title=task.title,
                    due_date=task.due_date,
                    priority=task.priority,
                    description=task.description,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_task(self, task_id: int) -> Optional[Task]:
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def list_tasks(self) -> list[Task]:
        """Return all tasks, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_tasks.select().order_by(_tasks.c.id.desc())).fetchall()
        return [_row_to_task(r) for r in rows]

    def update_task(self, task_id: int, task: Task) -> bool:
        """Overwrite the editable fields of a task.

        Returns True if a row was updated, False if task_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.update()
                .where(_tasks.c.id == task_id)
                .values(
                    title=task.title,
                    due_date=task.due_date,
                    priority=task.priority,
                    description=task.description,
                )
            )
            conn.commit()
        return result.rowcount > 0

    def delete_task(self, task_id: int) -> bool:
        """Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.id == task_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        due_date=row.due_date,
        priority=row.priority,
        description=row.description,
        created_at=row.created_at,
    )
