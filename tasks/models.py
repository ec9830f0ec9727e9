"""
tasks/models.py -- Domain dataclass for task records.

Pure data container with zero logic. Validation lives in api/models.py,
persistence in tasks/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Task:
    """A single to-do item.

    id is None before the record is written to the database.
    """

    title: str
    due_date: str  # YYYY-MM-DD
    priority: int  # 1 (highest) .. 5
    description: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
