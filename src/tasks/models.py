"""Data models for stored tasks and extracted drafts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

DEFAULT_STATUS = "Not Started"
COMPLETED_STATUSES = frozenset({"completed", "done"})


class Priority(StrEnum):
    """Task priority levels, ordered High -> Low."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def normalize(cls, value: object) -> Priority:
        """Map free-form text onto a priority; unknown values become Medium."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.MEDIUM


_RANKS = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def parse_due_date(value: str | None) -> date | None:
    """Parse a ``YYYY-MM-DD`` string, returning None when empty or malformed."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


@dataclass
class TaskDraft:
    """A task extracted from speech that the caller has not confirmed yet."""

    text: str
    priority: Priority = Priority.MEDIUM
    status: str = DEFAULT_STATUS
    due_date: str = ""


@dataclass
class Task:
    """A single task row read from the task store."""

    text: str
    priority: Priority = Priority.MEDIUM
    status: str = DEFAULT_STATUS
    due_date: str = ""  # YYYY-MM-DD, empty when no due date was set
    row_index: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.status.strip().lower() in COMPLETED_STATUSES

    @property
    def due(self) -> date | None:
        return parse_due_date(self.due_date)
