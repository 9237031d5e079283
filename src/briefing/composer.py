"""Spoken narrative for the morning briefing."""

from __future__ import annotations

from collections.abc import Sequence

from src.tasks.models import Task, parse_due_date
from src.tasks.scheduling import DEFAULT_WINDOW_DAYS


def format_spoken_date(due_date: str) -> str:
    """Render ``YYYY-MM-DD`` as e.g. ``Saturday, Oct 17``.

    Unparseable input is returned unchanged.
    """
    parsed = parse_due_date(due_date)
    if parsed is None:
        return due_date
    return f"{parsed:%A, %b} {parsed.day}"


def _salutation(owner_name: str) -> str:
    return f"Good morning {owner_name}!" if owner_name else "Good morning!"


def compose_briefing(
    tasks: Sequence[Task],
    window_days: int = DEFAULT_WINDOW_DAYS,
    owner_name: str = "",
) -> str:
    """Build the briefing text for already-ordered due tasks."""
    greeting = _salutation(owner_name)
    if not tasks:
        return (
            f"{greeting} You have no tasks due in the next {window_days} days. "
            "Have a great day!"
        )

    count = len(tasks)
    parts = [
        f"{greeting} You have {count} task{'s' if count > 1 else ''} coming up "
        f"in the next {window_days} days. Here's your rundown."
    ]
    for position, task in enumerate(tasks, start=1):
        parts.append(
            f"Task {position}: {task.text}. Priority: {task.priority}. "
            f"Due: {format_spoken_date(task.due_date)}. Status: {task.status}."
        )
    parts.append("That's your lineup. Go crush it today!")
    return " ".join(parts)
