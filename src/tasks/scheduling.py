"""Due-window filtering and ordering of tasks for the morning briefing."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from src.config import settings
from src.tasks.models import Task

DEFAULT_WINDOW_DAYS = 5


def today_local(timezone: str | None = None) -> date:
    """Return today's date in the configured briefing time zone."""
    return datetime.now(ZoneInfo(timezone or settings.morning_call_timezone)).date()


def compute_due_tasks(
    tasks: Iterable[Task],
    window_days: int = DEFAULT_WINDOW_DAYS,
    reference: date | datetime | None = None,
) -> list[Task]:
    """Select open tasks due within ``window_days`` of ``reference``.

    Completed tasks and tasks without a parseable due date are dropped.
    The result is ordered by priority (High first) and then by due date.

    Args:
        tasks: Tasks as read from the store.
        window_days: Length of the due window in days.
        reference: Start of the window. Datetimes are reduced to their
            calendar date; defaults to today in the briefing time zone.

    Returns:
        The due tasks, highest priority first. Empty when nothing is due.
    """
    if reference is None:
        start = today_local()
    elif isinstance(reference, datetime):
        start = reference.date()
    else:
        start = reference
    end = start + timedelta(days=window_days)

    due: list[tuple[Task, date]] = []
    for task in tasks:
        if task.is_completed:
            continue
        due_date = task.due
        if due_date is None or not start <= due_date <= end:
            continue
        due.append((task, due_date))

    due.sort(key=lambda pair: (pair[0].priority.rank, pair[1]))
    return [task for task, _ in due]
