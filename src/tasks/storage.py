"""Supabase storage helpers for the task table."""

from __future__ import annotations

import logging
from typing import Any, cast

from supabase import Client, create_client

from src.config import settings
from src.errors import StoreAccessError
from src.tasks.models import DEFAULT_STATUS, Priority, Task, TaskDraft

logger = logging.getLogger(__name__)

# Row 1 of the task sheet layout is the header, so data rows start at 2.
FIRST_DATA_ROW = 2

TASK_COLUMNS = "task,priority,status,due_date"


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def row_to_task(row: dict[str, Any], row_index: int) -> Task:
    """Build a Task from a stored row, defaulting missing or null columns."""
    return Task(
        text=str(row.get("task") or ""),
        priority=Priority.normalize(row.get("priority")),
        status=str(row.get("status") or DEFAULT_STATUS),
        due_date=str(row.get("due_date") or ""),
        row_index=row_index,
    )


def fetch_task_rows(client: Client | None = None) -> list[dict[str, Any]]:
    """Read every task row in insertion order.

    Raises:
        StoreAccessError: The store could not be read.
    """
    try:
        client = client or get_supabase_client()
        result = (
            client.table(settings.tasks_table).select(TASK_COLUMNS).order("id").execute()
        )
    except Exception as exc:
        raise StoreAccessError(f"Could not read tasks: {exc}") from exc
    # Supabase .data is typed as JSON (broad union); cast to concrete type.
    return cast(list[dict[str, Any]], result.data or [])


def insert_task_row(draft: TaskDraft, client: Client | None = None) -> None:
    """Append one task row.

    Raises:
        StoreAccessError: The store rejected the write.
    """
    try:
        client = client or get_supabase_client()
        client.table(settings.tasks_table).insert(
            {
                "task": draft.text,
                "priority": str(draft.priority),
                "status": draft.status,
                "due_date": draft.due_date,
            }
        ).execute()
    except Exception as exc:
        raise StoreAccessError(f"Could not add task: {exc}") from exc


def list_tasks(client: Client | None = None) -> list[Task]:
    """Return all tasks, or an empty list when the store is unreachable."""
    try:
        rows = fetch_task_rows(client)
    except StoreAccessError:
        logger.exception("Error reading tasks")
        return []
    return [row_to_task(row, index + FIRST_DATA_ROW) for index, row in enumerate(rows)]


def append_task(draft: TaskDraft, client: Client | None = None) -> bool:
    """Append a confirmed draft to the store. Returns False on failure."""
    try:
        insert_task_row(draft, client)
    except StoreAccessError:
        logger.exception("Error adding task %r", draft.text)
        return False
    logger.info(
        "Task added: %r | %s | %s | %s",
        draft.text,
        draft.priority,
        draft.status,
        draft.due_date,
    )
    return True
