"""Pydantic request/response schemas for the Task Caller API."""

from __future__ import annotations

from pydantic import BaseModel

from src.tasks.models import Priority, Task, TaskDraft


class TaskResponse(BaseModel):
    """A stored task in API responses."""

    task: str
    priority: Priority
    status: str
    due_date: str
    row_index: int | None = None

    @classmethod
    def from_task(cls, task: Task | TaskDraft) -> TaskResponse:
        return cls(
            task=task.text,
            priority=task.priority,
            status=task.status,
            due_date=task.due_date,
            row_index=getattr(task, "row_index", None),
        )


class DueTasksResponse(BaseModel):
    """Response body for the /test/tasks endpoint."""

    count: int
    tasks: list[TaskResponse]


class MorningCallResponse(BaseModel):
    """Response body for the /test/morning-call endpoint."""

    status: str
    call_sid: str | None = None


class AddTaskRequest(BaseModel):
    """Request body for the /test/add-task endpoint."""

    text: str = ""


class AddTaskResponse(BaseModel):
    """Response body for the /test/add-task endpoint."""

    success: bool
    task: TaskResponse


class StatusResponse(BaseModel):
    """Response body for the / status endpoint."""

    status: str
    app: str
    endpoints: dict[str, str]
