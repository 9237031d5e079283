"""Diagnostic endpoints: inspect due tasks, trigger the briefing, add a task by text."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException

from src.api.models import (
    AddTaskRequest,
    AddTaskResponse,
    DueTasksResponse,
    MorningCallResponse,
    TaskResponse,
)
from src.briefing.caller import load_due_tasks, place_morning_call
from src.errors import (
    ExtractionParseError,
    ExtractionRejected,
    ExtractionServiceError,
    TelephonyError,
)
from src.extraction.extractor import extract_task
from src.tasks.scheduling import today_local
from src.tasks.storage import append_task

router = APIRouter()


@router.get("/test/tasks", response_model=DueTasksResponse)
async def due_tasks() -> DueTasksResponse:
    """List the tasks the next morning briefing would read out."""
    tasks = await asyncio.to_thread(load_due_tasks)
    return DueTasksResponse(
        count=len(tasks),
        tasks=[TaskResponse.from_task(t) for t in tasks],
    )


@router.post("/test/morning-call", response_model=MorningCallResponse)
async def morning_call() -> MorningCallResponse:
    """Place the morning briefing call now."""
    try:
        call_sid = await asyncio.to_thread(place_morning_call)
    except TelephonyError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    if call_sid is None:
        return MorningCallResponse(status="No tasks due, call skipped")
    return MorningCallResponse(status="Morning call triggered", call_sid=call_sid)


@router.post("/test/add-task", response_model=AddTaskResponse)
async def add_task(request: AddTaskRequest) -> AddTaskResponse:
    """Extract a task from free text and save it, bypassing the phone dialog."""
    text = request.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail='Provide "text" field')

    try:
        draft = await asyncio.to_thread(extract_task, text, today_local())
    except ExtractionRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExtractionParseError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ExtractionServiceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    success = await asyncio.to_thread(append_task, draft)
    return AddTaskResponse(success=success, task=TaskResponse.from_task(draft))
