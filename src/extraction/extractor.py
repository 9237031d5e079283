"""Claude-powered extraction of a single task from a spoken transcript."""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Any

from anthropic import Anthropic, APIError
from anthropic.types import TextBlock

from src.config import settings
from src.errors import ExtractionParseError, ExtractionRejected, ExtractionServiceError
from src.tasks.models import DEFAULT_STATUS, Priority, TaskDraft, parse_due_date
from src.tasks.scheduling import today_local

logger = logging.getLogger(__name__)

# Due date used when the caller did not mention one.
DEFAULT_DUE_DAYS = 7

SYSTEM_PROMPT = (
    "You are a task extraction assistant. Extract task details from the "
    "user's spoken input.\n"
    "Today's date is {today}.\n\n"
    "Return ONLY valid JSON with these fields:\n"
    "- task: string (the task description)\n"
    '- priority: "High" | "Medium" | "Low" (default Medium if not mentioned)\n'
    '- status: "Not Started" (always default to this)\n'
    "- dueDate: string in YYYY-MM-DD format (interpret relative dates like "
    '"next Wednesday", "tomorrow", "in 3 days" etc.)\n\n'
    "If you cannot determine a due date, use {default_days} days from today.\n"
    "If the input doesn't seem like a task, return: "
    '{{"error": "Could not understand task"}}'
)

_decoder = json.JSONDecoder()


def find_json_object(text: str) -> dict[str, Any] | None:
    """Return the first well-formed JSON object embedded in ``text``.

    Replies are often wrapped in markdown fences or a sentence of chatter,
    so every ``{`` is tried as a starting point.
    """
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(value, dict):
                return value
        start = text.find("{", start + 1)
    return None


def parse_task_reply(text: str, today: date) -> TaskDraft:
    """Turn the raw extraction reply into a TaskDraft.

    Raises:
        ExtractionParseError: No JSON object, or the object has no task text.
        ExtractionRejected: The reply carries the service's ``error`` signal.
    """
    data = find_json_object(text)
    if data is None:
        raise ExtractionParseError("Could not parse AI response")

    if data.get("error"):
        raise ExtractionRejected(str(data["error"]))

    task_text = str(data.get("task") or "").strip()
    if not task_text:
        raise ExtractionParseError("AI response has no task text")

    due_date = str(data.get("dueDate") or "").strip()
    if parse_due_date(due_date) is None:
        if due_date:
            logger.warning("Ignoring malformed due date %r", due_date)
        due_date = (today + timedelta(days=DEFAULT_DUE_DAYS)).isoformat()

    return TaskDraft(
        text=task_text,
        priority=Priority.normalize(data.get("priority")),
        status=str(data.get("status") or DEFAULT_STATUS),
        due_date=due_date,
    )


def extract_task(transcript: str, today: date | None = None) -> TaskDraft:
    """Extract a task draft from a caller's transcript using Claude.

    Args:
        transcript: What the caller said.
        today: Date relative expressions are resolved against. Defaults to
            today in the briefing time zone.

    Returns:
        The extracted TaskDraft.

    Raises:
        ExtractionServiceError: Claude could not be reached or replied
            without a text block.
        ExtractionParseError: The reply held no usable task JSON.
        ExtractionRejected: Claude judged the transcript not to be a task.
    """
    today = today or today_local()
    client = Anthropic(api_key=settings.anthropic_api_key)

    try:
        response = client.messages.create(
            model=settings.llm_model,
            max_tokens=500,
            system=SYSTEM_PROMPT.format(today=today.isoformat(), default_days=DEFAULT_DUE_DAYS),
            messages=[
                {
                    "role": "user",
                    "content": f'Extract the task from this spoken input: "{transcript}"',
                }
            ],
        )
    except APIError as exc:
        raise ExtractionServiceError(f"LLM unavailable: {exc}") from exc

    # We always request plain text so the first block should be TextBlock.
    block = response.content[0] if response.content else None
    if not isinstance(block, TextBlock):
        raise ExtractionServiceError(
            f"Expected TextBlock from Claude, got {type(block).__name__}"
        )

    return parse_task_reply(block.text.strip(), today)
