"""Twilio voice webhooks: briefing menu, inbound task capture and confirmation."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Form, Response

from src.briefing.caller import load_due_tasks
from src.config import settings
from src.dialog.machine import DialogMachine
from src.dialog.models import (
    Action,
    DialogEvent,
    DialogState,
    EventKind,
    Hangup,
    Record,
    Redirect,
    Route,
    Say,
)
from src.dialog.sessions import SessionStore
from src.dialog.twiml import render_twiml
from src.errors import ExtractionError
from src.extraction.extractor import extract_task
from src.tasks.scheduling import today_local
from src.tasks.storage import append_task

logger = logging.getLogger(__name__)

router = APIRouter()

sessions = SessionStore(settings.session_ttl_seconds)

CallSid = Annotated[str, Form(alias="CallSid")]
Digits = Annotated[str | None, Form(alias="Digits")]
SpeechResult = Annotated[str | None, Form(alias="SpeechResult")]


def get_machine() -> DialogMachine:
    """Wire the dialog to the live collaborators."""
    return DialogMachine(
        extract_task=extract_task,
        append_task=append_task,
        load_due_tasks=load_due_tasks,
        today=today_local,
        window_days=settings.briefing_window_days,
        owner_name=settings.owner_name,
    )


def _twiml(actions: list[Action]) -> Response:
    return Response(
        content=render_twiml(actions, settings.base_url, settings.voice),
        media_type="text/xml",
    )


async def _run_turn(call_sid: str, expected: DialogState, event: DialogEvent) -> Response:
    """Load the call's session, apply the event and render the result.

    Each route is addressed to one dialog state. If the stored state
    disagrees (the session expired, or the process restarted mid-call) the
    route's state wins.
    """
    session = sessions.get(call_sid)
    if session.state is not expected:
        logger.warning(
            "Call %s is in state %s but turn is for %s", call_sid, session.state, expected
        )
        session.state = expected

    # Extraction and the task store are blocking calls; keep the event loop free.
    transition = await asyncio.to_thread(get_machine().handle, session, event)

    if transition.state is DialogState.TERMINAL:
        sessions.discard(call_sid)
    else:
        sessions.touch(session)
    return _twiml(transition.actions)


@router.post(Route.INBOUND.value)
async def inbound(call_sid: CallSid = "") -> Response:
    """Inbound call: greet the caller and listen for a task."""
    return await _run_turn(call_sid, DialogState.IDLE, DialogEvent(EventKind.INBOUND_CALL))


@router.post(Route.MORNING_BRIEFING.value)
async def morning_briefing(call_sid: CallSid = "") -> Response:
    """Outbound call answered: read the briefing and offer to add a task."""
    return await _run_turn(call_sid, DialogState.IDLE, DialogEvent(EventKind.BRIEFING))


@router.post(Route.MORNING_CHOICE.value)
async def morning_choice(call_sid: CallSid = "", digits: Digits = None) -> Response:
    return await _run_turn(
        call_sid, DialogState.AWAITING_ADD_CHOICE, DialogEvent.from_gateway(digits=digits)
    )


@router.post(Route.PROCESS_SPEECH.value)
async def process_speech(call_sid: CallSid = "", speech: SpeechResult = None) -> Response:
    return await _run_turn(
        call_sid, DialogState.AWAITING_TASK_SPEECH, DialogEvent.from_gateway(speech=speech)
    )


@router.post(Route.CONFIRM_TASK.value)
async def confirm_task(
    call_sid: CallSid = "", digits: Digits = None, speech: SpeechResult = None
) -> Response:
    return await _run_turn(
        call_sid,
        DialogState.AWAITING_CONFIRMATION,
        DialogEvent.from_gateway(digits=digits, speech=speech),
    )


@router.post(Route.AUTO_CONFIRM.value)
async def auto_confirm(call_sid: CallSid = "") -> Response:
    """The caller said nothing at the confirmation prompt."""
    return await _run_turn(
        call_sid, DialogState.AWAITING_CONFIRMATION, DialogEvent(EventKind.TIMEOUT)
    )


@router.post(Route.ADD_ANOTHER.value)
async def add_another(
    call_sid: CallSid = "", digits: Digits = None, speech: SpeechResult = None
) -> Response:
    return await _run_turn(
        call_sid,
        DialogState.AWAITING_ADD_ANOTHER,
        DialogEvent.from_gateway(digits=digits, speech=speech),
    )


# ---------------------------------------------------------------------------
# Recording flow: the task is transcribed and saved after the call ends.
# ---------------------------------------------------------------------------


@router.post(Route.INBOUND_RECORD.value)
async def inbound_record() -> Response:
    name = f" {settings.owner_name}" if settings.owner_name else ""
    return _twiml(
        [
            Say(
                f"Hey{name}! Ready to add a task. Tell me the task, priority, and due date "
                "after the beep. For example, say: Finish the Q3 report, high priority, "
                "due next Wednesday."
            ),
            Record(Route.PROCESS_RECORDING, transcribe_callback=Route.TRANSCRIPTION_CALLBACK),
            Say("I didn't catch anything. Let's try again."),
            Redirect(Route.INBOUND_RECORD),
        ]
    )


@router.post(Route.PROCESS_RECORDING.value)
async def process_recording() -> Response:
    return _twiml(
        [
            Say(
                "Got your recording. I'll process it and add the task. "
                "You'll see it in your task list shortly. Goodbye!"
            ),
            Hangup(),
        ]
    )


def save_transcribed_task(transcript: str) -> bool:
    """Extract and store a task from an after-call transcription."""
    try:
        draft = extract_task(transcript, today_local())
    except ExtractionError:
        logger.exception("Error processing transcription")
        return False
    return append_task(draft)


@router.post(Route.TRANSCRIPTION_CALLBACK.value)
async def transcription_callback(
    transcript: Annotated[str | None, Form(alias="TranscriptionText")] = None,
) -> Response:
    logger.info("Transcription received: %r", transcript)
    if transcript and transcript.strip():
        await asyncio.to_thread(save_transcribed_task, transcript.strip())
    return Response(status_code=200)
