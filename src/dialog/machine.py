"""Voice dialog for briefing calls and adding tasks by phone.

Each webhook turn is handled by :meth:`DialogMachine.handle`, which takes
the call's session and the caller's event, talks to the collaborators
(extraction, task store) and returns the actions to render plus the state
the call moves to. Collaborator failures are turned into spoken apologies;
nothing raised by a collaborator escapes ``handle``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date
from enum import Enum

from src.briefing.composer import compose_briefing, format_spoken_date
from src.dialog.models import (
    Action,
    DialogEvent,
    DialogState,
    EventKind,
    Gather,
    Hangup,
    Redirect,
    Route,
    Say,
    Transition,
)
from src.dialog.sessions import CallSession
from src.errors import ExtractionError, ExtractionServiceError
from src.tasks.models import Task, TaskDraft
from src.tasks.scheduling import DEFAULT_WINDOW_DAYS

logger = logging.getLogger(__name__)

ExtractFn = Callable[[str, date], TaskDraft]
AppendFn = Callable[[TaskDraft], bool]
DueTasksFn = Callable[[], list[Task]]

_ACCEPT_SPEECH = re.compile(r"\byes\b|\bconfirm", re.IGNORECASE)
_REJECT_SPEECH = re.compile(r"\b(?:no+|nope|nah|not)\b|\bcancel", re.IGNORECASE)
_YES_SPEECH = re.compile(r"\byes\b", re.IGNORECASE)


class Answer(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    NONE = "none"


def classify_answer(event: DialogEvent) -> Answer:
    """Read a yes/no answer from keypad (1/2) or speech."""
    if event.kind is EventKind.DIGITS:
        if event.value == "1":
            return Answer.ACCEPT
        if event.value == "2":
            return Answer.REJECT
        return Answer.NONE
    if event.kind is EventKind.SPEECH:
        if _ACCEPT_SPEECH.search(event.value):
            return Answer.ACCEPT
        if _REJECT_SPEECH.search(event.value):
            return Answer.REJECT
    return Answer.NONE


def wants_another(event: DialogEvent) -> bool:
    if event.kind is EventKind.DIGITS:
        return event.value == "1"
    return event.kind is EventKind.SPEECH and bool(_YES_SPEECH.search(event.value))


class DialogMachine:
    """Transition function for the phone dialog.

    Args:
        extract_task: Turns a transcript (and today's date) into a draft.
        append_task: Persists a confirmed draft; returns False on failure.
        load_due_tasks: Returns the ordered due tasks for the briefing.
        today: Returns the date relative due dates resolve against.
        window_days: Briefing window, used in the spoken summary.
        owner_name: Name used in greetings; empty for none.
    """

    def __init__(
        self,
        extract_task: ExtractFn,
        append_task: AppendFn,
        load_due_tasks: DueTasksFn,
        today: Callable[[], date] = date.today,
        window_days: int = DEFAULT_WINDOW_DAYS,
        owner_name: str = "",
    ) -> None:
        self._extract_task = extract_task
        self._append_task = append_task
        self._load_due_tasks = load_due_tasks
        self._today = today
        self._window_days = window_days
        self._owner_name = owner_name
        self._handlers: dict[DialogState, Callable[[CallSession, DialogEvent], Transition]] = {
            DialogState.IDLE: self._on_idle,
            DialogState.AWAITING_ADD_CHOICE: self._on_add_choice,
            DialogState.AWAITING_TASK_SPEECH: self._on_task_speech,
            DialogState.AWAITING_CONFIRMATION: self._on_confirmation,
            DialogState.AWAITING_ADD_ANOTHER: self._on_add_another,
            DialogState.TERMINAL: self._on_terminal,
        }

    def handle(self, session: CallSession, event: DialogEvent) -> Transition:
        """Apply one caller event to ``session`` and return what to render."""
        transition = self._handlers[session.state](session, event)
        logger.debug(
            "Call %s: %s + %s -> %s",
            session.call_sid,
            session.state,
            event.kind,
            transition.state,
        )
        session.state = transition.state
        if transition.state is DialogState.TERMINAL:
            session.pending_draft = None
        return transition

    # -- prompts ---------------------------------------------------------

    def _name(self, prefix: str = " ") -> str:
        return f"{prefix}{self._owner_name}" if self._owner_name else ""

    def _farewell(self) -> str:
        return f"Have a great day{self._name()}!"

    def _capture(self, prompt: str) -> list[Action]:
        """Ask for a task by speech; silence comes back as a timeout turn."""
        return [
            Say(prompt),
            Gather(Route.PROCESS_SPEECH, inputs=("speech",)),
            Redirect(Route.PROCESS_SPEECH),
        ]

    def _end(self, *lines: str) -> Transition:
        actions: list[Action] = [Say(line) for line in lines]
        actions.append(Hangup())
        return Transition(DialogState.TERMINAL, actions)

    # -- states ----------------------------------------------------------

    def _on_idle(self, session: CallSession, event: DialogEvent) -> Transition:
        if event.kind is EventKind.BRIEFING:
            return self._briefing()
        return Transition(
            DialogState.AWAITING_TASK_SPEECH,
            self._capture(f"Hey{self._name()}! Tell me about the task you want to add."),
        )

    def _briefing(self) -> Transition:
        tasks = self._load_due_tasks()
        message = compose_briefing(tasks, self._window_days, self._owner_name)
        if not tasks:
            return self._end(message)
        return Transition(
            DialogState.AWAITING_ADD_CHOICE,
            [
                Say(message),
                Gather(
                    Route.MORNING_CHOICE,
                    inputs=("dtmf",),
                    prompt=(
                        "Press 1 if you'd like to add a new task, "
                        "or just hang up to go about your day."
                    ),
                    num_digits=1,
                    timeout=5,
                ),
                Say(f"Alright, have a productive day{self._name()}!"),
                Hangup(),
            ],
        )

    def _on_add_choice(self, session: CallSession, event: DialogEvent) -> Transition:
        if event.kind is EventKind.DIGITS and event.value == "1":
            return Transition(
                DialogState.AWAITING_TASK_SPEECH,
                self._capture(
                    "Tell me about the task you'd like to add. Include the task name, "
                    "priority if you have one, and when it's due."
                ),
            )
        return self._end(self._farewell())

    def _on_task_speech(self, session: CallSession, event: DialogEvent) -> Transition:
        if event.kind is not EventKind.SPEECH:
            return Transition(
                DialogState.AWAITING_TASK_SPEECH,
                self._capture("I didn't catch that. Let's try again. Tell me about the task."),
            )

        logger.info("Speech transcript for call %s: %r", session.call_sid, event.value)
        try:
            draft = self._extract_task(event.value, self._today())
        except ExtractionServiceError:
            logger.exception("Error processing speech for call %s", session.call_sid)
            return Transition(
                DialogState.AWAITING_TASK_SPEECH,
                self._capture("I had trouble processing that. Let's try again."),
            )
        except ExtractionError as exc:
            logger.info("Transcript not understood as a task: %s", exc)
            return Transition(
                DialogState.AWAITING_TASK_SPEECH,
                self._capture("I couldn't understand that as a task. Let's try again."),
            )

        session.pending_draft = draft
        return Transition(
            DialogState.AWAITING_CONFIRMATION,
            [
                Say(
                    f"Got it. Here's what I heard: {draft.text}. Priority: {draft.priority}. "
                    f"Due: {format_spoken_date(draft.due_date)}."
                ),
                Gather(
                    Route.CONFIRM_TASK,
                    inputs=("speech", "dtmf"),
                    prompt="Press 1 or say yes to confirm. Press 2 or say no to try again.",
                    num_digits=1,
                    timeout=5,
                ),
                Say("I'll save that for you."),
                Redirect(Route.AUTO_CONFIRM),
            ],
        )

    def _on_confirmation(self, session: CallSession, event: DialogEvent) -> Transition:
        answer = classify_answer(event)
        draft = session.pending_draft

        if answer is Answer.REJECT:
            session.pending_draft = None
            return Transition(
                DialogState.AWAITING_TASK_SPEECH,
                self._capture("No problem. Let's try again. Tell me about the task."),
            )

        if draft is None:
            logger.warning("Call %s confirmed with no pending task", session.call_sid)
            if answer is Answer.NONE:
                return self._end()
            return self._end("Sorry, I lost track of that task. Please call back to add it.")

        saved = self._append_task(draft)
        session.pending_draft = None
        if not saved:
            return self._end("Sorry, I had trouble saving that. Please try again later.")

        if answer is Answer.NONE:
            # No explicit answer counts as acceptance.
            return self._end(f"Task saved! {self._farewell()}")

        return Transition(
            DialogState.AWAITING_ADD_ANOTHER,
            [
                Say("Task saved! Would you like to add another task?"),
                Gather(
                    Route.ADD_ANOTHER,
                    inputs=("speech", "dtmf"),
                    prompt="Press 1 or say yes to add another. Otherwise, hang up or press 2.",
                    num_digits=1,
                    timeout=5,
                ),
                Say(f"Alright, have a great day{self._name()}!"),
                Hangup(),
            ],
        )

    def _on_add_another(self, session: CallSession, event: DialogEvent) -> Transition:
        if wants_another(event):
            session.pending_draft = None
            return Transition(
                DialogState.AWAITING_TASK_SPEECH,
                self._capture("Tell me about the task you want to add."),
            )
        return self._end(self._farewell())

    def _on_terminal(self, session: CallSession, event: DialogEvent) -> Transition:
        return Transition(DialogState.TERMINAL, [Hangup()])
