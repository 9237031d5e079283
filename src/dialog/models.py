"""Dialog states, caller events and the declarative actions a turn produces."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class DialogState(StrEnum):
    """Where a call is in the add-task conversation."""

    IDLE = "idle"
    AWAITING_ADD_CHOICE = "awaiting_add_choice"
    AWAITING_TASK_SPEECH = "awaiting_task_speech"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    AWAITING_ADD_ANOTHER = "awaiting_add_another"
    TERMINAL = "terminal"


class EventKind(StrEnum):
    """What happened on the call to trigger a turn."""

    INBOUND_CALL = "inbound_call"
    BRIEFING = "briefing"
    DIGITS = "digits"
    SPEECH = "speech"
    TIMEOUT = "timeout"


class Route(StrEnum):
    """Webhook paths the gateway calls back into."""

    INBOUND = "/voice/inbound"
    INBOUND_RECORD = "/voice/inbound-record"
    MORNING_BRIEFING = "/voice/morning-briefing"
    MORNING_CHOICE = "/voice/morning-choice"
    PROCESS_SPEECH = "/voice/process-speech"
    CONFIRM_TASK = "/voice/confirm-task"
    AUTO_CONFIRM = "/voice/auto-confirm"
    ADD_ANOTHER = "/voice/add-another"
    PROCESS_RECORDING = "/voice/process-task"
    TRANSCRIPTION_CALLBACK = "/voice/transcription-callback"


@dataclass(frozen=True)
class DialogEvent:
    """One caller turn as delivered by the gateway."""

    kind: EventKind
    value: str = ""

    @classmethod
    def from_gateway(cls, digits: str | None = None, speech: str | None = None) -> DialogEvent:
        """Classify raw ``Digits``/``SpeechResult`` fields; neither means timeout."""
        if digits and digits.strip():
            return cls(EventKind.DIGITS, digits.strip())
        if speech and speech.strip():
            return cls(EventKind.SPEECH, speech.strip())
        return cls(EventKind.TIMEOUT)


@dataclass(frozen=True)
class Say:
    text: str


@dataclass(frozen=True)
class Gather:
    """Collect caller input and post it to ``action``.

    ``prompt`` is spoken while listening; if the caller stays silent the
    gateway falls through to the actions after this one.
    """

    action: Route
    inputs: tuple[str, ...] = ("speech",)
    prompt: str | None = None
    num_digits: int | None = None
    timeout: int | None = None


@dataclass(frozen=True)
class Record:
    action: Route
    transcribe_callback: Route | None = None
    max_length: int = 30
    timeout: int = 3


@dataclass(frozen=True)
class Redirect:
    target: Route


@dataclass(frozen=True)
class Hangup:
    pass


Action = Say | Gather | Record | Redirect | Hangup


@dataclass
class Transition:
    """The outcome of one turn: what to render and where the call now is."""

    state: DialogState
    actions: list[Action] = field(default_factory=list)
