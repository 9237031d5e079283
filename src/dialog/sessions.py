"""Per-call dialog state keyed by the gateway's call identifier."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from src.dialog.models import DialogState
from src.tasks.models import TaskDraft


@dataclass
class CallSession:
    call_sid: str
    state: DialogState = DialogState.IDLE
    pending_draft: TaskDraft | None = None
    updated_at: float = field(default_factory=time.monotonic)


class SessionStore:
    """In-memory map of call SID -> CallSession with idle expiry.

    Webhook turns for different calls may run concurrently in worker
    threads, so every access goes through a lock.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, CallSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _purge_expired(self, now: float) -> None:
        expired = [sid for sid, s in self._sessions.items() if now - s.updated_at > self._ttl]
        for sid in expired:
            del self._sessions[sid]

    def get(self, call_sid: str) -> CallSession:
        """Return the live session for ``call_sid``, starting a fresh one if needed."""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            session = self._sessions.get(call_sid)
            if session is None:
                session = CallSession(call_sid=call_sid, updated_at=now)
                self._sessions[call_sid] = session
            return session

    def touch(self, session: CallSession) -> None:
        with self._lock:
            session.updated_at = self._clock()

    def discard(self, call_sid: str) -> None:
        with self._lock:
            self._sessions.pop(call_sid, None)
