"""Daily trigger for the morning briefing call."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from croniter import croniter

logger = logging.getLogger(__name__)


def cron_expression(call_time: str) -> str:
    """Convert ``HH:MM`` into a daily cron expression.

    Raises:
        ValueError: ``call_time`` is not a valid 24-hour time.
    """
    try:
        hour_text, minute_text = call_time.strip().split(":")
        hour, minute = int(hour_text), int(minute_text)
    except ValueError as exc:
        raise ValueError(f"Invalid call time {call_time!r}, expected HH:MM") from exc
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid call time {call_time!r}, expected HH:MM")
    return f"{minute} {hour} * * *"


def next_run_after(expression: str, now: datetime) -> datetime:
    """Return the first fire time of ``expression`` strictly after ``now``."""
    return croniter(expression, now).get_next(datetime)


class MorningCallScheduler:
    """Runs ``job`` once a day at ``call_time`` in ``timezone``.

    The job is synchronous and runs in a worker thread so webhook requests
    keep being served while it talks to the store and Twilio.
    """

    def __init__(self, job: Callable[[], None], call_time: str, timezone: str) -> None:
        self._job = job
        self._expression = cron_expression(call_time)
        self._tz = ZoneInfo(timezone)
        self._task: asyncio.Task[None] | None = None

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_run(self, after: datetime | None = None) -> datetime:
        """Next fire time after now, or after ``after`` if that is later."""
        reference = datetime.now(self._tz)
        if after is not None and after > reference:
            reference = after
        return next_run_after(self._expression, reference)

    async def run_forever(self) -> None:
        fire_at = self.next_run()
        while True:
            delay = (fire_at - datetime.now(self._tz)).total_seconds()
            logger.info("Next morning call at %s", fire_at.isoformat())
            await asyncio.sleep(max(delay, 0))
            logger.info("Cron triggered at %s", fire_at.isoformat())
            try:
                await asyncio.to_thread(self._job)
            except Exception:
                logger.exception("Morning call job failed")
            fire_at = self.next_run(after=fire_at)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self.run_forever())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
