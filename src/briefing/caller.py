"""Outbound morning briefing call via Twilio."""

from __future__ import annotations

import logging

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from src.config import settings
from src.dialog.models import Route
from src.errors import TelephonyError
from src.tasks.models import Task
from src.tasks.scheduling import compute_due_tasks, today_local
from src.tasks.storage import list_tasks

logger = logging.getLogger(__name__)


def get_twilio_client() -> Client:
    """Create and return a Twilio REST client from settings."""
    return Client(settings.twilio_account_sid, settings.twilio_auth_token)


def load_due_tasks() -> list[Task]:
    """Read the store and return the tasks due in the briefing window."""
    return compute_due_tasks(list_tasks(), settings.briefing_window_days, today_local())


def place_morning_call(client: Client | None = None) -> str | None:
    """Call the owner with the morning briefing if anything is due.

    Returns:
        The Twilio call SID, or None when no tasks are due and the call
        was skipped.

    Raises:
        TelephonyError: Twilio refused to place the call.
    """
    tasks = load_due_tasks()
    if not tasks:
        logger.info("No upcoming tasks, skipping call")
        return None

    try:
        call = (client or get_twilio_client()).calls.create(
            to=settings.my_phone_number,
            from_=settings.twilio_phone_number,
            url=f"{settings.base_url.rstrip('/')}{Route.MORNING_BRIEFING}",
            method="POST",
        )
    except TwilioException as exc:
        raise TelephonyError(f"Could not place morning call: {exc}") from exc

    logger.info("Morning call initiated: %s (%d tasks due)", call.sid, len(tasks))
    return call.sid


def run_morning_briefing() -> None:
    """Entry point for the daily trigger; failures are logged, never raised."""
    logger.info("Starting morning call")
    try:
        place_morning_call()
    except Exception:
        logger.exception("Error making morning call")
