"""Exception hierarchy shared by the task store, extraction and telephony layers."""

from __future__ import annotations


class TaskCallerError(Exception):
    """Base exception for the task caller service."""


class StoreAccessError(TaskCallerError):
    """Reading from or writing to the task store failed."""


class TelephonyError(TaskCallerError):
    """The telephony gateway refused or failed to place a call."""


class ExtractionError(TaskCallerError):
    """Turning a transcript into a task draft failed."""


class ExtractionServiceError(ExtractionError):
    """The extraction service could not be reached or returned an unusable reply."""


class ExtractionParseError(ExtractionError):
    """The extraction reply contained no usable JSON task object."""


class ExtractionRejected(ExtractionError):
    """The extraction service reported that the transcript is not a task."""
