"""Shared fixtures. Environment is pinned before any ``src`` module loads settings."""

from __future__ import annotations

import os

os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("BASE_URL", "")
os.environ.setdefault("OWNER_NAME", "")

from collections.abc import Iterator  # noqa: E402
from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.api.main import app  # noqa: E402
from src.api.routes import voice  # noqa: E402
from src.tasks.models import Priority, TaskDraft  # noqa: E402
from tests.factories import TODAY  # noqa: E402


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def draft() -> TaskDraft:
    return TaskDraft(
        text="Finish the Q3 report",
        priority=Priority.HIGH,
        status="Not Started",
        due_date="2026-10-21",
    )


@pytest.fixture
def client() -> Iterator[TestClient]:
    voice.sessions._sessions.clear()
    yield TestClient(app)
    voice.sessions._sessions.clear()
