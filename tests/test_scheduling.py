"""Tests for task models and the due-window engine."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from src.tasks.models import Priority, Task, parse_due_date
from src.tasks.scheduling import compute_due_tasks
from tests.factories import TODAY, make_task


def _days(n: int) -> str:
    return (TODAY + timedelta(days=n)).isoformat()


# ---------------------------------------------------------------------------
# Model tests
# ---------------------------------------------------------------------------


class TestPriority:
    def test_rank_order(self) -> None:
        assert Priority.HIGH.rank < Priority.MEDIUM.rank < Priority.LOW.rank

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("High", Priority.HIGH),
            ("high", Priority.HIGH),
            (" LOW ", Priority.LOW),
            ("Medium", Priority.MEDIUM),
            ("urgent", Priority.MEDIUM),
            ("", Priority.MEDIUM),
            (None, Priority.MEDIUM),
        ],
    )
    def test_normalize(self, raw: object, expected: Priority) -> None:
        assert Priority.normalize(raw) is expected

    def test_formats_as_value(self) -> None:
        assert f"{Priority.HIGH}" == "High"


class TestTask:
    @pytest.mark.parametrize("status", ["Completed", "done", "DONE", " completed "])
    def test_completed_statuses(self, status: str) -> None:
        assert make_task("x", status=status).is_completed

    @pytest.mark.parametrize("status", ["Not Started", "In Progress", "almost done"])
    def test_open_statuses(self, status: str) -> None:
        assert not make_task("x", status=status).is_completed

    def test_defaults(self) -> None:
        task = Task(text="x")
        assert task.priority is Priority.MEDIUM
        assert task.status == "Not Started"
        assert task.due is None


class TestParseDueDate:
    def test_valid(self) -> None:
        assert parse_due_date("2026-10-21") == date(2026, 10, 21)

    @pytest.mark.parametrize("raw", ["", None, "next friday", "10/21/2026", "2026-13-01"])
    def test_invalid_returns_none(self, raw: str | None) -> None:
        assert parse_due_date(raw) is None


# ---------------------------------------------------------------------------
# compute_due_tasks
# ---------------------------------------------------------------------------


class TestComputeDueTasks:
    def test_priority_before_date(self) -> None:
        tasks = [
            make_task("A", priority="Low", due_date=_days(2)),
            make_task("B", priority="High", due_date=_days(1)),
        ]
        result = compute_due_tasks(tasks, 5, TODAY)
        assert [t.text for t in result] == ["B", "A"]

    def test_ties_broken_by_due_date(self) -> None:
        tasks = [
            make_task("later", priority="High", due_date=_days(4)),
            make_task("sooner", priority="High", due_date=_days(1)),
            make_task("medium", priority="Medium", due_date=_days(0)),
        ]
        result = compute_due_tasks(tasks, 5, TODAY)
        assert [t.text for t in result] == ["sooner", "later", "medium"]

    def test_unknown_priority_sorts_as_medium(self) -> None:
        tasks = [
            make_task("low", priority="Low", due_date=_days(1)),
            make_task("weird", priority="Urgent-ish", due_date=_days(1)),
            make_task("high", priority="High", due_date=_days(1)),
        ]
        result = compute_due_tasks(tasks, 5, TODAY)
        assert [t.text for t in result] == ["high", "weird", "low"]

    @pytest.mark.parametrize("status", ["Completed", "done", "Done"])
    def test_completed_excluded(self, status: str) -> None:
        tasks = [make_task("finished", status=status, due_date=_days(1))]
        assert compute_due_tasks(tasks, 5, TODAY) == []

    @pytest.mark.parametrize("due", ["", "someday", "2026/10/18", "2026-02-30"])
    def test_missing_or_bad_due_date_excluded(self, due: str) -> None:
        tasks = [make_task("undated", due_date=due)]
        assert compute_due_tasks(tasks, 5, TODAY) == []

    def test_window_bounds_inclusive(self) -> None:
        tasks = [
            make_task("yesterday", due_date=_days(-1)),
            make_task("today", due_date=_days(0)),
            make_task("edge", due_date=_days(5)),
            make_task("beyond", due_date=_days(6)),
        ]
        result = compute_due_tasks(tasks, 5, TODAY)
        assert [t.text for t in result] == ["today", "edge"]

    def test_custom_window(self) -> None:
        tasks = [make_task("soon", due_date=_days(1)), make_task("later", due_date=_days(3))]
        result = compute_due_tasks(tasks, 1, TODAY)
        assert [t.text for t in result] == ["soon"]

    def test_datetime_reference_uses_calendar_date(self) -> None:
        reference = datetime(2026, 10, 17, 23, 59, tzinfo=timezone.utc)
        tasks = [make_task("today", due_date=_days(0))]
        assert [t.text for t in compute_due_tasks(tasks, 5, reference)] == ["today"]

    def test_empty_input(self) -> None:
        assert compute_due_tasks([], 5, TODAY) == []

    def test_idempotent(self) -> None:
        tasks = [
            make_task("A", priority="Low", due_date=_days(2)),
            make_task("B", priority="High", due_date=_days(3)),
            make_task("C", priority="High", due_date=_days(1)),
            make_task("D", status="done", due_date=_days(1)),
        ]
        first = compute_due_tasks(tasks, 5, TODAY)
        second = compute_due_tasks(tasks, 5, TODAY)
        assert first == second
        assert [t.text for t in first] == ["C", "B", "A"]

    def test_does_not_mutate_input(self) -> None:
        tasks = [
            make_task("A", priority="Low", due_date=_days(2)),
            make_task("B", priority="High", due_date=_days(1)),
        ]
        compute_due_tasks(tasks, 5, TODAY)
        assert [t.text for t in tasks] == ["A", "B"]

    def test_output_is_sorted(self) -> None:
        priorities = ["Low", "High", "Medium", "bogus", "High", "Low"]
        tasks = [
            make_task(f"t{i}", priority=p, due_date=_days(i % 5))
            for i, p in enumerate(priorities)
        ]
        result = compute_due_tasks(tasks, 5, TODAY)
        keys = [(t.priority.rank, t.due_date) for t in result]
        assert keys == sorted(keys)
        assert len(result) == len(tasks)
