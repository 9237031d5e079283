"""Tests for the outbound briefing call and its daily trigger."""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import date, datetime, timedelta
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

import pytest
from twilio.base.exceptions import TwilioRestException

from src.briefing.caller import load_due_tasks, place_morning_call, run_morning_briefing
from src.briefing.cron import MorningCallScheduler, cron_expression, next_run_after
from src.errors import TelephonyError
from tests.factories import make_task

# ---------------------------------------------------------------------------
# Outbound call
# ---------------------------------------------------------------------------


class TestPlaceMorningCall:
    @patch("src.briefing.caller.load_due_tasks", return_value=[])
    def test_skips_when_nothing_due(self, _mock_due: MagicMock) -> None:
        twilio_client = MagicMock()
        assert place_morning_call(twilio_client) is None
        twilio_client.calls.create.assert_not_called()

    @patch("src.briefing.caller.load_due_tasks")
    def test_places_call_to_briefing_webhook(self, mock_due: MagicMock) -> None:
        mock_due.return_value = [make_task("Pay rent", due_date="2026-10-18")]
        twilio_client = MagicMock()
        twilio_client.calls.create.return_value.sid = "CA123"

        with patch("src.briefing.caller.settings") as mock_settings:
            mock_settings.my_phone_number = "+15550001111"
            mock_settings.twilio_phone_number = "+15550002222"
            mock_settings.base_url = "https://tasks.example.com/"
            assert place_morning_call(twilio_client) == "CA123"

        twilio_client.calls.create.assert_called_once_with(
            to="+15550001111",
            from_="+15550002222",
            url="https://tasks.example.com/voice/morning-briefing",
            method="POST",
        )

    @patch("src.briefing.caller.load_due_tasks")
    def test_twilio_error_raised_as_telephony_error(self, mock_due: MagicMock) -> None:
        mock_due.return_value = [make_task("Pay rent", due_date="2026-10-18")]
        twilio_client = MagicMock()
        twilio_client.calls.create.side_effect = TwilioRestException(
            401, "https://api.twilio.com/Calls", "Authenticate"
        )
        with pytest.raises(TelephonyError):
            place_morning_call(twilio_client)

    @patch("src.briefing.caller.place_morning_call", side_effect=TelephonyError("boom"))
    def test_run_swallows_failures(self, mock_place: MagicMock) -> None:
        run_morning_briefing()
        mock_place.assert_called_once()

    @patch("src.briefing.caller.list_tasks")
    @patch("src.briefing.caller.today_local")
    def test_load_due_tasks_filters_store(
        self, mock_today: MagicMock, mock_list: MagicMock
    ) -> None:
        mock_today.return_value = date(2026, 10, 17)
        mock_list.return_value = [
            make_task("done", status="Done", due_date="2026-10-18"),
            make_task("low", priority="Low", due_date="2026-10-18"),
            make_task("high", priority="High", due_date="2026-10-20"),
        ]
        assert [t.text for t in load_due_tasks()] == ["high", "low"]


# ---------------------------------------------------------------------------
# Cron trigger
# ---------------------------------------------------------------------------


class TestCronExpression:
    @pytest.mark.parametrize(
        ("call_time", "expected"),
        [("07:00", "0 7 * * *"), ("7:05", "5 7 * * *"), ("23:59", "59 23 * * *")],
    )
    def test_valid(self, call_time: str, expected: str) -> None:
        assert cron_expression(call_time) == expected

    @pytest.mark.parametrize("call_time", ["", "7", "24:00", "07:60", "seven:thirty", "7:00:00"])
    def test_invalid(self, call_time: str) -> None:
        with pytest.raises(ValueError):
            cron_expression(call_time)


class TestNextRun:
    def test_later_today(self) -> None:
        tz = ZoneInfo("America/Denver")
        now = datetime(2026, 10, 17, 6, 30, tzinfo=tz)
        fire = next_run_after("0 7 * * *", now)
        assert (fire.year, fire.month, fire.day, fire.hour, fire.minute) == (2026, 10, 17, 7, 0)

    def test_tomorrow_when_passed(self) -> None:
        tz = ZoneInfo("America/Denver")
        now = datetime(2026, 10, 17, 7, 0, tzinfo=tz)
        fire = next_run_after("0 7 * * *", now)
        assert (fire.month, fire.day, fire.hour) == (10, 18, 7)

    def test_scheduler_uses_configured_time(self) -> None:
        scheduler = MorningCallScheduler(lambda: None, "06:45", "America/Denver")
        assert scheduler.expression == "45 6 * * *"
        fire = scheduler.next_run()
        assert (fire.hour, fire.minute) == (6, 45)

    def test_scheduler_rejects_bad_time(self) -> None:
        with pytest.raises(ValueError):
            MorningCallScheduler(lambda: None, "25:00", "America/Denver")

    def test_next_run_moves_past_previous_fire_time(self) -> None:
        scheduler = MorningCallScheduler(lambda: None, "06:45", "America/Denver")
        fire_at = scheduler.next_run()
        following = scheduler.next_run(after=fire_at)
        assert following > fire_at
        assert (following.hour, following.minute) == (6, 45)


class TestSchedulerLoop:
    TZ = ZoneInfo("America/Denver")

    def _soon(self, after: datetime | None = None) -> datetime:
        return datetime.now(self.TZ) + timedelta(milliseconds=20)

    def test_job_runs_once_in_worker_thread(self) -> None:
        threads: list[int] = []
        scheduler = MorningCallScheduler(
            lambda: threads.append(threading.get_ident()), "07:00", "America/Denver"
        )
        far = datetime.now(self.TZ) + timedelta(hours=1)

        async def run() -> None:
            with patch.object(scheduler, "next_run", side_effect=[self._soon(), far]):
                scheduler.start()
                assert scheduler.running
                await asyncio.sleep(0.3)
                await scheduler.stop()

        asyncio.run(run())
        assert len(threads) == 1
        assert threads[0] != threading.get_ident()
        assert not scheduler.running

    def test_job_failure_is_logged_and_loop_continues(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        calls: list[int] = []

        def job() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("store down")

        scheduler = MorningCallScheduler(job, "07:00", "America/Denver")

        async def run() -> None:
            with patch.object(scheduler, "next_run", side_effect=self._soon):
                scheduler.start()
                for _ in range(100):
                    if len(calls) >= 2:
                        break
                    await asyncio.sleep(0.02)
                await scheduler.stop()

        with caplog.at_level(logging.ERROR, logger="src.briefing.cron"):
            asyncio.run(run())

        assert len(calls) >= 2
        assert "Morning call job failed" in caplog.text

    def test_stop_without_start_is_noop(self) -> None:
        scheduler = MorningCallScheduler(lambda: None, "07:00", "America/Denver")
        asyncio.run(scheduler.stop())
        assert not scheduler.running
