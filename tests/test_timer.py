"""Tests for the focus timer."""
import asyncio
from unittest.mock import Mock

import pytest

from config import TimerConfig
from core.models import Preferences
from core.timer import PomodoroTimer, TimerMode


@pytest.fixture
def manual_timer():
    """Timer whose background ticker never fires on its own."""
    return PomodoroTimer(TimerConfig(tick_seconds=3600))


class TestControls:
    def test_initial_state(self, manual_timer):
        assert manual_timer.to_dict() == {
            "mode": "focus",
            "timeLeft": 1500,
            "isActive": False,
            "duration": 1500,
        }

    def test_toggle_without_event_loop(self, manual_timer):
        assert manual_timer.toggle() is True
        assert manual_timer.toggle() is False

    @pytest.mark.parametrize("mode,seconds", [
        ("focus", 1500),
        ("shortBreak", 300),
        ("longBreak", 900),
    ])
    def test_set_mode(self, manual_timer, mode, seconds):
        manual_timer.toggle()
        manual_timer.set_mode(mode)

        assert manual_timer.mode == TimerMode(mode)
        assert manual_timer.time_left == seconds
        assert manual_timer.is_active is False

    def test_unknown_mode(self, manual_timer):
        with pytest.raises(ValueError):
            manual_timer.set_mode("nap")

    def test_reset(self, manual_timer):
        manual_timer.time_left = 42
        manual_timer.reset()

        assert manual_timer.time_left == 1500


class TestCountdown:
    @pytest.mark.asyncio
    async def test_tick_ignored_when_paused(self, manual_timer):
        await manual_timer.tick()

        assert manual_timer.time_left == 1500

    @pytest.mark.asyncio
    async def test_finish_notifies_listeners(self, manual_timer):
        events = []
        manual_timer.add_finish_listener(events.append)
        manual_timer.toggle()
        manual_timer.time_left = 2

        await manual_timer.tick()
        await manual_timer.tick()

        assert manual_timer.is_active is False
        assert manual_timer.time_left == 0
        assert len(events) == 1
        assert events[0].mode == TimerMode.FOCUS
        assert events[0].play_sound is True
        await manual_timer.cleanup()

    @pytest.mark.asyncio
    async def test_finish_respects_preferences(self):
        timer = PomodoroTimer(
            TimerConfig(tick_seconds=3600),
            preferences_provider=lambda: Preferences(sound=False, notifications=False),
        )
        events = []
        timer.add_finish_listener(events.append)
        timer.toggle()
        timer.time_left = 1

        await timer.tick()

        assert events[0].play_sound is False
        assert events[0].notify is False
        await timer.cleanup()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, manual_timer):
        second = Mock()
        manual_timer.add_finish_listener(Mock(side_effect=RuntimeError("speaker missing")))
        manual_timer.add_finish_listener(second)
        manual_timer.toggle()
        manual_timer.time_left = 1

        await manual_timer.tick()

        second.assert_called_once()
        await manual_timer.cleanup()

    @pytest.mark.asyncio
    async def test_background_ticker_runs_down(self):
        timer = PomodoroTimer(TimerConfig(tick_seconds=0.01))
        finished = asyncio.Event()
        timer.add_finish_listener(lambda event: finished.set())

        timer.toggle()
        timer.time_left = 3
        await asyncio.wait_for(finished.wait(), timeout=2)

        assert timer.is_active is False
        await timer.cleanup()

    @pytest.mark.asyncio
    async def test_pause_stops_ticker(self):
        timer = PomodoroTimer(TimerConfig(tick_seconds=0.01))
        timer.toggle()
        await asyncio.sleep(0.05)
        timer.toggle()
        paused_at = timer.time_left
        await asyncio.sleep(0.05)

        assert timer.time_left == paused_at
        assert timer.time_left < 1500
        await timer.cleanup()
