"""Tests for daily streak evaluation."""
from datetime import datetime

import pytz

from core.models import Stats
from core.streak import StreakOutcome, evaluate_streak


def at(year, month, day, hour=12, minute=0):
    return pytz.utc.localize(datetime(year, month, day, hour, minute))


def stats_last_active(moment, streak=4):
    return Stats(streak=streak, last_active=moment.isoformat())


class TestEvaluateStreak:
    """Calendar-day comparison of lastActive and now."""

    def test_same_day_is_unchanged(self):
        stats = stats_last_active(at(2025, 3, 10, 8))

        result = evaluate_streak(stats, at(2025, 3, 10, 23, 59))

        assert result.outcome == StreakOutcome.UNCHANGED
        assert result.changed is False
        assert result.stats is stats

    def test_yesterday_continues(self):
        now = at(2025, 3, 11, 0, 5)
        result = evaluate_streak(stats_last_active(at(2025, 3, 10, 23, 50)), now)

        assert result.outcome == StreakOutcome.CONTINUED
        assert result.stats.streak == 5
        assert result.stats.last_active == now.isoformat()

    def test_gap_resets(self):
        now = at(2025, 3, 13)
        result = evaluate_streak(stats_last_active(at(2025, 3, 10)), now)

        assert result.outcome == StreakOutcome.RESET
        assert result.stats.streak == 1
        assert result.stats.last_active == now.isoformat()

    def test_future_last_active_resets(self):
        result = evaluate_streak(stats_last_active(at(2025, 3, 12)), at(2025, 3, 10))

        assert result.outcome == StreakOutcome.RESET
        assert result.stats.streak == 1

    def test_date_only_last_active(self):
        stats = Stats(streak=2, last_active="2025-03-09")

        result = evaluate_streak(stats, at(2025, 3, 10))

        assert result.stats.streak == 3

    def test_other_fields_untouched(self):
        stats = Stats(level=4, xp=77, max_xp=1687, streak=2, last_active=at(2025, 3, 9).isoformat(),
                      total_tasks_completed=12)

        result = evaluate_streak(stats, at(2025, 3, 10))

        assert (result.stats.level, result.stats.xp, result.stats.max_xp) == (4, 77, 1687)
        assert result.stats.total_tasks_completed == 12
