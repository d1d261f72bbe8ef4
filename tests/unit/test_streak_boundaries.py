"""Pure streak rule tests."""

from __future__ import annotations

from datetime import date

from finquest.gamification.streak_service import next_streak

TODAY = date(2025, 3, 15)


class TestNextStreak:
    def test_first_login_starts_at_one(self) -> None:
        assert next_streak(None, 0, TODAY) == 1

    def test_consecutive_day_extends(self) -> None:
        assert next_streak(date(2025, 3, 14), 4, TODAY) == 5

    def test_gap_resets(self) -> None:
        assert next_streak(date(2025, 3, 13), 9, TODAY) == 1

    def test_same_day_unchanged(self) -> None:
        assert next_streak(TODAY, 3, TODAY) == 3

    def test_month_boundary_is_consecutive(self) -> None:
        assert next_streak(date(2025, 2, 28), 6, date(2025, 3, 1)) == 7
