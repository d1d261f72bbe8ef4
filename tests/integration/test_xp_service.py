"""XP ledger and achievement unlock tests against a real store."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Notification, Profile, UserAchievement
from finquest.errors import ValidationError
from finquest.gamification import xp_service
from finquest.gamification.achievement_service import evaluate_achievements, unlock_achievement
from finquest.gamification.xp_service import award_xp, safe_award_xp


async def _set_xp(db: AsyncSession, profile: Profile, xp: int) -> None:
    profile.xp = xp
    profile.level = xp // 1000 + 1
    await db.commit()


async def _notification_count(db: AsyncSession, profile: Profile, subtype: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == profile.id, Notification.subtype == subtype
        )
    )
    return result.scalar_one()


class TestAwardXp:
    @pytest.mark.asyncio
    async def test_level_up_crossing_threshold(self, db_session, profile) -> None:
        await _set_xp(db_session, profile, 980)
        result = await award_xp(db_session, profile.id, 30)
        await db_session.commit()

        assert result["xp"] == 1010
        assert result["level"] == 2
        assert result["old_level"] == 1
        assert result["leveled_up"] is True
        assert await _notification_count(db_session, profile, "level_up") == 1

    @pytest.mark.asyncio
    async def test_zero_award_changes_nothing(self, db_session, profile) -> None:
        await _set_xp(db_session, profile, 500)
        result = await award_xp(db_session, profile.id, 0)
        assert result["xp"] == 500
        assert result["level"] == 1
        assert result["leveled_up"] is False

    @pytest.mark.asyncio
    async def test_coins_only_when_requested(self, db_session, profile) -> None:
        plain = await award_xp(db_session, profile.id, 150)
        with_coins = await award_xp(db_session, profile.id, 150, with_coins=True)
        explicit = await award_xp(db_session, profile.id, 50, coins=10)
        assert plain["coins_awarded"] == 0
        assert with_coins["coins_awarded"] == 15
        assert explicit["coins"] == 25

    @pytest.mark.asyncio
    async def test_identity_map_sees_increment(self, db_session, profile) -> None:
        await award_xp(db_session, profile.id, 1200)
        assert profile.xp == 1200
        assert profile.level == 2

    @pytest.mark.asyncio
    async def test_negative_rejected(self, db_session, profile) -> None:
        with pytest.raises(ValidationError):
            await award_xp(db_session, profile.id, -5)

    @pytest.mark.asyncio
    async def test_safe_award_swallows_failures(self, db_session, profile, monkeypatch) -> None:
        async def broken(*args, **kwargs):
            raise RuntimeError("store down")

        monkeypatch.setattr(xp_service, "award_xp", broken)
        assert await safe_award_xp(db_session, profile.id, 10) is None


class TestAchievementUnlock:
    @pytest.mark.asyncio
    async def test_unlock_is_recorded_once(self, db_session, profile) -> None:
        assert await unlock_achievement(db_session, profile.id, "Budget Beginner") is True
        assert await unlock_achievement(db_session, profile.id, "Budget Beginner") is False
        await db_session.commit()

        count = (
            await db_session.execute(
                select(func.count()).select_from(UserAchievement).where(UserAchievement.user_id == profile.id)
            )
        ).scalar_one()
        assert count == 1
        assert await _notification_count(db_session, profile, "achievement_unlocked") == 1

    @pytest.mark.asyncio
    async def test_unlock_grants_reward(self, db_session, profile) -> None:
        await unlock_achievement(db_session, profile.id, "Quiz Master")
        row = (await db_session.execute(select(Profile.xp, Profile.coins).where(Profile.id == profile.id))).one()
        assert row.xp == 200
        assert row.coins == 50

    @pytest.mark.asyncio
    async def test_unknown_name_self_seeds(self, db_session, profile) -> None:
        assert await unlock_achievement(db_session, profile.id, "Night Owl") is True

    @pytest.mark.asyncio
    async def test_repeated_evaluation_does_not_duplicate(self, db_session, profile) -> None:
        await _set_xp(db_session, profile, 4200)
        first = await evaluate_achievements(db_session, profile.id, "quiz")
        second = await evaluate_achievements(db_session, profile.id, "quiz")
        assert first == ["Level Up"]
        assert second == []

    @pytest.mark.asyncio
    async def test_unknown_trigger(self, db_session, profile) -> None:
        with pytest.raises(ValueError):
            await evaluate_achievements(db_session, profile.id, "lottery")
