"""Level computation. One level per 1000 XP, starting at level 1."""

from __future__ import annotations

XP_PER_LEVEL = 1000

LEVEL_TITLES: dict[int, str] = {
    1: "Money Rookie",
    3: "Budget Apprentice",
    5: "Savings Scout",
    10: "Finance Explorer",
    20: "Wealth Builder",
    30: "Money Master",
    50: "Financial Guru",
}


def compute_level(xp: int) -> int:
    """Level for a total XP value: ``xp // 1000 + 1``."""
    return max(xp, 0) // XP_PER_LEVEL + 1


def level_title(level: int) -> str:
    """Title of the highest titled tier at or below ``level``."""
    title = LEVEL_TITLES[1]
    for threshold, name in sorted(LEVEL_TITLES.items()):
        if level >= threshold:
            title = name
    return title


def level_progress(xp: int) -> dict:
    """Level, title and progress toward the next level."""
    level = compute_level(xp)
    xp_into_level = max(xp, 0) % XP_PER_LEVEL
    return {
        "level": level,
        "title": level_title(level),
        "xp": xp,
        "xp_into_level": xp_into_level,
        "xp_for_level": XP_PER_LEVEL,
        "xp_to_next_level": XP_PER_LEVEL - xp_into_level,
        "progress_percent": round(xp_into_level / XP_PER_LEVEL * 100, 1),
        "next_level": level + 1,
    }


def level_table(max_level: int = 10) -> list[dict]:
    """Thresholds for the first ``max_level`` levels."""
    return [
        {
            "level": level,
            "title": level_title(level),
            "xp_required": (level - 1) * XP_PER_LEVEL,
        }
        for level in range(1, max_level + 1)
    ]
