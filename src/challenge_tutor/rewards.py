"""Experience points and levels."""
import math

BASE_XP = {"easy": 10, "medium": 20, "hard": 35}
STREAK_BONUS_PER_DAY = 2
MAX_STREAK_BONUS = 50


def compute_xp(correct: bool, difficulty: str, fast_answer: bool = False, current_streak: int = 0) -> int:
    """XP for one attempt. Wrong answers earn nothing."""
    if not correct:
        return 0
    base = BASE_XP[difficulty]
    xp = base
    if fast_answer:
        xp += math.floor(base * 0.5)
    if current_streak > 0:
        xp += min(current_streak * STREAK_BONUS_PER_DAY, MAX_STREAK_BONUS)
    return xp


def level_from_xp(xp: int) -> int:
    return math.isqrt(max(0, int(xp)) // 100) + 1


def xp_for_level(level: int) -> int:
    """Total XP at which ``level`` begins."""
    return (max(1, level) - 1) ** 2 * 100


def xp_for_next_level(level: int) -> int:
    return xp_for_level(level + 1)


def get_level_progress(xp: int) -> dict:
    """Where ``xp`` sits between the current and next level thresholds."""
    xp = max(0, int(xp))
    level = level_from_xp(xp)
    floor_xp = xp_for_level(level)
    next_xp = xp_for_next_level(level)
    span = next_xp - floor_xp
    return {
        "level": level,
        "xp": xp,
        "level_start": floor_xp,
        "next_level_at": next_xp,
        "to_next": next_xp - xp,
        "percent": round((xp - floor_xp) / span * 100, 1),
    }
