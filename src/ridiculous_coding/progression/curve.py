"""
Level curve.

Going from level L to L+1 costs base_xp * L, so the cumulative XP needed to
reach level L+1 is the triangular number

    threshold(L) = base_xp * L * (L + 1) / 2

with threshold(0) = 0. Level 1 starts at 0 XP. L * (L + 1) is always even,
so every threshold is an exact integer.
"""

from math import isqrt


def threshold(level: int, base_xp: int) -> int:
    """Cumulative XP at which `level` is completed (start of level + 1)."""
    if level <= 0:
        return 0
    return base_xp * level * (level + 1) // 2


def level_for_xp(total_xp: int, base_xp: int) -> int:
    """
    Level held at `total_xp`.

    Largest L with threshold(L - 1) <= total_xp. A total sitting exactly on
    a boundary belongs to the higher level.
    """
    base = max(1, base_xp)
    if total_xp <= 0:
        return 1
    # n(n+1)/2 <= total // base  <=>  threshold(n) <= total_xp
    steps = total_xp // base
    completed = (isqrt(8 * steps + 1) - 1) // 2
    return completed + 1


def level_bounds(total_xp: int, base_xp: int) -> tuple[int, int, int]:
    """Return (level, xp_at_level_start, xp_at_next_level)."""
    base = max(1, base_xp)
    level = level_for_xp(total_xp, base)
    return level, threshold(level - 1, base), threshold(level, base)
