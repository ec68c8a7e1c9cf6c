"""
XP and Leveling System

Pure progression engine: given a character's level/XP state and an XP
delta, settles the new level, remaining XP and next-level threshold.

Leveling Curve (linear):
- Reaching level N+1 from level N costs N * 100 XP
- Level 1 -> 2: 100 XP, level 2 -> 3: 200 XP, level 3 -> 4: 300 XP, ...

A single award may cross several thresholds; each one is settled in turn.
"""

from dataclasses import dataclass
from typing import Any, Mapping
import logging

from src.exceptions import ValidationError

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 100

# Largest single award, and the ceiling of the INTEGER columns that store XP
MAX_XP_AWARD = 1_000_000
MAX_STORED_XP = 2**31 - 1


@dataclass(frozen=True)
class XPResult:
    """Settled progression state after an XP award"""
    xp: int
    level: int
    xp_to_next_level: int
    total_xp: int
    leveled_up: bool
    levels_gained: int = 0

    def to_update(self) -> dict[str, int]:
        """Character columns to write back"""
        return {
            "xp": self.xp,
            "level": self.level,
            "xp_to_next_level": self.xp_to_next_level,
            "total_xp": self.total_xp,
        }


def xp_threshold_for_level(level: int) -> int:
    """XP needed to go from `level` to `level + 1`"""
    return level * XP_PER_LEVEL


def validate_xp_amount(amount: Any) -> int:
    """
    Reject anything that is not a non-negative int

    Raises:
        ValidationError: for negatives, amounts above MAX_XP_AWARD,
            floats, booleans, None, etc.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(
            message="XP amount must be a whole number",
            field="amount",
            value=amount,
            operation="apply_xp"
        )
    if amount < 0:
        raise ValidationError(
            message="XP amount cannot be negative",
            field="amount",
            value=amount,
            operation="apply_xp"
        )
    if amount > MAX_XP_AWARD:
        raise ValidationError(
            message=f"XP amount cannot exceed {MAX_XP_AWARD}",
            field="amount",
            value=amount,
            operation="apply_xp"
        )
    return amount


def _read(character: Any, key: str) -> int:
    if isinstance(character, Mapping):
        return int(character[key])
    return int(getattr(character, key))


def apply_xp(character: Any, amount: int) -> XPResult:
    """
    Apply an XP delta to a character's progression state

    Args:
        character: mapping or object exposing xp, level, xp_to_next_level, total_xp
        amount: XP to add (non-negative int)

    Returns:
        XPResult with the settled state. Post-condition: xp < xp_to_next_level.

    Example:
        level 1, xp 90, threshold 100, +250 XP
        -> 340 - 100 = 240 (level 2, threshold 200)
        -> 240 - 200 = 40  (level 3, threshold 300)
        -> level 3, xp 40, threshold 300, leveled_up True
    """
    amount = validate_xp_amount(amount)

    level = _read(character, "level")
    start_level = level
    xp = _read(character, "xp") + amount
    xp_to_next_level = _read(character, "xp_to_next_level")
    total_xp = _read(character, "total_xp") + amount

    if xp_to_next_level <= 0:
        raise ValidationError(
            message="xp_to_next_level must be positive",
            field="xp_to_next_level",
            value=xp_to_next_level,
            operation="apply_xp"
        )
    if total_xp > MAX_STORED_XP:
        raise ValidationError(
            message="This award would push total XP past the storable maximum",
            field="amount",
            value=amount,
            operation="apply_xp"
        )

    while xp >= xp_to_next_level:
        xp -= xp_to_next_level
        level += 1
        xp_to_next_level = xp_threshold_for_level(level)

    leveled_up = level > start_level
    if leveled_up:
        logger.debug(f"Level up: {start_level} -> {level} (+{amount} XP)")

    return XPResult(
        xp=xp,
        level=level,
        xp_to_next_level=xp_to_next_level,
        total_xp=total_xp,
        leveled_up=leveled_up,
        levels_gained=level - start_level,
    )


def level_progress(character: Any) -> float:
    """Fraction of the current level completed (0.0 - 1.0), for progress bars"""
    threshold = _read(character, "xp_to_next_level")
    if threshold <= 0:
        return 0.0
    return min(max(_read(character, "xp") / threshold, 0.0), 1.0)
