"""
Workout Streak Tracking

A character's streak counts consecutive days with a logged workout.

Logic:
- First workout ever: streak starts at 1
- Another workout on the same day: no change
- Workout the day after the last one: streak + 1
- Any bigger gap: streak resets to 1

Days are calendar days in the timezone of the new workout. Naive
timestamps are taken as UTC.
"""

from dataclasses import dataclass
from typing import Optional
from datetime import date, datetime, timezone, tzinfo
import logging

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (7, 14, 30, 100)


def _local_day(moment: datetime, tz: tzinfo) -> date:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


@dataclass(frozen=True)
class StreakResult:
    """New streak state after an activity"""
    streak: int
    last_workout: datetime
    counted: bool  # False when the day was already counted
    broken: bool
    milestone_reached: bool
    message: str


def calculate_streak(
    current_streak: int,
    last_workout: Optional[datetime],
    activity_at: Optional[datetime] = None
) -> StreakResult:
    """
    Compute the streak after a workout at `activity_at`

    Args:
        current_streak: streak stored on the character
        last_workout: timestamp of the last counted workout (None if never)
        activity_at: when this workout happened (defaults to now)

    Returns:
        StreakResult
    """
    if activity_at is None:
        activity_at = datetime.now(timezone.utc)

    tz = activity_at.tzinfo or timezone.utc
    activity_day = _local_day(activity_at, tz)
    last_day: Optional[date] = _local_day(last_workout, tz) if last_workout else None

    counted = True
    broken = False

    if last_day is None or current_streak <= 0:
        streak = 1
        message = "Streak started! Day 1"
    elif last_day == activity_day:
        streak = current_streak
        counted = False
        message = f"Streak continues! Day {streak}"
    elif (activity_day - last_day).days == 1:
        streak = current_streak + 1
        message = f"Streak continues! Day {streak}"
    elif activity_day < last_day:
        # Backdated activity never shortens or extends a streak
        streak = current_streak
        counted = False
        message = f"Streak continues! Day {streak}"
    else:
        gap_days = (activity_day - last_day).days
        streak = 1
        broken = True
        message = f"Streak reset. Previous: {current_streak} days. Starting fresh! Day 1"
        logger.info(f"Streak broken after {current_streak} days, gap was {gap_days} days")

    milestone_reached = counted and streak in STREAK_MILESTONES
    if milestone_reached:
        message += f"\n{streak}-day milestone reached!"

    return StreakResult(
        streak=streak,
        last_workout=activity_at if counted else (last_workout or activity_at),
        counted=counted,
        broken=broken,
        milestone_reached=milestone_reached,
        message=message,
    )
