"""Streak evaluation from the stored activity counters."""
import logging
from datetime import date, datetime
from typing import Optional, Union

from goldlist.clock import days_between
from goldlist.models.learning_models import StreakDisplay, StreakStatus

logger = logging.getLogger(__name__)


def display_streak(
    last_activity_date: Optional[Union[date, datetime]],
    current_streak: int,
    now: Union[date, datetime],
) -> StreakDisplay:
    """Derive the streak shown to the user.

    The stored counter is never rewritten here: a broken streak is displayed as
    zero while the profile may still hold the stale value.
    """
    current_streak = current_streak or 0
    if last_activity_date is None:
        return StreakDisplay(current_streak, StreakStatus.COMPLETED)

    diff_days = days_between(last_activity_date, now)

    if diff_days < 0:
        logger.warning(
            "Last activity %s is after current time %s; treating streak as completed",
            last_activity_date,
            now,
        )
        return StreakDisplay(current_streak, StreakStatus.COMPLETED)
    if diff_days == 0:
        return StreakDisplay(current_streak, StreakStatus.COMPLETED)
    if diff_days == 1:
        return StreakDisplay(current_streak, StreakStatus.PENDING)
    return StreakDisplay(0, StreakStatus.BROKEN)


def next_streak(
    last_activity_date: Optional[Union[date, datetime]],
    current_streak: int,
    now: Union[date, datetime],
) -> int:
    """Streak counter to store when an activity happens at ``now``."""
    current_streak = current_streak or 0
    if last_activity_date is None:
        return 1

    diff_days = days_between(last_activity_date, now)
    if diff_days <= 0:
        return max(current_streak, 1)
    if diff_days == 1:
        return current_streak + 1
    return 1
