"""Goldlist progression engine.

A word starts at bronze, round 1. Every forgotten review pushes it one round
further and schedules it again after the fixed review interval. Failing round 4
promotes it to the next stage at round 1; failing round 4 of gold marks it a
leech. A remembered word is distilled out as learned.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any

from goldlist.clock import to_utc_date
from goldlist.config import settings
from goldlist.models.learning_models import EntryUpdate, Stage, WordStatus

logger = logging.getLogger(__name__)


class TerminalEntryError(ValueError):
    """Raised when a learned or leech entry is passed to the engine."""


def next_review_date(now: datetime) -> date:
    """Calendar day on which a word written or failed at ``now`` is due."""
    return to_utc_date(now + timedelta(days=settings.learning.review_interval_days))


def advance(entry: Any, remembered: bool, now: datetime) -> EntryUpdate:
    """Compute the state of ``entry`` after one review outcome.

    ``entry`` is anything exposing ``stage``, ``round`` and ``status`` (a
    ``Word`` row or a snapshot). Nothing is mutated; the caller persists the
    returned update.

    Raises:
        TerminalEntryError: if the entry is already learned or a leech.
    """
    status = WordStatus(entry.status)
    stage = Stage(entry.stage)
    current_round = entry.round

    if status.is_terminal:
        logger.warning(
            "Refusing to advance entry %s: status is already %s",
            getattr(entry, "id", None),
            status.value,
        )
        raise TerminalEntryError(f"Entry {getattr(entry, 'id', None)} is {status.value}")

    if remembered:
        return EntryUpdate(
            stage=stage,
            round=current_round,
            status=WordStatus.LEARNED,
            next_review_date=None,
            updated_at=now,
        )

    candidate = next_review_date(now)

    if current_round < settings.learning.rounds_per_stage:
        return EntryUpdate(
            stage=stage,
            round=current_round + 1,
            status=status,
            next_review_date=candidate,
            updated_at=now,
        )

    promoted = stage.next()
    if promoted is None:
        # Failed the last round of gold
        return EntryUpdate(
            stage=Stage.GOLD,
            round=1,
            status=WordStatus.LEECH,
            next_review_date=None,
            updated_at=now,
        )

    return EntryUpdate(
        stage=promoted,
        round=1,
        status=status,
        next_review_date=candidate,
        updated_at=now,
    )


def is_due(entry: Any, today: date) -> bool:
    """Whether the entry belongs in the review queue on ``today``."""
    if WordStatus(entry.status).is_terminal:
        return False
    if entry.next_review_date is None:
        return False
    return entry.next_review_date <= today
