"""Value types shared by the progression, streak and roadmap logic."""
from dataclasses import dataclass, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional


class Stage(Enum):
    """Goldlist distillation tier."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)

    def next(self) -> Optional["Stage"]:
        """Return the stage a word is promoted to, or None past gold."""
        if self is Stage.BRONZE:
            return Stage.SILVER
        if self is Stage.SILVER:
            return Stage.GOLD
        if self is Stage.GOLD:
            return None
        raise ValueError(f"Unknown stage: {self!r}")


_STAGE_ORDER = (Stage.BRONZE, Stage.SILVER, Stage.GOLD)


class WordStatus(Enum):
    """Lifecycle of a vocabulary entry."""
    WAITING = "waiting"  # next review date not reached yet
    READY = "ready"  # due for review
    LEARNED = "learned"  # remembered, terminal
    LEECH = "leech"  # failed gold four times, terminal

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = (WordStatus.LEARNED, WordStatus.LEECH)


class StreakStatus(Enum):
    """Display state of the activity streak."""
    COMPLETED = "completed"  # activity today
    PENDING = "pending"  # activity yesterday, none yet today
    BROKEN = "broken"  # missed at least one full day


class PageState(Enum):
    """Roadmap classification of one notebook page."""
    ACTIVE = "active"
    PARTIAL = "partial"
    COMPLETED = "completed"
    MISSED = "missed"
    LOCKED = "locked"

    @property
    def accepts_words(self) -> bool:
        """Whether the roadmap offers an "add words" action for the page."""
        if self in (PageState.ACTIVE, PageState.PARTIAL):
            return True
        if self in (PageState.COMPLETED, PageState.MISSED, PageState.LOCKED):
            return False
        raise ValueError(f"Unknown page state: {self!r}")


class NotebookActionState(Enum):
    """Primary action offered on a notebook card."""
    REVIEW = "review"
    ADD = "add"
    DONE = "done"


@dataclass(frozen=True)
class EntryUpdate:
    """Complete set of persisted fields produced by one review outcome."""
    stage: Stage
    round: int
    status: WordStatus
    next_review_date: Optional[date]
    updated_at: datetime

    def apply_to(self, entry: Any) -> None:
        """Copy the update onto a persisted row."""
        entry.stage = self.stage
        entry.round = self.round
        entry.status = self.status
        entry.next_review_date = self.next_review_date
        entry.updated_at = self.updated_at

    def as_dict(self) -> Dict[str, Any]:
        """Column values suitable for an UPDATE statement."""
        return asdict(self)


@dataclass(frozen=True)
class StreakDisplay:
    """Streak value and status shown to the user."""
    streak: int
    status: StreakStatus


@dataclass(frozen=True)
class RoadmapPage:
    """Derived view of a single roadmap page."""
    page_number: int
    state: PageState
    word_count: int
    word_limit: int
    title: str
    target_date: date

    @property
    def has_words(self) -> bool:
        return self.word_count > 0


@dataclass(frozen=True)
class NotebookAction:
    """Button state of a notebook card."""
    state: NotebookActionState
    text: str
    count: int
    active_page_number: int
