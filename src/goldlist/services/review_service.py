"""Review service: the distillation step of the Goldlist method."""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
import logging

from sqlalchemy import and_
from sqlalchemy.orm import Session

from goldlist import monitoring
from goldlist.clock import to_utc_date
from goldlist.models.learning_models import EntryUpdate, Stage, WordStatus
from goldlist.models.models import Notebook, Page, ReviewLog, Word
from goldlist.services.notification_service import NotificationService
from goldlist.services.progression import advance
from goldlist.services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class ReviewSessionStats:
    """Tally of one review session, grouped by stage and round."""
    remembered: int = 0
    forgotten: int = 0
    remembered_words: List[int] = field(default_factory=list)
    forgotten_words: List[int] = field(default_factory=list)
    stage_round_stats: Dict[str, Dict[str, int]] = field(
        default_factory=lambda: defaultdict(lambda: {"remembered": 0, "total": 0})
    )

    def record(self, word_id: int, stage: Stage, round_: int, remembered: bool) -> None:
        bucket = self.stage_round_stats[f"{stage.value}-{round_}"]
        bucket["total"] += 1
        if remembered:
            bucket["remembered"] += 1
            self.remembered += 1
            self.remembered_words.append(word_id)
        else:
            self.forgotten += 1
            self.forgotten_words.append(word_id)

    @property
    def total(self) -> int:
        return self.remembered + self.forgotten

    @property
    def success_rate(self) -> int:
        """Percentage of remembered words, rounded."""
        if self.total == 0:
            return 0
        return round(self.remembered / self.total * 100)


class ReviewService:
    """Service for building review queues and recording outcomes."""

    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        """Initialize the service with a database session."""
        self.db = db
        self.user_service = UserService(db)
        self.notification_service = notification_service or NotificationService(db)

    def get_review_words(self, notebook_id: int, now: datetime) -> List[Word]:
        """Words of the notebook due for review, oldest review date first."""
        return (
            self.db.query(Word)
            .join(Page, Word.page_id == Page.id)
            .filter(
                and_(
                    Page.notebook_id == notebook_id,
                    Word.due_on(to_utc_date(now)),
                )
            )
            .order_by(Word.next_review_date.asc(), Word.id.asc())
            .all()
        )

    def get_due_count(self, profile_id: int, now: datetime) -> int:
        """Number of words due across all of the profile's notebooks."""
        return self.notification_service.get_due_word_count(profile_id, now)

    def record_review(self, word_id: int, remembered: bool, now: datetime) -> Word:
        """Apply one review outcome to a word and persist it.

        Raises:
            ValueError: if the word does not exist.
            TerminalEntryError: if the word is already learned or a leech.
        """
        word = self.db.query(Word).filter(Word.id == word_id).first()
        if not word:
            raise ValueError(f"Word {word_id} not found")

        previous_stage, previous_round = word.stage, word.round
        update = advance(word, remembered, now)
        profile_id = (
            self.db.query(Notebook.profile_id)
            .join(Page, Page.notebook_id == Notebook.id)
            .filter(Page.id == word.page_id)
            .scalar()
        )

        update.apply_to(word)
        self.db.add(
            ReviewLog(
                word_id=word.id,
                profile_id=profile_id,
                remembered=remembered,
                stage=previous_stage,
                round=previous_round,
                created_at=now,
            )
        )
        self.user_service.record_activity(profile_id, now, commit=False)
        self.db.commit()
        self.db.refresh(word)

        self._count_outcome(update, previous_stage, remembered)
        logger.info(
            "Word %d reviewed (%s): %s/%d -> %s/%d, status %s",
            word.id,
            "remembered" if remembered else "forgotten",
            previous_stage.value,
            previous_round,
            update.stage.value,
            update.round,
            update.status.value,
        )

        self._reschedule_reminder(profile_id, now)
        return word

    def _count_outcome(self, update: EntryUpdate, previous_stage: Stage, remembered: bool) -> None:
        monitoring.reviews_recorded.labels(outcome="remembered" if remembered else "forgotten").inc()
        if update.status is WordStatus.LEARNED:
            monitoring.words_learned.inc()
        elif update.status is WordStatus.LEECH:
            monitoring.leeches.inc()
        elif update.stage is not previous_stage:
            monitoring.stage_promotions.labels(stage=update.stage.value).inc()

    def _reschedule_reminder(self, profile_id: int, now: datetime) -> None:
        """Best-effort reminder update; the review itself is already committed."""
        try:
            profile = self.user_service.get_profile(profile_id)
            if profile:
                self.notification_service.reschedule_reminder(profile, now)
        except Exception as e:
            self.db.rollback()
            monitoring.error_count.labels(error_type="reminder_reschedule").inc()
            logger.error("Failed to reschedule reminder for profile %d: %s", profile_id, str(e))

    def review_session(self, outcomes: Dict[int, bool], now: datetime) -> ReviewSessionStats:
        """Record a batch of outcomes and return the session summary."""
        stats = ReviewSessionStats()
        for word_id, remembered in outcomes.items():
            word = self.db.query(Word).filter(Word.id == word_id).first()
            if not word:
                raise ValueError(f"Word {word_id} not found")
            stage, round_ = word.stage, word.round
            self.record_review(word_id, remembered, now)
            stats.record(word_id, stage, round_, remembered)
        return stats
