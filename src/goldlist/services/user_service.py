"""User service for managing profiles, activity and statistics."""
from datetime import date, datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from goldlist.clock import to_utc_date
from goldlist.config import settings
from goldlist.models.learning_models import StreakDisplay, WordStatus
from goldlist.models.models import ActivityLog, Notebook, Page, Profile, ReviewLog, Word
from goldlist.services.streak import display_streak, next_streak

# Configure logging
logger = logging.getLogger(__name__)

DASHBOARD_PERIODS = {"week": 7, "month": 30}


class UserService:
    """Service for managing profile data and preferences."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_profile(self, profile_id: int) -> Optional[Profile]:
        """Get profile by ID."""
        return self.db.query(Profile).filter(Profile.id == profile_id).first()

    def get_profile_by_chat_id(self, telegram_chat_id: int) -> Optional[Profile]:
        """Get profile by Telegram chat ID."""
        return self.db.query(Profile).filter(Profile.telegram_chat_id == telegram_chat_id).first()

    def _require_profile(self, profile_id: int) -> Profile:
        profile = self.get_profile(profile_id)
        if not profile:
            raise ValueError(f"Profile {profile_id} not found")
        return profile

    def get_or_create_profile(
        self,
        username: Optional[str] = None,
        telegram_chat_id: Optional[int] = None,
        target_lang: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Profile:
        """Get existing profile or create a new one."""
        profile = None
        if telegram_chat_id is not None:
            profile = self.get_profile_by_chat_id(telegram_chat_id)
        if profile is None and username is not None:
            profile = self.db.query(Profile).filter(Profile.username == username).first()

        if not profile:
            profile = Profile(
                username=username,
                telegram_chat_id=telegram_chat_id,
                target_lang=target_lang,
                daily_word_goal=settings.learning.daily_word_goal,
                current_streak=0,
                notifications_enabled=settings.notification.enabled,
            )
            if now is not None:
                profile.created_at = now
                profile.updated_at = now
            self.db.add(profile)
            self.db.commit()
            self.db.refresh(profile)
            logger.info("Profile created: %s (ID: %d)", username, profile.id)

        return profile

    def update_profile_settings(
        self,
        profile_id: int,
        target_lang: Optional[str] = None,
        daily_word_goal: Optional[int] = None,
        notifications_enabled: Optional[bool] = None,
        telegram_chat_id: Optional[int] = None,
    ) -> Profile:
        """Update profile settings."""
        profile = self._require_profile(profile_id)
        changes = []
        if target_lang is not None:
            profile.target_lang = target_lang
            changes.append(f"target_lang: {target_lang}")
        if daily_word_goal is not None:
            if daily_word_goal < 0:
                raise ValueError("Daily word goal cannot be negative")
            profile.daily_word_goal = daily_word_goal
            changes.append(f"daily_word_goal: {daily_word_goal}")
        if notifications_enabled is not None:
            profile.notifications_enabled = notifications_enabled
            if not notifications_enabled:
                profile.next_reminder_at = None
            changes.append(f"notifications_enabled: {notifications_enabled}")
        if telegram_chat_id is not None:
            profile.telegram_chat_id = telegram_chat_id
            changes.append(f"telegram_chat_id: {telegram_chat_id}")

        self.db.commit()
        self.db.refresh(profile)
        logger.info("Profile %d settings updated: [%s]", profile_id, ", ".join(changes))
        return profile

    def record_activity(self, profile_id: int, now: datetime, commit: bool = True) -> Profile:
        """Register a qualifying activity (word added or reviewed) at ``now``."""
        profile = self._require_profile(profile_id)
        today = to_utc_date(now)

        existing = (
            self.db.query(ActivityLog)
            .filter(
                and_(
                    ActivityLog.profile_id == profile_id,
                    ActivityLog.activity_date == today,
                )
            )
            .first()
        )
        if not existing:
            self.db.add(ActivityLog(profile_id=profile_id, activity_date=today, created_at=now))

        profile.current_streak = next_streak(profile.last_activity_date, profile.current_streak, now)
        if profile.last_activity_date is None or profile.last_activity_date < today:
            profile.last_activity_date = today

        if commit:
            self.db.commit()
        else:
            self.db.flush()
        return profile

    def get_display_streak(self, profile_id: int, now: datetime) -> StreakDisplay:
        """Streak and status to show for the profile at ``now``."""
        profile = self._require_profile(profile_id)
        return display_streak(profile.last_activity_date, profile.current_streak, now)

    def get_activity_log(self, profile_id: int, now: datetime, days_back: int = 365) -> List[date]:
        """Days with activity within ``days_back`` days before ``now``."""
        today = to_utc_date(now)
        start = today - timedelta(days=days_back)
        rows = (
            self.db.query(ActivityLog.activity_date)
            .filter(
                and_(
                    ActivityLog.profile_id == profile_id,
                    ActivityLog.activity_date >= start,
                    ActivityLog.activity_date <= today,
                )
            )
            .order_by(ActivityLog.activity_date)
            .all()
        )
        return [row.activity_date for row in rows]

    def _profile_words(self, profile_id: int):
        return (
            self.db.query(Word)
            .join(Page, Word.page_id == Page.id)
            .join(Notebook, Page.notebook_id == Notebook.id)
            .filter(Notebook.profile_id == profile_id)
        )

    def get_dashboard_stats(self, profile_id: int, period: str, now: datetime) -> dict:
        """Word and review statistics over the last week or month."""
        profile = self._require_profile(profile_id)
        days = DASHBOARD_PERIODS.get(period.lower())
        if days is None:
            raise ValueError(f"Unknown period {period!r}, expected Week or Month")

        start = now - timedelta(days=days)

        total_words = self._profile_words(profile_id).count()
        words_added = self._profile_words(profile_id).filter(Word.created_at >= start).count()
        words_should_add = (profile.daily_word_goal or 0) * days

        reviewed, remembered = (
            self.db.query(
                func.count(ReviewLog.id),
                func.coalesce(func.sum(case((ReviewLog.remembered == True, 1), else_=0)), 0),
            )
            .filter(
                and_(
                    ReviewLog.profile_id == profile_id,
                    ReviewLog.created_at >= start,
                )
            )
            .one()
        )
        remembered = int(remembered)

        return {
            "total_words": total_words,
            "words_added_period": words_added,
            "words_should_add": words_should_add,
            "words_added_percentage": (
                round(words_added / words_should_add * 100, 1) if words_should_add > 0 else 0
            ),
            "words_reviewed_period": reviewed,
            "words_remembered_period": remembered,
            "mastery_rate_percentage": round(remembered / reviewed * 100, 1) if reviewed > 0 else 0,
        }

    def get_learned_count(self, profile_id: int) -> int:
        """Number of words distilled out as learned."""
        return self._profile_words(profile_id).filter(Word.status == WordStatus.LEARNED).count()

    def get_profiles_count(self) -> int:
        """Get the total number of profiles in the database."""
        return self.db.query(Profile).count()
