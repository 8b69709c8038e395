"""Service for scheduling review reminders."""
from datetime import UTC, date, datetime, time, timedelta
from typing import List, Optional
import logging

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from goldlist.clock import ensure_aware, to_utc_date
from goldlist.config import settings
from goldlist.models.learning_models import TERMINAL_STATUSES
from goldlist.models.models import Notebook, Page, Profile, Word

logger = logging.getLogger(__name__)


def reminder_time(review_date: date, now: datetime, hour: Optional[int] = None) -> Optional[datetime]:
    """Moment the reminder for ``review_date`` should fire.

    Reminders go out at the configured hour (UTC) of the review day. When that
    hour already passed today the reminder moves to tomorrow; review dates in
    the past get no reminder.
    """
    if hour is None:
        hour = settings.notification.reminder_hour
    now = ensure_aware(now)
    today = to_utc_date(now)

    if review_date < today:
        return None

    scheduled = datetime.combine(review_date, time(hour=hour), tzinfo=UTC)
    if scheduled <= now and review_date == today:
        scheduled += timedelta(days=1)
    return scheduled


class NotificationService:
    """Service for computing and tracking review reminders."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_next_review_date(self, profile_id: int) -> Optional[date]:
        """Earliest review date over the profile's words still in rotation."""
        return (
            self.db.query(func.min(Word.next_review_date))
            .join(Page, Word.page_id == Page.id)
            .join(Notebook, Page.notebook_id == Notebook.id)
            .filter(
                and_(
                    Notebook.profile_id == profile_id,
                    Word.next_review_date.isnot(None),
                    Word.status.notin_(TERMINAL_STATUSES),
                )
            )
            .scalar()
        )

    def get_due_word_count(self, profile_id: int, now: datetime) -> int:
        """Number of words due on or before today."""
        return (
            self.db.query(Word)
            .join(Page, Word.page_id == Page.id)
            .join(Notebook, Page.notebook_id == Notebook.id)
            .filter(
                and_(
                    Notebook.profile_id == profile_id,
                    Word.due_on(to_utc_date(now)),
                )
            )
            .count()
        )

    def reschedule_reminder(self, profile: Profile, now: datetime) -> Optional[datetime]:
        """Replace the pending reminder of ``profile`` with one for its next review."""
        profile.next_reminder_at = None

        if not profile.notifications_enabled:
            logger.debug("Notifications disabled for profile %d, skipping scheduling", profile.id)
            self.db.commit()
            return None

        review_date = self.get_next_review_date(profile.id)
        if review_date is None:
            logger.info("No upcoming reviews for profile %d, no reminder scheduled", profile.id)
            self.db.commit()
            return None

        scheduled = reminder_time(review_date, now)
        if scheduled is None:
            logger.info(
                "Next review %s for profile %d is in the past, not scheduling a reminder",
                review_date,
                profile.id,
            )
            self.db.commit()
            return None

        profile.next_reminder_at = scheduled
        self.db.commit()
        logger.info("Reminder for profile %d scheduled at %s", profile.id, scheduled.isoformat())
        return scheduled

    def get_profiles_due_for_reminder(self, now: datetime) -> List[Profile]:
        """Profiles whose reminder time has come."""
        return (
            self.db.query(Profile)
            .filter(
                and_(
                    Profile.notifications_enabled == True,
                    Profile.telegram_chat_id.isnot(None),
                    Profile.next_reminder_at.isnot(None),
                    Profile.next_reminder_at <= now,
                )
            )
            .all()
        )

    def get_profiles_without_reminder(self) -> List[Profile]:
        """Reachable profiles with no reminder pending."""
        return (
            self.db.query(Profile)
            .filter(
                and_(
                    Profile.notifications_enabled == True,
                    Profile.telegram_chat_id.isnot(None),
                    Profile.next_reminder_at.is_(None),
                )
            )
            .all()
        )

    def get_review_reminder_message(self, profile: Profile, now: datetime) -> Optional[str]:
        """Reminder text, or None when nothing is due."""
        due = self.get_due_word_count(profile.id, now)
        if not due:
            return None
        return (
            "Goldlist Review Reminder\n\n"
            f"You have {due} Goldlist review{'s' if due != 1 else ''} waiting for today!"
        )

    def update_last_notification_time(self, profile: Profile, now: datetime) -> None:
        """Update the profile's last notification time."""
        profile.last_notification_time = now
        self.db.commit()
