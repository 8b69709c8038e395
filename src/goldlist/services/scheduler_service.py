"""Service for delivering scheduled review reminders."""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session
from telegram import Bot
from telegram.error import BadRequest, Forbidden, TelegramError

from goldlist import monitoring
from goldlist.clock import Clock
from goldlist.config import settings
from goldlist.models.models import Profile
from goldlist.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class SchedulerService:
    """Service for running the reminder loop."""

    def __init__(self, bot: Bot, db: Session, clock: Optional[Clock] = None):
        """Initialize the service with a Telegram bot instance and database session."""
        self.bot = bot
        self.db = db
        self.clock = clock or Clock()
        self.tasks: Dict[str, asyncio.Task] = {}
        self.running = False
        self.notification_service = NotificationService(db)

    async def start(self) -> None:
        """Start the scheduler service."""
        if self.running:
            return

        self.running = True
        logger.info("Starting scheduler service...")

        self.tasks["review_reminders"] = asyncio.create_task(self._run_review_reminders())

    async def stop(self) -> None:
        """Stop the scheduler service."""
        if not self.running:
            return

        self.running = False
        logger.info("Stopping scheduler service...")

        for task in self.tasks.values():
            task.cancel()

        await asyncio.gather(*self.tasks.values(), return_exceptions=True)
        self.tasks.clear()

    async def send_due_reminders(self) -> int:
        """Send every reminder whose time has come; returns how many were delivered."""
        now = self.clock.now()
        sent = 0
        for profile in self.notification_service.get_profiles_due_for_reminder(now):
            if await self._send_reminder(profile):
                sent += 1
        return sent

    async def refresh_reminders(self) -> int:
        """Schedule reminders for profiles that have none pending."""
        now = self.clock.now()
        scheduled = 0
        for profile in self.notification_service.get_profiles_without_reminder():
            if self.notification_service.reschedule_reminder(profile, now):
                scheduled += 1
        return scheduled

    async def _send_reminder(self, profile: Profile) -> bool:
        now = self.clock.now()
        try:
            message = self.notification_service.get_review_reminder_message(profile, now)
            if message:
                await self.bot.send_message(chat_id=profile.telegram_chat_id, text=message)
                self.notification_service.update_last_notification_time(profile, now)
                monitoring.reminders_sent.inc()
                logger.info(
                    "Sent review reminder to profile %s (chat ID: %d)",
                    profile.username,
                    profile.telegram_chat_id,
                )
            # Move on to the next review date whether or not anything was due
            self.notification_service.reschedule_reminder(profile, now)
            return bool(message)

        except (Forbidden, BadRequest) as e:
            logger.error(
                "Failed to send review reminder to profile %s (chat ID: %d): %s",
                profile.username,
                profile.telegram_chat_id,
                str(e),
            )
            monitoring.error_count.labels(error_type="telegram_rejected").inc()
            if self._is_user_blocked_error(e):
                profile.notifications_enabled = False
                profile.next_reminder_at = None
                self.db.commit()
                logger.info(
                    "Disabled notifications for profile %s (chat ID: %d) - bot was blocked",
                    profile.username,
                    profile.telegram_chat_id,
                )
        except TelegramError as e:
            # Network issues and the like; the reminder stays due and is retried
            logger.error(
                "Telegram error sending review reminder to profile %s (chat ID: %d): %s",
                profile.username,
                profile.telegram_chat_id,
                str(e),
            )
            monitoring.error_count.labels(error_type="telegram").inc()
        return False

    async def _run_review_reminders(self) -> None:
        """Run review reminder task."""
        while self.running:
            try:
                await self.send_due_reminders()
                await asyncio.sleep(settings.notification.check_interval)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error in review reminder task: %s", str(e))
                monitoring.error_count.labels(error_type="scheduler").inc()
                self.db.rollback()
                await asyncio.sleep(60)  # Wait 1 minute before retrying

    def schedule_task(
        self,
        name: str,
        coro: Callable,
        interval: float,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        """Schedule a new periodic task."""
        if name in self.tasks:
            logger.warning("Task %s already exists", name)
            return

        async def run_task() -> None:
            while self.running:
                try:
                    await coro(*args, **kwargs)
                    await asyncio.sleep(interval)
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error("Error in task %s: %s", name, str(e))
                    await asyncio.sleep(60)  # Wait 1 minute before retrying

        self.tasks[name] = asyncio.create_task(run_task())
        logger.info("Scheduled task: %s", name)

    def _is_user_blocked_error(self, error: Exception) -> bool:
        """Check if the error indicates the user blocked the bot."""
        error_str = str(error).lower()

        blocked_patterns = [
            "bot was blocked by the user",
            "forbidden: bot was blocked",
            "forbidden: user is deactivated",
            "chat not found",
            "user not found",
        ]

        return any(pattern in error_str for pattern in blocked_patterns)
