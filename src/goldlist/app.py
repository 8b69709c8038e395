"""Main application: database, metrics and the reminder scheduler."""
import logging
from typing import Optional

from telegram import Bot

from goldlist.clock import Clock
from goldlist.config import settings
from goldlist.models.base import SessionLocal, init_db
from goldlist.monitoring import start_monitoring
from goldlist.services.scheduler_service import SchedulerService

REMINDER_REFRESH_INTERVAL = 3600  # seconds


class GoldlistApp:
    """Main application class."""

    def __init__(self, clock: Optional[Clock] = None):
        """Initialize the application."""
        self.clock = clock or Clock()
        self.bot: Optional[Bot] = None
        self.scheduler: Optional[SchedulerService] = None
        self.running = False
        self.db = None
        self.logger = logging.getLogger(__name__)

    async def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        if not settings.bot.token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required to deliver reminders")

        try:
            init_db()
            self.db = SessionLocal()
            self.logger.info("Database initialized")

            start_monitoring(settings.bot.metrics_port)
            self.logger.info("Metrics server listening on port %d", settings.bot.metrics_port)

            self.bot = Bot(token=settings.bot.token)
            await self.bot.initialize()

            self.scheduler = SchedulerService(self.bot, self.db, self.clock)
            await self.scheduler.start()
            self.scheduler.schedule_task(
                "reminder_refresh",
                self.scheduler.refresh_reminders,
                REMINDER_REFRESH_INTERVAL,
            )
            if self.clock.is_simulated:
                self.logger.warning("Running with a simulated clock: %s", self.clock.now().isoformat())

            self.running = True
            self.logger.info("Application started")
        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the application."""
        if self.scheduler:
            await self.scheduler.stop()
            self.scheduler = None

        if self.bot:
            await self.bot.shutdown()
            self.bot = None

        if self.db:
            self.db.close()
            self.db = None

        self.running = False
        self.logger.info("Application stopped")
