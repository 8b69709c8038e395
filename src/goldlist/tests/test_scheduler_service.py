"""Tests for scheduler service."""
import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.orm import Session
from telegram import Bot
from telegram.error import Forbidden, NetworkError

from goldlist.clock import Clock
from goldlist.models.learning_models import WordStatus
from goldlist.models.models import Notebook, Profile
from goldlist.services.notebook_service import NotebookService
from goldlist.services.scheduler_service import SchedulerService

REMINDER_DUE = datetime(2025, 3, 24, 10, 0, tzinfo=UTC)


@pytest.fixture
def mock_bot() -> Mock:
    """Create a mock Telegram bot."""
    bot = Mock(spec=Bot)
    bot.token = "test_token"
    bot.send_message = AsyncMock()
    return bot


@pytest.fixture
def clock(now: datetime) -> Mock:
    """A clock frozen at ``now``."""
    clock = Mock(spec=Clock)
    clock.now.return_value = now
    return clock


@pytest.fixture
def scheduler_service(mock_bot: Mock, db: Session, clock: Mock) -> SchedulerService:
    """Create a scheduler service instance."""
    return SchedulerService(mock_bot, db, clock)


@pytest.fixture
def words(db: Session, notebook: Notebook, now: datetime) -> list:
    """Two words written on page 1."""
    service = NotebookService(db)
    return [
        service.add_word(notebook.id, 1, "nube", "cloud", now),
        service.add_word(notebook.id, 1, "lluvia", "rain", now),
    ]


@pytest.fixture
def scheduled_profile(scheduler_service: SchedulerService, profile: Profile, words: list, now: datetime) -> Profile:
    """Profile with a reminder pending for its first review day."""
    scheduler_service.notification_service.reschedule_reminder(profile, now)
    return profile


@pytest.mark.asyncio
async def test_start_stop(scheduler_service: SchedulerService) -> None:
    """Test starting and stopping the scheduler service."""
    await scheduler_service.start()
    assert scheduler_service.running is True
    assert list(scheduler_service.tasks) == ["review_reminders"]

    # Starting twice does nothing
    await scheduler_service.start()
    assert len(scheduler_service.tasks) == 1

    await scheduler_service.stop()
    assert scheduler_service.running is False
    assert len(scheduler_service.tasks) == 0


@pytest.mark.asyncio
async def test_schedule_task(scheduler_service: SchedulerService) -> None:
    """Test periodic task registration."""
    job = AsyncMock()
    await scheduler_service.start()
    try:
        scheduler_service.schedule_task("refresh", job, 3600)
        scheduler_service.schedule_task("refresh", job, 3600)
        assert set(scheduler_service.tasks) == {"review_reminders", "refresh"}

        await asyncio.sleep(0)
        job.assert_awaited_once()
    finally:
        await scheduler_service.stop()


@pytest.mark.asyncio
async def test_send_due_reminders(
    scheduler_service: SchedulerService, scheduled_profile: Profile, mock_bot: Mock, clock: Mock
) -> None:
    """Test delivering a reminder that came due."""
    # Before the reminder hour nothing goes out
    clock.now.return_value = datetime(2025, 3, 24, 8, 0, tzinfo=UTC)
    assert await scheduler_service.send_due_reminders() == 0
    mock_bot.send_message.assert_not_awaited()

    clock.now.return_value = REMINDER_DUE
    assert await scheduler_service.send_due_reminders() == 1

    mock_bot.send_message.assert_awaited_once()
    kwargs = mock_bot.send_message.await_args.kwargs
    assert kwargs["chat_id"] == scheduled_profile.telegram_chat_id
    assert "You have 2 Goldlist reviews waiting for today!" in kwargs["text"]

    # Words are still unreviewed, so the next reminder is tomorrow morning
    assert scheduled_profile.last_notification_time is not None
    assert scheduled_profile.next_reminder_at.date() == datetime(2025, 3, 25).date()


@pytest.mark.asyncio
async def test_nothing_due_clears_reminder(
    scheduler_service: SchedulerService,
    scheduled_profile: Profile,
    words: list,
    mock_bot: Mock,
    clock: Mock,
    db: Session,
) -> None:
    """Test that a reminder with nothing left to review sends nothing."""
    for word in words:
        word.status = WordStatus.LEARNED
        word.next_review_date = None
    db.commit()

    clock.now.return_value = REMINDER_DUE
    assert await scheduler_service.send_due_reminders() == 0

    mock_bot.send_message.assert_not_awaited()
    assert scheduled_profile.next_reminder_at is None


@pytest.mark.asyncio
async def test_blocked_user_disables_notifications(
    scheduler_service: SchedulerService, scheduled_profile: Profile, mock_bot: Mock, clock: Mock
) -> None:
    """Test that a blocked bot stops reminding the profile."""
    mock_bot.send_message.side_effect = Forbidden("Forbidden: bot was blocked by the user")
    clock.now.return_value = REMINDER_DUE

    assert await scheduler_service.send_due_reminders() == 0

    assert scheduled_profile.notifications_enabled is False
    assert scheduled_profile.next_reminder_at is None


@pytest.mark.asyncio
async def test_network_error_keeps_reminder(
    scheduler_service: SchedulerService, scheduled_profile: Profile, mock_bot: Mock, clock: Mock
) -> None:
    """Test that a transient failure leaves the reminder due."""
    mock_bot.send_message.side_effect = NetworkError("Timed out")
    clock.now.return_value = REMINDER_DUE

    assert await scheduler_service.send_due_reminders() == 0

    assert scheduled_profile.notifications_enabled is True
    assert scheduled_profile.next_reminder_at.date() == datetime(2025, 3, 24).date()
    assert scheduler_service.notification_service.get_profiles_due_for_reminder(REMINDER_DUE) == [scheduled_profile]


@pytest.mark.asyncio
async def test_refresh_reminders(
    scheduler_service: SchedulerService, profile: Profile, words: list
) -> None:
    """Test scheduling reminders for profiles without one."""
    assert profile.next_reminder_at is None

    assert await scheduler_service.refresh_reminders() == 1
    assert profile.next_reminder_at is not None
    assert await scheduler_service.refresh_reminders() == 0


def test_is_user_blocked_error(scheduler_service: SchedulerService) -> None:
    """Test recognizing errors that mean the chat is gone."""
    assert scheduler_service._is_user_blocked_error(Forbidden("Forbidden: bot was blocked by the user"))
    assert scheduler_service._is_user_blocked_error(Exception("Chat not found"))
    assert not scheduler_service._is_user_blocked_error(Exception("Message is too long"))


if __name__ == "__main__":
    pytest.main([__file__])
