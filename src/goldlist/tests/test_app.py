"""Tests for the main application."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from goldlist.app import REMINDER_REFRESH_INTERVAL, GoldlistApp
from goldlist.clock import Clock


@pytest.fixture
def mocks():
    """Patch the bot, metrics server and scheduler."""
    mock_bot = AsyncMock()
    mock_scheduler = AsyncMock()
    mock_scheduler.schedule_task = MagicMock()

    with patch("goldlist.app.settings") as mock_settings, \
            patch("goldlist.app.Bot", return_value=mock_bot), \
            patch("goldlist.app.start_monitoring") as mock_monitoring, \
            patch("goldlist.app.SchedulerService", return_value=mock_scheduler):
        mock_settings.bot.token = "test_token"
        mock_settings.bot.metrics_port = 9999
        yield {
            "settings": mock_settings,
            "bot": mock_bot,
            "scheduler": mock_scheduler,
            "monitoring": mock_monitoring,
        }


@pytest.mark.asyncio
async def test_start_stop(mocks) -> None:
    """Test starting and stopping the application."""
    app = GoldlistApp(clock=Clock(offset_days=0))

    await app.start()
    assert app.running is True
    mocks["bot"].initialize.assert_awaited_once()
    mocks["monitoring"].assert_called_once_with(9999)
    mocks["scheduler"].start.assert_awaited_once()
    name, coro, interval = mocks["scheduler"].schedule_task.call_args.args
    assert name == "reminder_refresh"
    assert coro is mocks["scheduler"].refresh_reminders
    assert interval == REMINDER_REFRESH_INTERVAL

    await app.stop()
    assert app.running is False
    mocks["scheduler"].stop.assert_awaited_once()
    mocks["bot"].shutdown.assert_awaited_once()
    assert app.db is None


@pytest.mark.asyncio
async def test_start_requires_token(mocks) -> None:
    """Test that the application refuses to start without a bot token."""
    mocks["settings"].bot.token = ""
    app = GoldlistApp()

    with pytest.raises(ValueError):
        await app.start()
    assert app.running is False


@pytest.mark.asyncio
async def test_start_failure_cleans_up(mocks) -> None:
    """Test that a failed start releases what was acquired."""
    mocks["bot"].initialize.side_effect = RuntimeError("network down")
    app = GoldlistApp()

    with pytest.raises(RuntimeError):
        await app.start()
    mocks["bot"].shutdown.assert_awaited_once()
    assert app.db is None
    assert app.running is False


if __name__ == "__main__":
    pytest.main([__file__])
