"""Tests for user service."""
from datetime import date, datetime, timedelta

import pytest
from faker import Faker
from sqlalchemy.orm import Session

from goldlist.models.learning_models import StreakStatus
from goldlist.models.models import Notebook, Profile
from goldlist.services.notebook_service import NotebookService
from goldlist.services.review_service import ReviewService
from goldlist.services.user_service import UserService

fake = Faker()


@pytest.fixture
def user_service(db: Session) -> UserService:
    """Create a user service instance."""
    return UserService(db)


def test_get_or_create_profile(user_service: UserService, now: datetime) -> None:
    """Test profile creation and retrieval."""
    chat_id = fake.random_int(min=1000, max=999999)
    username = fake.user_name()
    profile = user_service.get_or_create_profile(username=username, telegram_chat_id=chat_id, target_lang="it", now=now)

    assert profile.username == username
    assert profile.telegram_chat_id == chat_id
    assert profile.target_lang == "it"
    assert profile.current_streak == 0

    existing = user_service.get_or_create_profile(username="someone_else", telegram_chat_id=chat_id)
    assert existing.id == profile.id
    assert existing.username == username
    assert user_service.get_profiles_count() == 1


def test_update_profile_settings(user_service: UserService, profile: Profile) -> None:
    """Test updating profile settings."""
    profile.next_reminder_at = datetime(2025, 3, 11, 9, 0)
    user_service.db.commit()

    updated = user_service.update_profile_settings(
        profile.id,
        target_lang="pt",
        daily_word_goal=10,
        notifications_enabled=False,
    )

    assert updated.target_lang == "pt"
    assert updated.daily_word_goal == 10
    assert updated.notifications_enabled is False
    assert updated.next_reminder_at is None

    with pytest.raises(ValueError):
        user_service.update_profile_settings(profile.id, daily_word_goal=-5)
    with pytest.raises(ValueError):
        user_service.update_profile_settings(profile.id + 1000, target_lang="fr")


def test_record_activity_builds_streak(user_service: UserService, profile: Profile, now: datetime) -> None:
    """Test streak growth over consecutive days and its reset after a gap."""
    for offset in range(3):
        user_service.record_activity(profile.id, now + timedelta(days=offset))
    assert profile.current_streak == 3
    assert profile.last_activity_date == date(2025, 3, 12)

    # Same day again does not count twice
    user_service.record_activity(profile.id, now + timedelta(days=2, hours=5))
    assert profile.current_streak == 3

    user_service.record_activity(profile.id, now + timedelta(days=5))
    assert profile.current_streak == 1


def test_display_streak(user_service: UserService, profile: Profile, now: datetime) -> None:
    """Test the three display states from stored values."""
    user_service.record_activity(profile.id, now - timedelta(days=1))
    user_service.record_activity(profile.id, now)

    assert user_service.get_display_streak(profile.id, now).status is StreakStatus.COMPLETED
    pending = user_service.get_display_streak(profile.id, now + timedelta(days=1))
    assert (pending.streak, pending.status) == (2, StreakStatus.PENDING)
    broken = user_service.get_display_streak(profile.id, now + timedelta(days=2))
    assert (broken.streak, broken.status) == (0, StreakStatus.BROKEN)

    # Display never writes back
    assert user_service.get_profile(profile.id).current_streak == 2


def test_activity_log(user_service: UserService, profile: Profile, now: datetime) -> None:
    """Test the list of active days."""
    for offset in (0, 1, 3, 400):
        user_service.record_activity(profile.id, now - timedelta(days=offset))

    days = user_service.get_activity_log(profile.id, now)
    assert days == [date(2025, 3, 7), date(2025, 3, 9), date(2025, 3, 10)]
    assert user_service.get_activity_log(profile.id, now, days_back=1) == [date(2025, 3, 9), date(2025, 3, 10)]


def test_dashboard_stats(
    user_service: UserService, db: Session, notebook: Notebook, profile: Profile, now: datetime
) -> None:
    """Test weekly and monthly statistics."""
    notebook_service = NotebookService(db)
    review_service = ReviewService(db)

    words = [notebook_service.add_word(notebook.id, 1, f"w{i}", f"d{i}", now) for i in range(4)]
    review_day = now + timedelta(days=14)
    notebook_service.add_word(notebook.id, 15, "nuevo", "new", review_day)
    review_service.record_review(words[0].id, True, review_day)
    review_service.record_review(words[1].id, True, review_day)
    review_service.record_review(words[2].id, False, review_day)

    week = user_service.get_dashboard_stats(profile.id, "Week", review_day)
    assert week["total_words"] == 5
    assert week["words_added_period"] == 1
    assert week["words_should_add"] == 140
    assert week["words_added_percentage"] == 0.7
    assert week["words_reviewed_period"] == 3
    assert week["words_remembered_period"] == 2
    assert week["mastery_rate_percentage"] == 66.7

    month = user_service.get_dashboard_stats(profile.id, "Month", review_day)
    assert month["words_added_period"] == 5
    assert month["words_should_add"] == 600

    assert user_service.get_learned_count(profile.id) == 2

    with pytest.raises(ValueError):
        user_service.get_dashboard_stats(profile.id, "Year", review_day)


def test_dashboard_stats_empty(user_service: UserService, profile: Profile, now: datetime) -> None:
    """Test statistics of a profile without words."""
    stats = user_service.get_dashboard_stats(profile.id, "week", now)
    assert stats["total_words"] == 0
    assert stats["mastery_rate_percentage"] == 0
    assert stats["words_added_percentage"] == 0


if __name__ == "__main__":
    pytest.main([__file__])
