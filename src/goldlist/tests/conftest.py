"""Test configuration."""
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Generator

import pytest

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{Path(tempfile.gettempdir()) / 'goldlist_test.db'}",
)

# Import after environment setup
from faker import Faker
from sqlalchemy.orm import Session

from goldlist.models.base import Base, SessionLocal, engine, init_db
from goldlist.models.models import Notebook, Profile

fake = Faker()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def now() -> datetime:
    """A fixed point in time, mid-day UTC."""
    return datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def profile(db: Session, now: datetime) -> Profile:
    """Create a test profile."""
    profile = Profile(
        username=fake.user_name(),
        telegram_chat_id=fake.random_int(min=1000, max=999999),
        target_lang="es",
        daily_word_goal=20,
        current_streak=0,
        notifications_enabled=True,
        created_at=now,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def notebook(db: Session, profile: Profile, now: datetime) -> Notebook:
    """Create a notebook opened on ``now``."""
    notebook = Notebook(
        profile_id=profile.id,
        name="Spanish",
        words_per_page_limit=20,
        is_active=True,
        created_at=now,
    )
    db.add(notebook)
    db.commit()
    db.refresh(notebook)
    return notebook
