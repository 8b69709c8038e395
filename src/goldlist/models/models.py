"""Database models for the application."""
from datetime import date

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    and_,
)
from sqlalchemy.orm import relationship

from goldlist.config import settings
from goldlist.models.base import Base, TimestampMixin, UTCDateTime
from goldlist.models.learning_models import TERMINAL_STATUSES, Stage, WordStatus


def _enum_column(enum_class):
    """Store enum values ("bronze", "waiting") rather than member names."""
    return Enum(
        enum_class,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class Profile(Base, TimestampMixin):
    """Learner profile."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=True)
    telegram_chat_id = Column(Integer, unique=True, nullable=True)
    target_lang = Column(String, nullable=True)
    daily_word_goal = Column(Integer, default=settings.learning.daily_word_goal)
    current_streak = Column(Integer, default=0, nullable=False)
    last_activity_date = Column(Date, nullable=True)
    notifications_enabled = Column(Boolean, default=True)
    next_reminder_at = Column(UTCDateTime(timezone=True), nullable=True)
    last_notification_time = Column(UTCDateTime(timezone=True), nullable=True)

    # Relationships
    notebooks = relationship("Notebook", back_populates="profile", cascade="all, delete-orphan")
    activity = relationship("ActivityLog", back_populates="profile", cascade="all, delete-orphan")


class Notebook(Base, TimestampMixin):
    """A Goldlist notebook: 200 pages, one per day."""

    __tablename__ = "notebooks"

    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    name = Column(String, nullable=False)
    words_per_page_limit = Column(Integer, default=settings.learning.words_per_page, nullable=False)
    is_active = Column(Boolean, default=True)

    # Relationships
    profile = relationship("Profile", back_populates="notebooks")
    pages = relationship("Page", back_populates="notebook", cascade="all, delete-orphan")


class Page(Base, TimestampMixin):
    """Notebook page, created lazily with its first word."""

    __tablename__ = "pages"
    __table_args__ = (UniqueConstraint("notebook_id", "page_number"),)

    id = Column(Integer, primary_key=True)
    notebook_id = Column(Integer, ForeignKey("notebooks.id"), nullable=False)
    page_number = Column(Integer, nullable=False)
    target_date = Column(Date, nullable=False)
    title = Column(String, nullable=True)

    # Relationships
    notebook = relationship("Notebook", back_populates="pages")
    words = relationship("Word", back_populates="page", cascade="all, delete-orphan")


class Word(Base, TimestampMixin):
    """Vocabulary entry moved through the bronze/silver/gold ladder."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    page_id = Column(Integer, ForeignKey("pages.id"), nullable=False)
    term = Column(String, nullable=False)
    definition = Column(String, nullable=False)
    word_type = Column(String, nullable=True)
    example_sentence = Column(String, nullable=True)
    example_translation = Column(String, nullable=True)
    stage = Column(_enum_column(Stage), default=Stage.BRONZE, nullable=False)
    round = Column(Integer, default=1, nullable=False)
    status = Column(_enum_column(WordStatus), default=WordStatus.WAITING, nullable=False)
    next_review_date = Column(Date, nullable=True, index=True)

    # Relationships
    page = relationship("Page", back_populates="words")
    reviews = relationship("ReviewLog", back_populates="word", cascade="all, delete-orphan")

    @classmethod
    def due_on(cls, today: date):
        """SQL condition for words in the review queue on ``today``."""
        return and_(
            cls.next_review_date.isnot(None),
            cls.next_review_date <= today,
            cls.status.notin_(TERMINAL_STATUSES),
        )


class ActivityLog(Base, TimestampMixin):
    """One row per profile per day with a word added or reviewed."""

    __tablename__ = "activity_log"
    __table_args__ = (UniqueConstraint("profile_id", "activity_date"),)

    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    activity_date = Column(Date, nullable=False)

    # Relationships
    profile = relationship("Profile", back_populates="activity")


class ReviewLog(Base, TimestampMixin):
    """Outcome of a single review."""

    __tablename__ = "review_log"

    id = Column(Integer, primary_key=True)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=False)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    remembered = Column(Boolean, nullable=False)
    stage = Column(_enum_column(Stage), nullable=False)  # stage at review time
    round = Column(Integer, nullable=False)

    # Relationships
    word = relationship("Word", back_populates="reviews")
