"""Service for managing notebooks, pages and the words written on them."""
from datetime import datetime
from typing import Dict, List, Optional
import logging

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from goldlist import monitoring
from goldlist.clock import to_utc_date
from goldlist.config import settings
from goldlist.models.learning_models import (
    NotebookAction,
    NotebookActionState,
    RoadmapPage,
    Stage,
    WordStatus,
)
from goldlist.models.models import Notebook, Page, Word
from goldlist.services.progression import next_review_date
from goldlist.services.roadmap import (
    active_page_number,
    classify_page,
    classify_pages,
    page_target_date,
)
from goldlist.services.user_service import UserService

logger = logging.getLogger(__name__)


class NotebookService:
    """Service for managing notebooks and their words."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.user_service = UserService(db)

    def get_notebook(self, notebook_id: int) -> Optional[Notebook]:
        """Get a notebook by its ID."""
        return self.db.query(Notebook).filter(Notebook.id == notebook_id).first()

    def _require_notebook(self, notebook_id: int) -> Notebook:
        notebook = self.get_notebook(notebook_id)
        if not notebook:
            raise ValueError(f"Notebook {notebook_id} not found")
        return notebook

    def get_notebooks(self, profile_id: int) -> List[Notebook]:
        """Active notebooks of a profile, oldest first."""
        return (
            self.db.query(Notebook)
            .filter(
                and_(
                    Notebook.profile_id == profile_id,
                    Notebook.is_active == True,
                )
            )
            .order_by(Notebook.created_at.asc(), Notebook.id.asc())
            .all()
        )

    def create_notebook(
        self,
        profile_id: int,
        name: str,
        words_per_page_limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Notebook:
        """Create a notebook; its first page is the day of ``now``."""
        if not name or not name.strip():
            raise ValueError("Notebook name cannot be empty")
        if words_per_page_limit is None:
            words_per_page_limit = settings.learning.words_per_page
        if words_per_page_limit < 1:
            raise ValueError("Words per page limit must be positive")
        self.user_service._require_profile(profile_id)

        notebook = Notebook(
            profile_id=profile_id,
            name=name.strip(),
            words_per_page_limit=words_per_page_limit,
            is_active=True,
        )
        if now is not None:
            notebook.created_at = now
            notebook.updated_at = now
        self.db.add(notebook)
        self.db.commit()
        self.db.refresh(notebook)

        monitoring.notebooks_created.inc()
        logger.info("Notebook %d created for profile %d", notebook.id, profile_id)
        return notebook

    def rename_notebook(self, notebook_id: int, name: str) -> Notebook:
        """Change a notebook's name."""
        if not name or not name.strip():
            raise ValueError("Notebook name cannot be empty")
        notebook = self._require_notebook(notebook_id)
        notebook.name = name.strip()
        self.db.commit()
        self.db.refresh(notebook)
        return notebook

    def delete_notebook(self, notebook_id: int) -> bool:
        """Delete a notebook together with its pages and words."""
        notebook = self.get_notebook(notebook_id)
        if not notebook:
            return False
        self.db.delete(notebook)
        self.db.commit()
        logger.info("Notebook %d deleted", notebook_id)
        return True

    def get_page(self, notebook_id: int, page_number: int) -> Optional[Page]:
        """Get a page by its number."""
        return (
            self.db.query(Page)
            .filter(
                and_(
                    Page.notebook_id == notebook_id,
                    Page.page_number == page_number,
                )
            )
            .first()
        )

    def get_or_create_page(self, notebook: Notebook, page_number: int, now: datetime) -> Page:
        """Return the page, creating it on first use."""
        if not 1 <= page_number <= settings.learning.total_pages:
            raise ValueError(
                f"Page number must be between 1 and {settings.learning.total_pages}, got {page_number}"
            )
        page = self.get_page(notebook.id, page_number)
        if page:
            return page

        page = Page(
            notebook_id=notebook.id,
            page_number=page_number,
            target_date=page_target_date(notebook.created_at, page_number),
            title=f"Lesson {page_number}",
            created_at=now,
            updated_at=now,
        )
        self.db.add(page)
        self.db.flush()
        logger.debug("Page %d of notebook %d created", page_number, notebook.id)
        return page

    def get_page_word_count(self, notebook_id: int, page_number: int) -> int:
        return (
            self.db.query(Word)
            .join(Page, Word.page_id == Page.id)
            .filter(
                and_(
                    Page.notebook_id == notebook_id,
                    Page.page_number == page_number,
                )
            )
            .count()
        )

    def add_word(
        self,
        notebook_id: int,
        page_number: int,
        term: str,
        definition: str,
        now: datetime,
        word_type: Optional[str] = None,
        example_sentence: Optional[str] = None,
        example_translation: Optional[str] = None,
    ) -> Word:
        """Write a word onto a page of the notebook.

        Only today's page and past pages with partial progress accept words.
        The word enters the ladder at bronze, round 1, due after the review
        interval.
        """
        if not term or not term.strip():
            raise ValueError("Term cannot be empty")
        if not definition or not definition.strip():
            raise ValueError("Definition cannot be empty")

        notebook = self._require_notebook(notebook_id)
        limit = notebook.words_per_page_limit
        count = self.get_page_word_count(notebook_id, page_number)
        state = classify_page(
            page_number,
            active_page_number(notebook.created_at, now),
            count,
            limit,
        )
        if not state.accepts_words:
            raise ValueError(f"Page {page_number} does not accept words ({state.value})")

        page = self.get_or_create_page(notebook, page_number, now)
        word = Word(
            page_id=page.id,
            term=term.strip(),
            definition=definition.strip(),
            word_type=word_type,
            example_sentence=example_sentence,
            example_translation=example_translation,
            stage=Stage.BRONZE,
            round=1,
            status=WordStatus.WAITING,
            next_review_date=next_review_date(now),
            created_at=now,
            updated_at=now,
        )
        self.db.add(word)
        self.user_service.record_activity(notebook.profile_id, now, commit=False)
        self.db.commit()
        self.db.refresh(word)

        monitoring.words_added.inc()
        logger.info(
            "Word %d added to page %d of notebook %d (%d/%d)",
            word.id,
            page_number,
            notebook_id,
            count + 1,
            limit,
        )
        return word

    def get_words(self, page_id: int) -> List[Word]:
        """Words of a page in writing order."""
        return (
            self.db.query(Word)
            .filter(Word.page_id == page_id)
            .order_by(Word.created_at.asc(), Word.id.asc())
            .all()
        )

    def get_word_counts(self, notebook_id: int) -> Dict[int, int]:
        """Number of words per page number."""
        rows = (
            self.db.query(Page.page_number, func.count(Word.id))
            .join(Word, Word.page_id == Page.id)
            .filter(Page.notebook_id == notebook_id)
            .group_by(Page.page_number)
            .all()
        )
        return {page_number: count for page_number, count in rows}

    def get_notebook_stats(self, notebook_id: int) -> Dict[str, int]:
        """Total and learned word counts of a notebook."""
        query = (
            self.db.query(Word)
            .join(Page, Word.page_id == Page.id)
            .filter(Page.notebook_id == notebook_id)
        )
        return {
            "total": query.count(),
            "mastered": query.filter(Word.status == WordStatus.LEARNED).count(),
        }

    def get_roadmap(self, notebook_id: int, now: datetime) -> List[RoadmapPage]:
        """Roadmap of all pages, recomputed from live counts."""
        notebook = self._require_notebook(notebook_id)
        return classify_pages(
            notebook.created_at,
            now,
            self.get_word_counts(notebook_id),
            notebook.words_per_page_limit,
        )

    def get_due_word_count(self, notebook_id: int, now: datetime) -> int:
        return (
            self.db.query(Word)
            .join(Page, Word.page_id == Page.id)
            .filter(
                and_(
                    Page.notebook_id == notebook_id,
                    Word.due_on(to_utc_date(now)),
                )
            )
            .count()
        )

    def get_button_state(self, notebook_id: int, now: datetime) -> NotebookAction:
        """Primary action for the notebook card: review, then add, then done."""
        notebook = self._require_notebook(notebook_id)
        active_page = active_page_number(notebook.created_at, now)
        today_count = self.get_page_word_count(notebook_id, active_page)
        limit = notebook.words_per_page_limit
        due = self.get_due_word_count(notebook_id, now)

        if due > 0:
            return NotebookAction(NotebookActionState.REVIEW, "Review Today's Words", due, active_page)
        if today_count < limit:
            return NotebookAction(
                NotebookActionState.ADD, "Add Today's Words", limit - today_count, active_page
            )
        return NotebookAction(NotebookActionState.DONE, "You are all done today", 0, active_page)
