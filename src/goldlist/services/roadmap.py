"""Day-by-day roadmap of a notebook.

Page 1 belongs to the day the notebook was created and every following calendar
day opens the next page. Pages are recomputed from live word counts on every
call.
"""
from datetime import date, datetime
from typing import List, Mapping, Optional, Union

from goldlist.clock import add_days, days_between
from goldlist.config import settings
from goldlist.models.learning_models import PageState, RoadmapPage


def active_page_number(created_at: Union[date, datetime], now: Union[date, datetime]) -> int:
    """Page number that corresponds to today."""
    return days_between(created_at, now) + 1


def page_target_date(created_at: Union[date, datetime], page_number: int) -> date:
    """Calendar day a page belongs to."""
    return add_days(created_at, page_number - 1)


def classify_page(page_number: int, active_day: int, count: int, limit: int) -> PageState:
    """Classify one page relative to today's page."""
    if page_number > active_day:
        return PageState.LOCKED
    if count >= limit:
        return PageState.COMPLETED
    if count > 0:
        return PageState.PARTIAL
    if page_number == active_day:
        return PageState.ACTIVE
    return PageState.MISSED


def page_title(page_number: int, state: PageState, count: int, limit: int, is_today: bool) -> str:
    title = f"Lesson {page_number}"
    if is_today:
        return title
    if state is PageState.MISSED:
        return f"{title} (Missed)"
    if state is PageState.PARTIAL:
        return f"{title} ({count}/{limit})"
    if state is PageState.COMPLETED:
        return f"{title} (Done)"
    if state in (PageState.LOCKED, PageState.ACTIVE):
        return title
    raise ValueError(f"Unknown page state: {state!r}")


def classify_pages(
    created_at: Union[date, datetime],
    now: Union[date, datetime],
    word_counts: Mapping[int, int],
    limit: int,
    total_pages: Optional[int] = None,
) -> List[RoadmapPage]:
    """Classify every page of the notebook horizon."""
    if limit < 1:
        raise ValueError(f"Word limit must be positive, got {limit}")
    if total_pages is None:
        total_pages = settings.learning.total_pages

    active_day = active_page_number(created_at, now)
    pages = []
    for page_number in range(1, total_pages + 1):
        count = word_counts.get(page_number, 0)
        state = classify_page(page_number, active_day, count, limit)
        pages.append(
            RoadmapPage(
                page_number=page_number,
                state=state,
                word_count=count,
                word_limit=limit,
                title=page_title(page_number, state, count, limit, page_number == active_day),
                target_date=page_target_date(created_at, page_number),
            )
        )
    return pages
