"""
One dashboard refresh: stats and news loaded side by side.

A failing section is replaced by an inline message; the other section still
renders. When refreshes overlap, only the most recently started one is kept.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .errors import ApiError, NetworkError, RateLimited, Unauthorized
from .logging_utils import UserErrors
from .models import NewsArticle, StreamingStats
from .news import NewsAggregator
from .stats import StatsService

logger = logging.getLogger(__name__)


@dataclass
class DashboardState:
    """What the dashboard shows after a refresh."""

    generation: int = 0
    stats: Optional[StreamingStats] = None
    stats_error: Optional[str] = None
    news: List[NewsArticle] = field(default_factory=list)
    news_error: Optional[str] = None
    refreshed_at: Optional[datetime] = None


def section_message(exc: BaseException) -> str:
    """Short inline message for a section that failed to load."""
    if isinstance(exc, Unauthorized):
        return "Music access is not authorized. Connect your account to see your stats."
    if isinstance(exc, RateLimited):
        return UserErrors.rate_limited()
    if isinstance(exc, NetworkError):
        return UserErrors.network_error(str(exc))
    if isinstance(exc, ApiError):
        return f"Service error ({exc.status}): {exc.message}"
    return f"Something went wrong: {exc}"


class Dashboard:
    """Runs refreshes and keeps the latest state."""

    def __init__(self, stats_service: StatsService, news: NewsAggregator):
        self.stats_service = stats_service
        self.news = news
        self.state = DashboardState()
        self._generations = itertools.count(1)
        self._latest = 0

    async def refresh(
        self, genre: Optional[str] = None, search_term: Optional[str] = None
    ) -> Optional[DashboardState]:
        """
        Load every section concurrently.

        Returns the new state, or None when a newer refresh started while this
        one was in flight (its result is dropped).
        """
        generation = next(self._generations)
        self._latest = generation

        stats_result, news_result = await asyncio.gather(
            self.stats_service.get_streaming_stats(),
            self.news.get_music_news(genre, search_term),
            return_exceptions=True,
        )

        if generation != self._latest:
            logger.debug(f"Dropping refresh {generation}, superseded by {self._latest}")
            return None

        state = DashboardState(generation=generation, refreshed_at=datetime.now())
        if isinstance(stats_result, BaseException):
            logger.warning(f"Stats section failed: {stats_result}")
            state.stats_error = section_message(stats_result)
        else:
            state.stats = stats_result

        if isinstance(news_result, BaseException):
            logger.warning(f"News section failed: {news_result}")
            state.news_error = section_message(news_result)
        else:
            state.news = news_result

        self.state = state
        return state
