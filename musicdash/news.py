"""
Music news from a keyword-search news API plus a scraped fallback page.

Both sources are fetched concurrently. Either one failing only empties its own
share of the feed; no news at all is still a valid (empty) answer.
"""

import asyncio
import html
import logging
import re
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import requests

from .errors import ApiError, InvalidResponse, NetworkError, RateLimited, parse_retry_after
from .models import NewsArticle
from .rate_limiter import RateLimiter
from .retry_utils import retry_rate_limited

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://newsapi.org/v2"
DEFAULT_SCRAPE_URL = "https://www.nme.com/music"
DEFAULT_PAGE_SIZE = 20
SCRAPE_SOURCE_NAME = "NME"
SCRAPE_DESCRIPTION = "Click to read more about this music news article from NME."
NO_DESCRIPTION = "No description available"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Safari/605.1.15"
)

NEWS_GENRES = [
    "Rock",
    "Pop",
    "Hip-Hop",
    "Jazz",
    "Classical",
    "Electronic",
    "Country",
    "R&B",
    "Folk",
    "Metal",
    "Indie",
    "Alternative",
    "Festival",
    "Awards",
    "Technology",
]

# <h3 class="... entry-title ..."><a href="URL">TITLE</a>
NME_ARTICLE_PATTERN = re.compile(
    r'<h3[^>]*class="[^"]*entry-title[^"]*"[^>]*>\s*<a[^>]*href="([^"]+)"[^>]*>([^<]+)</a>',
    re.DOTALL,
)


def parse_published_at(value: Optional[str], fallback: datetime) -> datetime:
    """Parse an ISO-8601 timestamp (UTC if no offset), or return `fallback`."""
    if not value:
        return fallback
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_query(genre: Optional[str], search_term: Optional[str]) -> str:
    terms = ["music"]
    if genre:
        terms.append(genre)
    if search_term:
        terms.append(search_term)
    return " ".join(terms)


def parse_nme_articles(page: str, now: Optional[datetime] = None) -> List[NewsArticle]:
    """Extract article links from the NME music listing page."""
    now = now or datetime.now(timezone.utc)
    articles = []

    for index, match in enumerate(NME_ARTICLE_PATTERN.finditer(page)):
        url = match.group(1).strip()
        title = html.unescape(match.group(2)).strip()
        if not url or not title:
            continue
        articles.append(
            NewsArticle(
                id=f"nme-{index}",
                title=title,
                description=SCRAPE_DESCRIPTION,
                url=url,
                image_url=None,
                # The listing page has no dates
                published_at=now,
                source_name=SCRAPE_SOURCE_NAME,
            )
        )

    return articles


def matches_filters(
    article: NewsArticle, genre: Optional[str], search_term: Optional[str]
) -> bool:
    """Case-insensitive substring match of each filter on title + description."""
    haystack = f"{article.title} {article.description}".lower()
    return all(term.lower() in haystack for term in (search_term, genre) if term)


class NewsAggregator:
    """Merges API and scraped music news."""

    def __init__(
        self,
        api_key: Optional[str],
        session: Optional[requests.Session] = None,
        base_url: str = DEFAULT_API_URL,
        scrape_url: str = DEFAULT_SCRAPE_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = 15.0,
        max_attempts: int = 3,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.scrape_url = scrape_url
        self.page_size = page_size
        self.timeout = timeout
        self.max_attempts = max_attempts
        # The free API tier tolerates about one request per second
        self.rate_limiter = rate_limiter or RateLimiter(max_concurrent=1, rate_per_second=1.0)
        self.requests_remaining: Optional[int] = None

    async def get_music_news(
        self, genre: Optional[str] = None, search_term: Optional[str] = None
    ) -> List[NewsArticle]:
        """API and scraped news, newest first. Never raises for fetch failures."""
        api_result, scraped_result = await asyncio.gather(
            retry_rate_limited(
                self.fetch_api_news, genre, search_term, max_attempts=self.max_attempts
            ),
            self.scrape_news(genre, search_term),
            return_exceptions=True,
        )

        articles: List[NewsArticle] = []
        for name, result in (("API", api_result), ("scraped", scraped_result)):
            if isinstance(result, BaseException):
                logger.warning(f"{name} news fetch failed: {result}")
                continue
            articles.extend(result)

        articles.sort(key=lambda a: a.published_at, reverse=True)
        logger.info(f"Loaded {len(articles)} news articles")
        return articles

    async def _get(self, url: str, **kwargs) -> requests.Response:
        try:
            return await asyncio.to_thread(self.session.get, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise NetworkError(str(e)) from e

    def _update_remaining(self, response: requests.Response):
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            try:
                self.requests_remaining = int(remaining)
            except ValueError:
                pass

    async def fetch_api_news(
        self, genre: Optional[str] = None, search_term: Optional[str] = None
    ) -> List[NewsArticle]:
        """
        Keyword search against the news API.

        Raises:
            RateLimited: on HTTP 429
            ApiError: on any other non-200 status
            InvalidResponse: when the body is not the expected JSON
            NetworkError: when the request itself fails
        """
        if not self.api_key:
            logger.warning("No news API key configured, skipping API news")
            return []

        params = {
            "q": build_query(genre, search_term),
            "sortBy": "publishedAt",
            "language": "en",
            "pageSize": self.page_size,
            "apiKey": self.api_key,
        }
        async with self.rate_limiter:
            response = await self._get(f"{self.base_url}/everything", params=params)

        self._update_remaining(response)

        if response.status_code == 429:
            raise RateLimited(
                retry_after=parse_retry_after(response.headers.get("Retry-After"))
            )
        if response.status_code != 200:
            message = None
            try:
                body = response.json()
                if isinstance(body, dict):
                    message = body.get("message")
            except ValueError:
                pass
            raise ApiError(response.status_code, message)

        try:
            raw_articles = response.json()["articles"]
        except (ValueError, KeyError, TypeError) as e:
            raise InvalidResponse(f"Unexpected news API payload: {e}") from e

        return self._convert_api_articles(raw_articles)

    @staticmethod
    def _convert_api_articles(raw_articles: list) -> List[NewsArticle]:
        now = datetime.now(timezone.utc)
        articles = []

        for raw in raw_articles:
            if not isinstance(raw, dict):
                continue
            url = raw.get("url")
            title = raw.get("title")
            if not url or not title:
                continue
            articles.append(
                NewsArticle(
                    id=NewsArticle.id_from_url(url),
                    title=title,
                    description=raw.get("description") or NO_DESCRIPTION,
                    url=url,
                    image_url=raw.get("urlToImage"),
                    published_at=parse_published_at(raw.get("publishedAt"), now),
                    source_name=(raw.get("source") or {}).get("name") or "",
                )
            )

        return articles

    async def scrape_news(
        self, genre: Optional[str] = None, search_term: Optional[str] = None
    ) -> List[NewsArticle]:
        """Best-effort scrape of the NME listing, filtered client-side."""
        response = await self._get(self.scrape_url, headers={"User-Agent": BROWSER_USER_AGENT})
        if response.status_code != 200:
            raise ApiError(response.status_code, f"Scrape of {self.scrape_url} failed")

        articles = parse_nme_articles(response.text)
        return [a for a in articles if matches_filters(a, genre, search_term)]

    def get_available_genres(self) -> List[str]:
        return list(NEWS_GENRES)

    async def get_api_status(self) -> Tuple[bool, int]:
        """Probe the API with a one-article query: (is_available, requests_remaining)."""
        if not self.api_key:
            return False, 0

        params = {"q": "test", "pageSize": 1, "apiKey": self.api_key}
        try:
            response = await self._get(f"{self.base_url}/everything", params=params)
        except NetworkError as e:
            logger.debug(f"News API status probe failed: {e}")
            return False, 0

        self._update_remaining(response)
        return response.status_code == 200, self.requests_remaining or 0
