"""Fetcher for pulling tracks from the music provider with proper pagination."""

import logging
from typing import Callable, List, Optional

from ..models import Track
from ..retry_utils import retry_async_call

logger = logging.getLogger(__name__)

# Library pagination: pages of 25, stop once 100 tracks have been collected
LIBRARY_PAGE_SIZE = 25
LIBRARY_CAPACITY = 100


class MusicFetcher:
    """
    Async access to a music source.

    Blocking source calls run in a worker thread and are retried when the
    provider rate-limits. Raw provider dicts are converted to Track values.
    """

    def __init__(
        self,
        source,
        progress_callback: Optional[Callable[[str], None]] = None,
        max_attempts: int = 3,
    ):
        """
        Initialize the fetcher.

        Args:
            source: Music source (e.g. SpotifyMusicSource) with blocking methods
            progress_callback: Optional callback for progress messages
            max_attempts: Attempts per call when rate limited
        """
        self.source = source
        self._progress_callback = progress_callback
        self._max_attempts = max_attempts

    def _log_progress(self, message: str):
        """Report progress if callback is available."""
        if self._progress_callback:
            self._progress_callback(message)

    async def _call(self, func: Callable, *args, **kwargs):
        return await retry_async_call(func, *args, max_attempts=self._max_attempts, **kwargs)

    @staticmethod
    def _to_tracks(raw_tracks: List[dict]) -> List[Track]:
        # Local files and unavailable items have no id; tracks are equal by id
        tracks = [Track.from_spotify(t) for t in raw_tracks if t and t.get("id")]
        skipped = sum(1 for t in raw_tracks if t) - len(tracks)
        if skipped:
            logger.debug(f"Skipped {skipped} tracks without an id")
        return tracks

    async def get_recently_played(self, limit: int = 25) -> List[Track]:
        """Get recently played tracks."""
        return self._to_tracks(await self._call(self.source.recently_played, limit))

    async def get_recommendations(self, limit: int = 30) -> List[Track]:
        """Get personal recommendations."""
        return self._to_tracks(await self._call(self.source.recommendations, limit))

    async def get_library_pages(
        self, page_size: int = LIBRARY_PAGE_SIZE, capacity: int = LIBRARY_CAPACITY
    ) -> List[List[Track]]:
        """
        Get library pages, newest first, strictly one after another.

        Stops at `capacity` tracks or as soon as a page comes back short,
        which means the library is exhausted.
        """
        pages: List[List[Track]] = []
        collected = 0
        offset = 0

        while collected < capacity:
            raw = await self._call(
                self.source.library_page, page_size, offset, sort_by_recency_desc=True
            )
            page = self._to_tracks(raw)
            pages.append(page)
            collected += len(page)
            self._log_progress(f"Fetching library tracks: {collected} tracks...")

            if len(raw) < page_size:
                break
            offset += page_size

        return pages

    async def search_tracks(self, term: str, limit: int = 20) -> List[Track]:
        """Catalog search."""
        return self._to_tracks(await self._call(self.source.catalog_search, term, limit))

    async def get_available_genres(self) -> List[str]:
        return list(await self._call(self.source.available_genres))

    async def get_track_genres(self, track: Track) -> List[str]:
        """Genres for a track, looked up through a catalog search."""
        return list(await self._call(self.source.track_genres, f"{track.artist} {track.title}"))
