"""
Playlist generation from seed tracks, plus the weekly mix.
"""

import asyncio
import logging
import random
import uuid
from datetime import datetime, timedelta
from typing import List, Optional, Set

from tqdm import tqdm

from .errors import MusicDashError, Unauthorized
from .fetchers import MusicFetcher
from .models import (
    Playlist,
    PlaylistMood,
    PlaylistSchedule,
    PlaylistType,
    ScheduleFrequency,
    Track,
)

logger = logging.getLogger(__name__)

PLAYLIST_SIZE = 20
RESULTS_PER_SEED = 10
SEED_DELAY = 0.5
WEEKLY_MIX_SIZE = 10


class PlaylistGenerator:
    """
    Builds playlists from catalog searches.

    The final order is shuffled on purpose. Pass a seeded `rng` to get a
    reproducible order.
    """

    def __init__(
        self,
        fetcher: MusicFetcher,
        rng: Optional[random.Random] = None,
        size: int = PLAYLIST_SIZE,
        results_per_seed: int = RESULTS_PER_SEED,
        seed_delay: float = SEED_DELAY,
        show_progress: bool = False,
    ):
        self.fetcher = fetcher
        self.rng = rng or random.Random()
        self.size = size
        self.results_per_seed = results_per_seed
        self.seed_delay = seed_delay
        self.show_progress = show_progress

    async def generate(self, seed_tracks: List[Track], genre: Optional[str] = None) -> List[Track]:
        """Up to `size` tracks similar to the seeds, never containing a seed."""
        seeds = [t for t in seed_tracks if t.id]
        excluded: Set[str] = {t.id for t in seed_tracks}
        collected: List[Track] = []

        for index, seed in enumerate(
            tqdm(seeds, desc="Searching seeds", disable=not self.show_progress)
        ):
            if index:
                await asyncio.sleep(self.seed_delay)

            term = " ".join(p for p in (seed.artist, seed.title, genre) if p)
            found = await self._search(term, self.results_per_seed)
            self._collect(found, excluded, collected)

        if len(collected) < self.size and genre:
            found = await self._search(genre, self.size - len(collected))
            self._collect(found, excluded, collected)

        self.rng.shuffle(collected)
        logger.info(f"Generated {min(len(collected), self.size)} tracks from {len(seeds)} seeds")
        return collected[: self.size]

    async def _search(self, term: str, limit: int) -> List[Track]:
        try:
            return await self.fetcher.search_tracks(term, limit)
        except Unauthorized:
            raise
        except MusicDashError as e:
            logger.warning(f"Search for {term!r} failed, skipping: {e}")
            return []

    @staticmethod
    def _collect(found: List[Track], excluded: Set[str], collected: List[Track]):
        for track in found:
            if not track.id or track.id in excluded:
                continue
            excluded.add(track.id)
            collected.append(track)

    def build_playlist(
        self,
        name: str,
        tracks: List[Track],
        genre: Optional[str] = None,
        mood: Optional[PlaylistMood] = None,
        description: Optional[str] = None,
    ) -> Playlist:
        """Wrap generated tracks into a Playlist."""
        return Playlist(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            created_at=datetime.now(),
            tracks=list(tracks),
            type=PlaylistType.GENERATED,
            mood=mood,
            genre=genre,
        )

    async def weekly_playlist(self, now: Optional[datetime] = None) -> Playlist:
        """'Your Weekly Mix': personal recommendations, refreshed every 7 days."""
        now = now or datetime.now()
        tracks = (await self.fetcher.get_recommendations(WEEKLY_MIX_SIZE))[:WEEKLY_MIX_SIZE]

        return Playlist(
            id=str(uuid.uuid4()),
            name="Your Weekly Mix",
            description="Personalized playlist based on your listening history",
            created_at=now,
            tracks=tracks,
            type=PlaylistType.WEEKLY,
            mood=PlaylistMood.ENERGETIC,
            genre="Mixed",
            schedule=PlaylistSchedule(
                frequency=ScheduleFrequency.WEEKLY,
                # 1 = Sunday ... 7 = Saturday
                day_of_week=(now.weekday() + 1) % 7 + 1,
                time=now,
                last_updated=now,
                next_update=now + timedelta(days=7),
            ),
        )
