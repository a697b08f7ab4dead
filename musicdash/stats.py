"""
Streaming statistics.

StatsAssembler turns aggregated tracks plus stored play counts and history
into a StreamingStats snapshot. StatsService does the fetching around it:
provider calls fan out concurrently, record-store trouble degrades to locally
computed numbers, and only a missing authorization is fatal.
"""

import asyncio
import logging
import uuid
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, List, Mapping, Optional, Sequence

from .aggregation import AggregatedTracks, TrackAggregator
from .errors import Unauthorized
from .fetchers import MusicFetcher
from .listening_store import ListeningStore
from .models import (
    MINUTES_PER_PLAY,
    ListeningSession,
    StreamingStats,
    Track,
    TrackStats,
    WeeklyStats,
)

logger = logging.getLogger(__name__)

TOP_ARTISTS = 10
TOP_TRACKS = 10
HISTORY_LIMIT = 50
TOP_GENRES = 5
HISTORY_WINDOW = timedelta(days=7)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

HistorySource = Callable[[], Sequence[ListeningSession]]


class StatsAssembler:
    """Builds the StreamingStats view-model from one aggregation run."""

    def __init__(self, now: Optional[datetime] = None):
        self._now = now

    def assemble(
        self,
        aggregated: AggregatedTracks,
        authoritative_play_counts: Optional[Mapping[str, int]] = None,
        history_source: Optional[HistorySource] = None,
        top_genres: Sequence[str] = (),
    ) -> StreamingStats:
        now = self._now or datetime.now()
        all_tracks = aggregated.all_tracks

        track_stats = self._apply_play_counts(
            aggregated.track_stats, authoritative_play_counts or {}
        )
        history = self._listening_history(all_tracks, history_source, now)

        weekly = WeeklyStats(
            week_start_date=now - HISTORY_WINDOW,
            total_tracks=len(all_tracks),
            total_artists=len(aggregated.artist_stats),
            total_listening_time=len(all_tracks) * MINUTES_PER_PLAY,
            top_genres=list(top_genres)[:TOP_GENRES],
            most_active_day=self._most_active_day(history, now),
            average_tracks_per_day=len(all_tracks) // 7,
        )

        return StreamingStats(
            total_listening_time=len(all_tracks) * MINUTES_PER_PLAY,
            top_artists=aggregated.artist_stats[:TOP_ARTISTS],
            top_tracks=track_stats[:TOP_TRACKS],
            weekly_stats=weekly,
            listening_history=history[:HISTORY_LIMIT],
        )

    @staticmethod
    def _apply_play_counts(
        track_stats: List[TrackStats], play_counts: Mapping[str, int]
    ) -> List[TrackStats]:
        if not play_counts:
            return list(track_stats)

        updated = []
        for stats in track_stats:
            if stats.id in play_counts:
                count = play_counts[stats.id]
                stats = TrackStats(
                    id=stats.id,
                    track=stats.track,
                    play_count=count,
                    total_listening_time=count * MINUTES_PER_PLAY,
                    last_played=stats.last_played,
                )
            updated.append(stats)
        return sorted(updated, key=lambda t: t.play_count, reverse=True)

    def _listening_history(
        self,
        tracks: List[Track],
        history_source: Optional[HistorySource],
        now: datetime,
    ) -> List[ListeningSession]:
        if history_source is None:
            return self.synthesize_history(tracks, now)

        try:
            sessions = list(history_source())
        except Exception as e:
            logger.warning(f"Could not load listening history, estimating instead: {e}")
            return self.synthesize_history(tracks, now)

        cutoff = now - HISTORY_WINDOW
        recent = [s for s in sessions if s.start_time >= cutoff]
        return sorted(recent, key=lambda s: s.start_time, reverse=True)

    @staticmethod
    def synthesize_history(tracks: List[Track], now: datetime) -> List[ListeningSession]:
        """One 3-minute session per track, an hour apart, newest first."""
        return [
            ListeningSession(
                id=str(uuid.uuid4()),
                start_time=now - timedelta(hours=index),
                duration=MINUTES_PER_PLAY,
                tracks=[track],
            )
            for index, track in enumerate(tracks[:HISTORY_LIMIT])
        ]

    @staticmethod
    def _most_active_day(history: List[ListeningSession], now: datetime) -> str:
        if not history:
            return WEEKDAYS[now.weekday()]
        days = Counter(WEEKDAYS[s.start_time.weekday()] for s in history)
        return days.most_common(1)[0][0]


class StatsService:
    """Fetches everything a stats request needs and assembles the result."""

    def __init__(
        self,
        fetcher: MusicFetcher,
        listening_store: Optional[ListeningStore] = None,
        aggregator: Optional[TrackAggregator] = None,
        assembler: Optional[StatsAssembler] = None,
        recent_limit: int = 25,
        recommendation_limit: int = 30,
        genre_sample: int = 20,
        genre_batch_size: int = 5,
        genre_batch_delay: float = 0.5,
    ):
        self.fetcher = fetcher
        self.listening_store = listening_store
        self.aggregator = aggregator or TrackAggregator()
        self.assembler = assembler or StatsAssembler()
        self.recent_limit = recent_limit
        self.recommendation_limit = recommendation_limit
        self.genre_sample = genre_sample
        self.genre_batch_size = genre_batch_size
        self.genre_batch_delay = genre_batch_delay

    async def get_streaming_stats(self) -> StreamingStats:
        """Fetch, aggregate and assemble. Raises Unauthorized without access."""
        results = await asyncio.gather(
            self.fetcher.get_recently_played(self.recent_limit),
            self.fetcher.get_recommendations(self.recommendation_limit),
            self.fetcher.get_library_pages(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Unauthorized):
                raise result

        recent, recommended, pages = (
            self._branch_or_empty(name, result)
            for name, result in zip(("recently played", "recommendations", "library"), results)
        )

        aggregated = self.aggregator.aggregate(recent, recommended, pages)
        play_counts = await self._load_play_counts()
        top_genres = await self.get_top_genres(aggregated.all_tracks)

        history_source = await self._load_history()

        stats = self.assembler.assemble(aggregated, play_counts, history_source, top_genres)
        logger.info(
            f"Stats: {len(aggregated.all_tracks)} tracks, "
            f"{len(aggregated.artist_stats)} artists, {len(play_counts)} stored counts"
        )
        return stats

    @staticmethod
    def _branch_or_empty(name: str, result):
        if isinstance(result, BaseException):
            logger.warning(f"Could not fetch {name}: {result}")
            return []
        return result

    async def _load_history(self) -> Optional[HistorySource]:
        """Stored sessions of the last week, or None to fall back to estimates."""
        if self.listening_store is None:
            return None

        since = datetime.now() - HISTORY_WINDOW
        try:
            sessions = await asyncio.to_thread(self.listening_store.get_listening_sessions, since)
        except Exception as e:
            logger.warning(f"Could not load listening history, estimating instead: {e}")
            return None
        return lambda: sessions

    async def _load_play_counts(self) -> dict:
        if self.listening_store is None:
            return {}
        try:
            return await asyncio.to_thread(self.listening_store.get_all_play_counts)
        except Exception as e:
            logger.warning(f"Could not load stored play counts, using local tallies: {e}")
            return {}

    async def get_top_genres(self, tracks: List[Track]) -> List[str]:
        """Most frequent genres among the first tracks of the sample."""
        sample = tracks[: self.genre_sample]
        genres: Counter = Counter()

        for start in range(0, len(sample), self.genre_batch_size):
            if start:
                await asyncio.sleep(self.genre_batch_delay)
            batch = sample[start : start + self.genre_batch_size]
            results = await asyncio.gather(
                *(self.fetcher.get_track_genres(t) for t in batch), return_exceptions=True
            )
            for track, result in zip(batch, results):
                if isinstance(result, BaseException):
                    logger.debug(f"Genre lookup failed for {track.title!r}: {result}")
                elif result:
                    genres[result[0]] += 1

        return [name for name, _ in genres.most_common(TOP_GENRES)]

    async def record_play(self, track: Track, played_at: Optional[datetime] = None) -> int:
        """Count one play of `track` and log it as a listening session."""
        if self.listening_store is None:
            raise RuntimeError("No listening store configured")

        count = await asyncio.to_thread(self.listening_store.increment_play_count, track)
        session = ListeningSession(
            id=str(uuid.uuid4()),
            start_time=played_at or datetime.now(),
            duration=MINUTES_PER_PLAY,
            tracks=[track],
        )
        await asyncio.to_thread(self.listening_store.save_listening_session, session)
        return count
