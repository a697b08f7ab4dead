"""
Track aggregation: turn a listening sample into artist and track rollups.

Everything here is pure and in-memory. The sample is small (about a hundred
tracks), so a couple of dict passes are all that is needed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from .models import MINUTES_PER_PLAY, ArtistStats, Track, TrackStats

TOP_TRACKS_PER_ARTIST = 5


@dataclass
class AggregatedTracks:
    """Result of one aggregation run."""

    artist_stats: List[ArtistStats] = field(default_factory=list)
    track_stats: List[TrackStats] = field(default_factory=list)
    all_tracks: List[Track] = field(default_factory=list)


class TrackAggregator:
    """Merges recent, library and recommended tracks into rollups."""

    def __init__(self, now: Optional[datetime] = None):
        self._now = now

    def aggregate(
        self,
        recent: Iterable[Track],
        recommended: Iterable[Track],
        library_pages: Iterable[Iterable[Track]],
        play_counts: Optional[Mapping[str, int]] = None,
    ) -> AggregatedTracks:
        """
        Build artist and track rollups.

        The combined sample is recent tracks, then library pages in fetch
        order, then recommendations. When `play_counts` is given, a track id
        found there takes that count instead of its local tally.
        """
        all_tracks: List[Track] = list(recent)
        for page in library_pages:
            all_tracks.extend(page)
        all_tracks.extend(recommended)

        return AggregatedTracks(
            artist_stats=self.artist_rollup(all_tracks),
            track_stats=self.track_rollup(all_tracks, play_counts),
            all_tracks=all_tracks,
        )

    @staticmethod
    def artist_rollup(tracks: List[Track]) -> List[ArtistStats]:
        counts: Dict[str, int] = {}
        artist_tracks: Dict[str, Dict[str, Track]] = {}

        for track in tracks:
            counts[track.artist] = counts.get(track.artist, 0) + 1
            artist_tracks.setdefault(track.artist, {}).setdefault(track.id, track)

        stats = [
            ArtistStats(
                id=ArtistStats.make_id(name),
                name=name,
                play_count=count,
                total_listening_time=count * MINUTES_PER_PLAY,
                top_tracks=list(artist_tracks[name].values())[:TOP_TRACKS_PER_ARTIST],
            )
            for name, count in counts.items()
        ]
        # sorted() is stable: ties keep first-seen order
        return sorted(stats, key=lambda a: a.play_count, reverse=True)

    def track_rollup(
        self, tracks: List[Track], play_counts: Optional[Mapping[str, int]] = None
    ) -> List[TrackStats]:
        counts: Dict[str, int] = {}
        representatives: Dict[str, Track] = {}

        for track in tracks:
            counts[track.id] = counts.get(track.id, 0) + 1
            representatives.setdefault(track.id, track)

        if play_counts:
            for track_id in counts:
                if track_id in play_counts:
                    counts[track_id] = play_counts[track_id]

        last_played = self._now or datetime.now()
        stats = [
            TrackStats(
                id=track_id,
                track=representatives[track_id],
                play_count=count,
                total_listening_time=count * MINUTES_PER_PLAY,
                last_played=last_played,
            )
            for track_id, count in counts.items()
        ]
        return sorted(stats, key=lambda t: t.play_count, reverse=True)
