"""
Data models for the dashboard.

Uses dataclasses for clean, minimal definitions with
provider-specific factory methods.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

# Fixed estimate used for every listening-time figure (minutes per play)
MINUTES_PER_PLAY = 3


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Track:
    """A track. Identity is the provider id only."""

    id: str
    title: str = field(default="", compare=False)
    artist: str = field(default="", compare=False)
    album_title: str = field(default="", compare=False)
    artwork_url: str = field(default="", compare=False)

    def artwork_url_for_size(self, width: int, height: int) -> str:
        """Resolve the {w}/{h} placeholders of the artwork template."""
        return self.artwork_url.replace("{w}", str(width)).replace("{h}", str(height))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album_title": self.album_title,
            "artwork_url": self.artwork_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Track":
        """Create from dictionary."""
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            artist=data.get("artist", ""),
            album_title=data.get("album_title", ""),
            artwork_url=data.get("artwork_url", ""),
        )

    @classmethod
    def from_spotify(cls, spotify_track: dict) -> "Track":
        """Create Track from Spotify API response."""
        artists = [a.get("name", "") for a in spotify_track.get("artists") or []]
        album = spotify_track.get("album") or {}
        images = album.get("images") or []
        # Spotify lists the largest image first
        artwork = images[0].get("url", "") if images else ""

        return cls(
            id=spotify_track.get("id") or "",
            title=spotify_track.get("name", ""),
            artist=", ".join(a for a in artists if a),
            album_title=album.get("name", ""),
            artwork_url=artwork,
        )


@dataclass
class ArtistStats:
    """Per-artist rollup of a listening sample."""

    id: str
    name: str
    play_count: int
    total_listening_time: int  # minutes
    top_tracks: List[Track] = field(default_factory=list)

    @staticmethod
    def make_id(name: str) -> str:
        return name.lower().replace(" ", "-")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "play_count": self.play_count,
            "total_listening_time": self.total_listening_time,
            "top_tracks": [t.to_dict() for t in self.top_tracks],
        }


@dataclass
class TrackStats:
    """Per-track rollup of a listening sample."""

    id: str
    track: Track
    play_count: int
    total_listening_time: int  # minutes
    last_played: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "track": self.track.to_dict(),
            "play_count": self.play_count,
            "total_listening_time": self.total_listening_time,
            "last_played": _iso(self.last_played),
        }


@dataclass
class WeeklyStats:
    week_start_date: datetime
    total_tracks: int
    total_artists: int
    total_listening_time: int  # minutes
    top_genres: List[str]
    most_active_day: str
    average_tracks_per_day: int

    def to_dict(self) -> dict:
        return {
            "week_start_date": _iso(self.week_start_date),
            "total_tracks": self.total_tracks,
            "total_artists": self.total_artists,
            "total_listening_time": self.total_listening_time,
            "top_genres": list(self.top_genres),
            "most_active_day": self.most_active_day,
            "average_tracks_per_day": self.average_tracks_per_day,
        }


@dataclass
class ListeningSession:
    id: str
    start_time: datetime
    duration: int  # minutes
    tracks: List[Track] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "start_time": _iso(self.start_time),
            "duration": self.duration,
            "tracks": [t.to_dict() for t in self.tracks],
        }


@dataclass
class StreamingStats:
    """Aggregate root returned for every stats request."""

    total_listening_time: int  # minutes
    top_artists: List[ArtistStats]
    top_tracks: List[TrackStats]
    weekly_stats: WeeklyStats
    listening_history: List[ListeningSession]

    def to_dict(self) -> dict:
        return {
            "total_listening_time": self.total_listening_time,
            "top_artists": [a.to_dict() for a in self.top_artists],
            "top_tracks": [t.to_dict() for t in self.top_tracks],
            "weekly_stats": self.weekly_stats.to_dict(),
            "listening_history": [s.to_dict() for s in self.listening_history],
        }


@dataclass
class NewsArticle:
    id: str
    title: str
    description: str
    url: str
    published_at: datetime
    source_name: str
    image_url: Optional[str] = None

    @staticmethod
    def id_from_url(url: str) -> str:
        """Derive an id from the article URL (scheme stripped, / -> _)."""
        return url.replace("https://", "").replace("http://", "").replace("/", "_")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "image_url": self.image_url,
            "published_at": _iso(self.published_at),
            "source_name": self.source_name,
        }


class PlaylistType(Enum):
    WEEKLY = "weekly"
    GENERATED = "generated"
    CUSTOM = "custom"
    COLLABORATIVE = "collaborative"


class PlaylistMood(Enum):
    ENERGETIC = "energetic"
    RELAXED = "relaxed"
    HAPPY = "happy"
    MELANCHOLIC = "melancholic"
    FOCUSED = "focused"
    PARTY = "party"


class ScheduleFrequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass
class PlaylistSchedule:
    frequency: ScheduleFrequency
    time: datetime
    last_updated: datetime
    next_update: datetime
    day_of_week: Optional[int] = None  # 1 = Sunday, 7 = Saturday

    def to_dict(self) -> dict:
        return {
            "frequency": self.frequency.value,
            "day_of_week": self.day_of_week,
            "time": _iso(self.time),
            "last_updated": _iso(self.last_updated),
            "next_update": _iso(self.next_update),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlaylistSchedule":
        return cls(
            frequency=ScheduleFrequency(data["frequency"]),
            day_of_week=data.get("day_of_week"),
            time=_parse_dt(data["time"]),
            last_updated=_parse_dt(data["last_updated"]),
            next_update=_parse_dt(data["next_update"]),
        )


@dataclass
class Playlist:
    id: str
    name: str
    created_at: datetime
    tracks: List[Track]
    type: PlaylistType
    description: Optional[str] = None
    mood: Optional[PlaylistMood] = None
    genre: Optional[str] = None
    tempo: Optional[int] = None  # BPM
    is_collaborative: bool = False
    schedule: Optional[PlaylistSchedule] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": _iso(self.created_at),
            "tracks": [t.to_dict() for t in self.tracks],
            "type": self.type.value,
            "mood": self.mood.value if self.mood else None,
            "genre": self.genre,
            "tempo": self.tempo,
            "is_collaborative": self.is_collaborative,
            "schedule": self.schedule.to_dict() if self.schedule else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Playlist":
        """Create from dictionary."""
        mood = data.get("mood")
        schedule = data.get("schedule")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description"),
            created_at=_parse_dt(data["created_at"]),
            tracks=[Track.from_dict(t) for t in data.get("tracks", [])],
            type=PlaylistType(data.get("type", PlaylistType.CUSTOM.value)),
            mood=PlaylistMood(mood) if mood else None,
            genre=data.get("genre"),
            tempo=data.get("tempo"),
            is_collaborative=data.get("is_collaborative", False),
            schedule=PlaylistSchedule.from_dict(schedule) if schedule else None,
        )
