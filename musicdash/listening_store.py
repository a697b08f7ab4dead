"""
Play counts and listening sessions kept in the record store.

Play counts live in "track-{id}" records of type Track. Sessions are stored
under their own id as ListeningSession records holding track ids only; the
tracks are rebuilt from the Track records when sessions are read back.
"""

import logging
from datetime import datetime
from typing import Dict, List

from .errors import NotFound
from .models import ListeningSession, Track
from .record_store import Record, RecordStore

logger = logging.getLogger(__name__)

TRACK_RECORD = "Track"
SESSION_RECORD = "ListeningSession"


def track_record_name(track_id: str) -> str:
    return f"track-{track_id}"


def _started_since(record: Record, since: datetime) -> bool:
    start = record.get("start_time")
    try:
        return start is not None and datetime.fromisoformat(start) >= since
    except (TypeError, ValueError):
        return False


class ListeningStore:
    """Durable play counts and listening history."""

    def __init__(self, store: RecordStore):
        self.store = store

    # =========================================================================
    # Play counts
    # =========================================================================

    def increment_play_count(self, track: Track) -> int:
        """Add one play for `track`, creating its record on first play."""
        name = track_record_name(track.id)
        now = datetime.now().isoformat()

        try:
            record = self.store.get(name)
            count = int(record.get("play_count", 0)) + 1
            record.fields["play_count"] = count
            record.fields["last_played"] = now
            logger.debug(f"Updating play count for {track.title!r} to {count}")
        except NotFound:
            count = 1
            record = Record(
                record_type=TRACK_RECORD,
                name=name,
                fields={**track.to_dict(), "play_count": count, "last_played": now},
            )
            logger.debug(f"Creating track record for {track.title!r}")

        self.store.save(record)
        return count

    def get_play_count(self, track: Track) -> int:
        """Stored play count, 0 when the track has never been recorded."""
        try:
            return int(self.store.get(track_record_name(track.id)).get("play_count", 0))
        except NotFound:
            return 0

    def get_all_play_counts(self) -> Dict[str, int]:
        """Map of track id -> stored play count."""
        counts: Dict[str, int] = {}
        for record in self.store.query(TRACK_RECORD):
            track_id = record.get("id")
            count = record.get("play_count")
            if track_id and isinstance(count, int):
                counts[track_id] = count
        logger.debug(f"Found {len(counts)} play count records")
        return counts

    # =========================================================================
    # Listening history
    # =========================================================================

    def save_listening_session(self, session: ListeningSession):
        """Store a session; its tracks must already have Track records to read back."""
        self.store.save(
            Record(
                record_type=SESSION_RECORD,
                name=session.id,
                fields={
                    "start_time": session.start_time.isoformat(),
                    "duration": session.duration,
                    "track_ids": [t.id for t in session.tracks],
                },
            )
        )

    def get_listening_sessions(self, since: datetime) -> List[ListeningSession]:
        """Sessions that started at or after `since`, newest first."""
        records = self.store.query(
            SESSION_RECORD,
            predicate=lambda r: _started_since(r, since),
            sort_key="start_time",
            descending=True,
        )

        sessions = []
        for record in records:
            start = record.get("start_time")
            duration = record.get("duration")
            track_ids = record.get("track_ids")
            if start is None or duration is None or track_ids is None:
                logger.debug(f"Skipping incomplete session record {record.name}")
                continue
            sessions.append(
                ListeningSession(
                    id=record.name,
                    start_time=datetime.fromisoformat(start),
                    duration=int(duration),
                    tracks=self._fetch_tracks(track_ids),
                )
            )

        logger.debug(f"Found {len(sessions)} listening sessions since {since}")
        return sessions

    def _fetch_tracks(self, track_ids: List[str]) -> List[Track]:
        records = self.store.get_many([track_record_name(i) for i in track_ids])
        return [Track.from_dict(r.fields) for r in records]
