"""
musicdash - Listening stats, music news and playlists for a music dashboard.

Features:
- Streaming stats from recently played, library and recommended tracks
- Stored play counts and listening history that override local estimates
- Music news merged from a news API and a scraped fallback
- Playlist generation from seed tracks, plus a weekly mix
- Rate-limit aware retries with exponential backoff
"""

import logging

from .aggregation import AggregatedTracks, TrackAggregator
from .dashboard import Dashboard, DashboardState
from .news import NewsAggregator
from .playlist import PlaylistGenerator
from .stats import StatsAssembler, StatsService

__all__ = [
    "AggregatedTracks",
    "Dashboard",
    "DashboardState",
    "NewsAggregator",
    "PlaylistGenerator",
    "StatsAssembler",
    "StatsService",
    "TrackAggregator",
]

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
