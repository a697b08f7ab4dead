"""
Music provider adapter backed by the Spotify Web API.

Every method is blocking and returns raw track dicts in Spotify's shape.
Provider failures are translated into musicdash errors so callers never have
to know about spotipy.
"""

import functools
import logging
from typing import List, Optional

import requests
import spotipy
from spotipy.oauth2 import SpotifyOauthError

from .errors import (
    ApiError,
    InvalidResponse,
    NetworkError,
    RateLimited,
    Unauthorized,
    parse_retry_after,
)

logger = logging.getLogger(__name__)

# Spotify caps most list endpoints at 50 items per request
MAX_PAGE = 50


def translate_errors(func):
    """Map spotipy/requests failures onto the musicdash error taxonomy."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except spotipy.SpotifyException as e:
            if e.http_status == 429:
                headers = getattr(e, "headers", None) or {}
                raise RateLimited(
                    str(e), retry_after=parse_retry_after(headers.get("Retry-After"))
                ) from e
            if e.http_status in (401, 403):
                raise Unauthorized(str(e)) from e
            raise ApiError(e.http_status, getattr(e, "msg", None)) from e
        except SpotifyOauthError as e:
            raise Unauthorized(str(e)) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(str(e)) from e
        except (KeyError, TypeError) as e:
            raise InvalidResponse(f"Unexpected response from {func.__name__}: {e}") from e

    return wrapper


class SpotifyMusicSource:
    """Wrapper for the Spotify API exposing the calls the dashboard needs."""

    def __init__(self, session: Optional[spotipy.Spotify]):
        self.session = session

    @property
    def is_authorized(self) -> bool:
        return self.session is not None

    def _require_session(self) -> spotipy.Spotify:
        if self.session is None:
            raise Unauthorized()
        return self.session

    @translate_errors
    def recently_played(self, limit: int = 20) -> List[dict]:
        """Most recently played tracks, newest first."""
        sp = self._require_session()
        results = sp.current_user_recently_played(limit=min(limit, MAX_PAGE))
        return [item["track"] for item in results["items"] if item.get("track")]

    @translate_errors
    def recommendations(self, limit: int = 20) -> List[dict]:
        """Personal recommendations seeded from the user's top tracks."""
        sp = self._require_session()
        top = sp.current_user_top_tracks(limit=5, time_range="short_term")
        seeds = [t["id"] for t in top["items"] if t.get("id")]
        if not seeds:
            logger.debug("No top tracks to seed recommendations")
            return []
        results = sp.recommendations(seed_tracks=seeds[:5], limit=min(limit, 100))
        return list(results["tracks"])

    @translate_errors
    def library_page(
        self, limit: int = 25, offset: int = 0, sort_by_recency_desc: bool = True
    ) -> List[dict]:
        """One page of the user's saved tracks (Spotify returns newest first)."""
        sp = self._require_session()
        results = sp.current_user_saved_tracks(limit=min(limit, MAX_PAGE), offset=offset)
        tracks = [item["track"] for item in results["items"] if item.get("track")]
        if not sort_by_recency_desc:
            tracks.reverse()
        return tracks

    @translate_errors
    def catalog_search(self, term: str, limit: int = 20) -> List[dict]:
        """Keyword search across the whole catalog."""
        sp = self._require_session()
        results = sp.search(q=term, limit=min(limit, MAX_PAGE), type="track")
        return list(results["tracks"]["items"])

    @translate_errors
    def available_genres(self) -> List[str]:
        sp = self._require_session()
        return sorted(set(sp.recommendation_genre_seeds()["genres"]))

    @translate_errors
    def track_genres(self, term: str) -> List[str]:
        """Genres of the first catalog hit for `term` (taken from its artist)."""
        sp = self._require_session()
        items = sp.search(q=term, limit=1, type="track")["tracks"]["items"]
        if not items or not items[0].get("artists"):
            return []
        artist_id = items[0]["artists"][0].get("id")
        if not artist_id:
            return []
        return list(sp.artist(artist_id).get("genres", []))
