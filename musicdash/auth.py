"""
Spotify OAuth for the dashboard.

Only read scopes are requested: the dashboard never changes the user's
library.
"""

import logging
import os
from typing import Optional, Tuple

import spotipy
from spotipy.oauth2 import SpotifyOAuth

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
SPOTIFY_SCOPES = " ".join(
    [
        "user-read-recently-played",  # recent tracks
        "user-top-read",  # recommendation seeds
        "user-library-read",  # saved tracks
    ]
)


def _credentials(config: dict) -> Tuple[str, str]:
    """Client id and secret; environment variables win over config.yml."""
    client_id = os.environ.get("SPOTIFY_CLIENT_ID") or config.get("client_id")
    client_secret = os.environ.get("SPOTIFY_CLIENT_SECRET") or config.get("client_secret")
    if not (client_id and client_secret):
        raise ValueError(
            "Missing Spotify credentials: set SPOTIFY_CLIENT_ID and "
            "SPOTIFY_CLIENT_SECRET, or client_id/client_secret under spotify: "
            "in config.yml"
        )
    return client_id, client_secret


def open_spotify_session(config: dict, cache_path: Optional[str] = None) -> spotipy.Spotify:
    """
    Build an authenticated Spotify client.

    Args:
        config: The `spotify` section of config.yml. Besides the credentials
            it may set `redirect_uri` and `open_browser`.
        cache_path: Where spotipy keeps the OAuth token between runs.

    Raises:
        ValueError: when no credentials are configured
    """
    client_id, client_secret = _credentials(config)

    oauth = SpotifyOAuth(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=config.get("redirect_uri", DEFAULT_REDIRECT_URI),
        scope=SPOTIFY_SCOPES,
        open_browser=config.get("open_browser", True),
        cache_path=cache_path,
    )
    logger.debug(f"Spotify OAuth ready (token cache: {cache_path})")
    return spotipy.Spotify(auth_manager=oauth)
