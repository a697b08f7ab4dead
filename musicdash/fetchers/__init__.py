"""Fetchers for pulling data from the music provider."""

from .music_fetcher import MusicFetcher

__all__ = ["MusicFetcher"]
