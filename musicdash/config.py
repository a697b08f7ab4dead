"""
Configuration loading.

Settings come from a YAML file (default: config.yml). Secrets can be given
through environment variables instead, which win over the file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .news import DEFAULT_API_URL, DEFAULT_PAGE_SIZE, DEFAULT_SCRAPE_URL
from .playlist import PLAYLIST_SIZE, SEED_DELAY


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


@dataclass
class DashboardConfig:
    """Typed view of config.yml with defaults."""

    spotify: dict
    news_api_key: Optional[str] = None
    news_base_url: str = DEFAULT_API_URL
    news_scrape_url: str = DEFAULT_SCRAPE_URL
    news_page_size: int = DEFAULT_PAGE_SIZE
    store_file: Optional[str] = "./library/records.json"
    token_cache: str = "./library/.spotify_cache"
    playlist_size: int = PLAYLIST_SIZE
    seed_delay: float = SEED_DELAY
    max_attempts: int = 3

    @classmethod
    def from_dict(cls, config: dict) -> "DashboardConfig":
        news = config.get("news", {}) or {}
        store = config.get("store", {}) or {}
        playlist = config.get("playlist", {}) or {}
        stats = config.get("stats", {}) or {}

        return cls(
            spotify=dict(config.get("spotify", {}) or {}),
            news_api_key=os.environ.get("NEWS_API_KEY") or news.get("api_key"),
            news_base_url=news.get("base_url", DEFAULT_API_URL),
            news_scrape_url=news.get("scrape_url", DEFAULT_SCRAPE_URL),
            news_page_size=int(news.get("page_size", DEFAULT_PAGE_SIZE)),
            # store.file: null keeps records in memory only
            store_file=store.get("file", "./library/records.json"),
            token_cache=store.get("token_cache", "./library/.spotify_cache"),
            playlist_size=int(playlist.get("size", PLAYLIST_SIZE)),
            seed_delay=float(playlist.get("seed_delay", SEED_DELAY)),
            max_attempts=int(stats.get("max_attempts", 3)),
        )
