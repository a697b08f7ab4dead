from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path

import pytest

import musicdash.cli as cli
from musicdash.models import NewsArticle


def test_load_config_missing_file_returns_empty(tmp_path: Path):
    missing = tmp_path / "nope.yml"
    assert cli.load_config(str(missing)) == {}


def test_load_config_reads_yaml(tmp_path: Path):
    p = tmp_path / "config.yml"
    p.write_text("spotify: {client_id: x, client_secret: y}\nnews: {api_key: k}\n")
    cfg = cli.load_config(str(p))
    assert cfg["spotify"]["client_id"] == "x"
    assert cfg["news"]["api_key"] == "k"


def test_main_without_action_prints_hint(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["musicdash", "--no-color"])

    cli.main()

    assert "Nothing to do" in capsys.readouterr().out


def test_main_missing_custom_config_exits(monkeypatch, tmp_path: Path, capsys):
    monkeypatch.setattr(
        sys,
        "argv",
        ["musicdash", "--config", str(tmp_path / "missing.yml"), "--news", "--no-color"],
    )

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1
    assert "Configuration file not found" in capsys.readouterr().out


def _write_config(path: Path, store_file: Path):
    token_cache = store_file.parent / ".spotify_cache"
    path.write_text(
        f"news:\n  api_key: k\n"
        f"store:\n  file: '{store_file}'\n  token_cache: '{token_cache}'\n"
    )


def test_main_news_does_not_touch_music(monkeypatch, tmp_path: Path, capsys):
    calls = {}

    class _News:
        def __init__(self, api_key, **kwargs):
            calls["api_key"] = api_key

        async def get_music_news(self, genre=None, search_term=None):
            calls["filters"] = (genre, search_term)
            return [
                NewsArticle(
                    id="a1",
                    title="Festival lineup announced",
                    description="d",
                    url="https://example.com/a1",
                    published_at=datetime(2024, 5, 1),
                    source_name="Example",
                )
            ]

    def _no_spotify(*_a, **_k):
        raise AssertionError("Spotify should not be opened for news only")

    monkeypatch.delenv("NEWS_API_KEY", raising=False)
    monkeypatch.setattr(cli, "NewsAggregator", _News)
    monkeypatch.setattr(cli, "open_spotify_session", _no_spotify)

    config_path = tmp_path / "config.yml"
    _write_config(config_path, tmp_path / "records.json")
    monkeypatch.setattr(
        sys,
        "argv",
        ["musicdash", "--config", str(config_path), "--news", "--genre", "Rock", "--no-color"],
    )

    cli.main()

    out = capsys.readouterr().out
    assert calls == {"api_key": "k", "filters": ("Rock", None)}
    assert "Festival lineup announced" in out


def test_main_stats_json(monkeypatch, tmp_path: Path, capsys):
    class _Spotify:
        def current_user(self):
            return {"id": "me", "display_name": "Me"}

    class _Stats:
        def __init__(self, fetcher, listening_store=None):
            pass

        async def get_streaming_stats(self):
            return _FakeStats()

    class _FakeStats:
        def to_dict(self):
            return {"total_listening_time": 42}

    monkeypatch.setattr(cli, "open_spotify_session", lambda *_a, **_k: _Spotify())
    monkeypatch.setattr(cli, "StatsService", _Stats)

    config_path = tmp_path / "config.yml"
    _write_config(config_path, tmp_path / "records.json")
    monkeypatch.setattr(
        sys,
        "argv",
        ["musicdash", "--config", str(config_path), "--stats", "--json", "--quiet"],
    )

    cli.main()

    out = capsys.readouterr().out
    assert json.loads(out) == {"total_listening_time": 42}


def test_main_auth_failure_exits(monkeypatch, tmp_path: Path, capsys):
    def _fail(*_a, **_k):
        raise ValueError("Missing Spotify credentials")

    monkeypatch.setattr(cli, "open_spotify_session", _fail)

    config_path = tmp_path / "config.yml"
    _write_config(config_path, tmp_path / "records.json")
    monkeypatch.setattr(
        sys, "argv", ["musicdash", "--config", str(config_path), "--stats", "--no-color"]
    )

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1
    assert "Missing Spotify credentials" in capsys.readouterr().out
