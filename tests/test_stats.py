import asyncio
from datetime import datetime, timedelta

import pytest

from musicdash.aggregation import TrackAggregator
from musicdash.errors import NetworkError, Unauthorized
from musicdash.listening_store import ListeningStore
from musicdash.models import ListeningSession, Track
from musicdash.record_store import RecordStore
from musicdash.stats import StatsAssembler, StatsService

NOW = datetime(2024, 5, 15, 12, 0, 0)  # a Wednesday


def _track(track_id: str, artist: str = "A") -> Track:
    return Track(id=track_id, title=f"Song {track_id}", artist=artist)


def _aggregate(tracks):
    return TrackAggregator(now=NOW).aggregate(tracks, [], [])


class TestStatsAssembler:
    def test_empty_aggregation_gives_zero_totals(self):
        stats = StatsAssembler(now=NOW).assemble(_aggregate([]), {}, None)

        assert stats.total_listening_time == 0
        assert stats.weekly_stats.average_tracks_per_day == 0
        assert stats.weekly_stats.total_tracks == 0
        assert stats.top_artists == []
        assert stats.top_tracks == []
        assert stats.listening_history == []
        assert stats.weekly_stats.most_active_day == "Wednesday"

    def test_weekly_stats_figures(self):
        tracks = [_track(str(i), "A" if i % 2 else "B") for i in range(15)]

        stats = StatsAssembler(now=NOW).assemble(_aggregate(tracks), {}, None, ["rock", "pop"])
        weekly = stats.weekly_stats

        assert stats.total_listening_time == 45
        assert weekly.week_start_date == NOW - timedelta(days=7)
        assert weekly.total_tracks == 15
        assert weekly.total_artists == 2
        assert weekly.average_tracks_per_day == 2
        assert weekly.top_genres == ["rock", "pop"]

    def test_authoritative_counts_override_local_tallies(self):
        tracks = [_track("a"), _track("a"), _track("b"), _track("c")]

        stats = StatsAssembler(now=NOW).assemble(_aggregate(tracks), {"c": 17, "b": 1}, None)
        by_id = {t.id: t for t in stats.top_tracks}

        assert by_id["c"].play_count == 17
        assert by_id["c"].total_listening_time == 51
        assert by_id["b"].play_count == 1
        assert by_id["a"].play_count == 2
        assert stats.top_tracks[0].id == "c"

    def test_caps_top_lists_and_history(self):
        tracks = [_track(str(i), f"Artist {i}") for i in range(80)]

        stats = StatsAssembler(now=NOW).assemble(_aggregate(tracks), {}, None)

        assert len(stats.top_artists) == 10
        assert len(stats.top_tracks) == 10
        assert len(stats.listening_history) == 50

    def test_synthesized_history_is_hourly_newest_first(self):
        tracks = [_track("a"), _track("b"), _track("c")]

        history = StatsAssembler(now=NOW).assemble(_aggregate(tracks), {}, None).listening_history

        assert [s.tracks[0].id for s in history] == ["a", "b", "c"]
        assert [s.start_time for s in history] == [
            NOW,
            NOW - timedelta(hours=1),
            NOW - timedelta(hours=2),
        ]
        assert all(s.duration == 3 for s in history)

    def test_history_source_filters_last_week_and_sorts(self):
        sessions = [
            ListeningSession("old", NOW - timedelta(days=9), 3, [_track("a")]),
            ListeningSession("mid", NOW - timedelta(days=2), 3, [_track("b")]),
            ListeningSession("new", NOW - timedelta(hours=1), 3, [_track("c")]),
        ]

        stats = StatsAssembler(now=NOW).assemble(
            _aggregate([_track("x")]), {}, lambda: sessions
        )

        assert [s.id for s in stats.listening_history] == ["new", "mid"]
        assert stats.weekly_stats.most_active_day in {"Monday", "Wednesday"}

    def test_history_source_failure_falls_back_to_estimate(self):
        def broken():
            raise NetworkError("store unavailable")

        stats = StatsAssembler(now=NOW).assemble(_aggregate([_track("a")]), {}, broken)

        assert len(stats.listening_history) == 1
        assert stats.listening_history[0].tracks[0].id == "a"


class _FakeFetcher:
    def __init__(self, recent=None, recommended=None, pages=None, fail=None, genres=None):
        self.recent = recent or []
        self.recommended = recommended or []
        self.pages = pages or []
        self.fail = fail or {}
        self.genres = genres or {}

    async def _maybe_fail(self, name):
        if name in self.fail:
            raise self.fail[name]

    async def get_recently_played(self, limit=25):
        await self._maybe_fail("recent")
        return list(self.recent)

    async def get_recommendations(self, limit=30):
        await self._maybe_fail("recommended")
        return list(self.recommended)

    async def get_library_pages(self):
        await self._maybe_fail("library")
        return [list(p) for p in self.pages]

    async def get_track_genres(self, track):
        await self._maybe_fail("genres")
        return self.genres.get(track.id, [])


class _BrokenListeningStore:
    def get_all_play_counts(self):
        raise NetworkError("record store down")

    def get_listening_sessions(self, since):
        raise NetworkError("record store down")


def test_service_uses_stored_play_counts_and_sessions():
    tracks = [_track("a"), _track("b", "B"), _track("a")]
    store = ListeningStore(RecordStore())
    for _ in range(5):
        store.increment_play_count(_track("b", "B"))
    store.save_listening_session(
        ListeningSession("s1", datetime.now() - timedelta(hours=2), 3, [_track("b", "B")])
    )

    service = StatsService(
        _FakeFetcher(recent=tracks),
        listening_store=store,
        genre_batch_delay=0,
    )
    stats = asyncio.run(service.get_streaming_stats())

    assert stats.top_tracks[0].id == "b"
    assert stats.top_tracks[0].play_count == 5
    assert [s.id for s in stats.listening_history] == ["s1"]


def test_service_tolerates_record_store_failure():
    service = StatsService(
        _FakeFetcher(recent=[_track("a"), _track("a")]),
        listening_store=_BrokenListeningStore(),
        genre_batch_delay=0,
    )

    stats = asyncio.run(service.get_streaming_stats())

    assert stats.top_tracks[0].play_count == 2
    assert len(stats.listening_history) == 2


def test_service_tolerates_failed_branch():
    fetcher = _FakeFetcher(
        recent=[_track("a")],
        pages=[[_track("b")]],
        fail={"recommended": NetworkError("timeout")},
    )

    stats = asyncio.run(StatsService(fetcher, genre_batch_delay=0).get_streaming_stats())

    assert stats.weekly_stats.total_tracks == 2


def test_service_propagates_unauthorized():
    fetcher = _FakeFetcher(fail={"recent": Unauthorized()})

    with pytest.raises(Unauthorized):
        asyncio.run(StatsService(fetcher, genre_batch_delay=0).get_streaming_stats())


def test_top_genres_batches_and_ranks(monkeypatch):
    sleeps = []

    async def _sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", _sleep)

    tracks = [_track(str(i)) for i in range(12)]
    genres = {str(i): ["rock"] if i < 7 else ["jazz"] for i in range(12)}
    service = StatsService(_FakeFetcher(genres=genres), genre_batch_size=5)

    top = asyncio.run(service.get_top_genres(tracks))

    assert top == ["rock", "jazz"]
    # 12 tracks in batches of 5: pauses before the 2nd and 3rd batch
    assert sleeps == [0.5, 0.5]


def test_record_play_counts_and_logs_session():
    store = ListeningStore(RecordStore())
    service = StatsService(_FakeFetcher(), listening_store=store)
    track = _track("a")

    assert asyncio.run(service.record_play(track)) == 1
    assert asyncio.run(service.record_play(track)) == 2

    sessions = store.get_listening_sessions(datetime.now() - timedelta(days=1))
    assert len(sessions) == 2
    assert sessions[0].tracks == [track]


def test_service_reads_stored_sessions_off_the_event_loop():
    seen = {}

    class _ThreadCheckingStore(ListeningStore):
        def get_listening_sessions(self, since):
            try:
                asyncio.get_running_loop()
                seen["on_loop"] = True
            except RuntimeError:
                seen["on_loop"] = False
            return super().get_listening_sessions(since)

    store = _ThreadCheckingStore(RecordStore())
    store.increment_play_count(_track("a"))
    store.save_listening_session(
        ListeningSession("s1", datetime.now() - timedelta(hours=1), 3, [_track("a")])
    )

    service = StatsService(_FakeFetcher(recent=[_track("a")]), listening_store=store, genre_batch_delay=0)
    stats = asyncio.run(service.get_streaming_stats())

    assert seen == {"on_loop": False}
    assert [s.id for s in stats.listening_history] == ["s1"]
