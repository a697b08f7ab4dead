from datetime import datetime

from musicdash.models import (
    ArtistStats,
    NewsArticle,
    Playlist,
    PlaylistSchedule,
    PlaylistType,
    ScheduleFrequency,
    Track,
)


def test_track_identity_is_id_only():
    assert Track(id="1", title="A") == Track(id="1", title="B")
    assert len({Track(id="1", title="A"), Track(id="1", artist="X")}) == 1
    assert Track(id="1") != Track(id="2")


def test_track_from_spotify():
    track = Track.from_spotify(
        {
            "id": "abc",
            "name": "Paranoid Android",
            "artists": [{"name": "Radiohead"}, {"name": "Guest"}],
            "album": {
                "name": "OK Computer",
                "images": [{"url": "https://img/large"}, {"url": "https://img/small"}],
            },
        }
    )

    assert track.title == "Paranoid Android"
    assert track.artist == "Radiohead, Guest"
    assert track.album_title == "OK Computer"
    assert track.artwork_url == "https://img/large"


def test_track_from_spotify_without_album_art():
    track = Track.from_spotify({"id": "abc", "name": "Demo", "artists": []})

    assert track.artist == ""
    assert track.artwork_url == ""


def test_artwork_url_for_size():
    track = Track(id="1", artwork_url="https://img/{w}x{h}bb.jpg")

    assert track.artwork_url_for_size(300, 200) == "https://img/300x200bb.jpg"


def test_artist_id_slug():
    assert ArtistStats.make_id("Daft Punk") == "daft-punk"


def test_news_id_from_url():
    assert NewsArticle.id_from_url("https://site.com/a/b") == "site.com_a_b"


def test_playlist_dict_restores_schedule():
    now = datetime(2024, 5, 1, 9, 0)
    playlist = Playlist(
        id="p1",
        name="Mix",
        created_at=now,
        tracks=[Track(id="t1", title="Song")],
        type=PlaylistType.WEEKLY,
        schedule=PlaylistSchedule(
            frequency=ScheduleFrequency.WEEKLY,
            time=now,
            last_updated=now,
            next_update=now,
            day_of_week=4,
        ),
    )

    restored = Playlist.from_dict(playlist.to_dict())

    assert restored.type == PlaylistType.WEEKLY
    assert restored.tracks[0].title == "Song"
    assert restored.schedule.day_of_week == 4
    assert restored.schedule.next_update == now
    assert restored.mood is None
