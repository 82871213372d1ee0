"""
Goal: SoundCloud JSON -> host records, including the artwork size trick.
"""
import copy

from conftest import sc_track

from soundbridge.adapters.mapping import (map_playlist, map_profile, map_track,
                                          parse_image)


def test_parse_image_size_variants():
    art = parse_image("https://i1.sndcdn.com/artworks-000123-abc-large.jpg")
    assert art.small == "https://i1.sndcdn.com/artworks-000123-abc-t67x67.jpg"
    assert art.medium == "https://i1.sndcdn.com/artworks-000123-abc-t300x300.jpg"
    assert art.large == "https://i1.sndcdn.com/artworks-000123-abc-t500x500.jpg"


def test_parse_image_empty_input():
    assert parse_image("") is None
    assert parse_image(None) is None


def test_parse_image_without_size_token_reuses_url():
    art = parse_image("https://example.com/cover.png")
    assert art.small == art.medium == art.large == "https://example.com/cover.png"


def test_map_track_fields():
    t = map_track(sc_track(42))
    assert t.type == "track"
    assert t.id == "42"
    assert t.title == "Track 42"
    assert [a.name for a in t.artist] == ["dj-someone"]
    assert t.artist[0].type == "artist"
    assert t.duration == 215000
    assert t.artwork.medium.endswith("-t300x300.jpg")
    assert t.genre == "Jazz"
    assert t.release_date == "2015-06-09"
    assert t.codecs == ["mp3"]
    assert t.bpm == 120
    assert t.stream_url is None
    assert t.confidence is None


def test_map_track_is_idempotent_and_does_not_mutate_input():
    raw = sc_track(7)
    snapshot = copy.deepcopy(raw)
    first = map_track(raw)
    second = map_track(raw)
    assert first == second
    assert raw == snapshot


def test_map_track_tolerates_sparse_records():
    t = map_track({"id": 1, "title": "bare"})
    assert t.artist == []
    assert t.artwork is None
    assert t.release_date is None


def test_release_date_defaults_month_and_day():
    t = map_track(sc_track(3, release_month=None, release_day=None))
    assert t.release_date == "2015-01-01"


def test_search_results_carry_confidence_only_when_given():
    dumped = map_track(sc_track(5), confidence=0.5).model_dump(exclude_none=True)
    assert dumped["confidence"] == 0.5
    assert "confidence" not in map_track(sc_track(5)).model_dump(exclude_none=True)


def test_map_playlist_with_and_without_tracks():
    full = map_playlist({"id": 9, "title": "Mix", "tracks": [sc_track(1), sc_track(2)]})
    assert full.type == "playlist"
    assert full.id == "9"
    assert [t.id for t in full.tracks] == ["1", "2"]
    assert all(t.confidence is None for t in full.tracks)

    bare = map_playlist({"id": 10, "title": "Empty shell"})
    assert bare.tracks is False


def test_map_profile_defaults_country():
    p = map_profile(
        {
            "username": "someone",
            "avatar_url": "https://i1.sndcdn.com/avatars-1-large.jpg",
            "permalink_url": "https://soundcloud.com/someone",
            "plan": "Free",
            "playlist_count": 3,
            "private_playlists_count": 1,
        }
    )
    assert p.country == "unknown"
    assert p.avatar.small.endswith("-t67x67.jpg")
    assert p.playlist_count == 3
    assert p.private_playlist_count == 1
