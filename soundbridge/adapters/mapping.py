"""
Goal: Reshape raw SoundCloud JSON into the host's track/playlist/profile records.
Every function here is pure: the input dicts are only read, never touched.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from soundbridge.models.schemas import (ArtistRef, Artwork, HostPlaylist,
                                        HostTrack, Profile)
from soundbridge.settings import COUNTRY_FALLBACK

# SoundCloud serves image variants by swapping the size token in the file name
_SIZE_TOKEN = "-large"
_SIZES = ("-t67x67", "-t300x300", "-t500x500")

CODECS = ["mp3"]


def parse_image(url: Optional[str]) -> Optional[Artwork]:
    if not url:
        return None
    head, sep, tail = url.rpartition(_SIZE_TOKEN)
    if not sep:
        return Artwork(small=url, medium=url, large=url)
    small, medium, large = (head + size + tail for size in _SIZES)
    return Artwork(small=small, medium=medium, large=large)


def _release_date(track: Mapping[str, Any]) -> Optional[str]:
    year = track.get("release_year")
    if not year:
        return None
    month = track.get("release_month") or 1
    day = track.get("release_day") or 1
    return f"{int(year):04d}-{int(month):02d}-{int(day):02d}"


def map_track(
    track: Mapping[str, Any], confidence: Optional[float] = None
) -> HostTrack:
    user = track.get("user") or {}
    username = user.get("username")
    return HostTrack(
        id=str(track["id"]),
        title=track.get("title") or "",
        artist=[ArtistRef(name=username)] if username else [],
        duration=track.get("duration"),
        artwork=parse_image(track.get("artwork_url")),
        genre=track.get("genre") or None,
        release_date=_release_date(track),
        codecs=list(CODECS),
        bpm=track.get("bpm"),
        confidence=confidence,
    )


def map_playlist(playlist: Mapping[str, Any]) -> HostPlaylist:
    raw_tracks = playlist.get("tracks")
    tracks: Any = False
    if raw_tracks is not None:
        tracks = [map_track(t) for t in raw_tracks]
    return HostPlaylist(
        id=str(playlist["id"]),
        title=playlist.get("title") or "",
        tracks=tracks,
    )


def map_playlists(playlists: List[Dict[str, Any]]) -> List[HostPlaylist]:
    return [map_playlist(p) for p in playlists]


def map_profile(me: Mapping[str, Any]) -> Profile:
    return Profile(
        username=me.get("username") or "",
        avatar=parse_image(me.get("avatar_url")),
        permalink=me.get("permalink_url"),
        country=me.get("country") or COUNTRY_FALLBACK,
        plan=me.get("plan"),
        playlist_count=me.get("playlist_count") or 0,
        private_playlist_count=me.get("private_playlists_count") or 0,
    )
