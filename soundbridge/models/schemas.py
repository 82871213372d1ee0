"""
Goal: Pydantic models for the host's vocabulary (tracks, playlists, queries) and the agent's HTTP shapes.
We keep them boring on purpose so they're stable contracts.
"""
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FuzzyCategory(BaseModel):
    artist: bool = False
    track: bool = False
    album: bool = False


class SearchQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    artist: Optional[str] = None
    track: Optional[str] = None
    album: Optional[str] = None
    genre: Optional[str] = None
    query: Optional[str] = Field(default=None, alias="freeText")
    fuzzy: Optional[str] = None
    fuzzy_category: FuzzyCategory = Field(
        default_factory=FuzzyCategory, alias="fuzzyCategory"
    )


class SearchParams(BaseModel):
    q: str = ""
    genres: Optional[str] = None


class Artwork(BaseModel):
    small: str
    medium: str
    large: str


class ArtistRef(BaseModel):
    name: str
    type: Literal["artist"] = "artist"


class HostTrack(BaseModel):
    type: Literal["track"] = "track"
    id: str
    title: str
    artist: List[ArtistRef] = []
    duration: Optional[int] = None
    artwork: Optional[Artwork] = None
    genre: Optional[str] = None
    release_date: Optional[str] = None
    codecs: List[str] = ["mp3"]
    bpm: Optional[float] = None
    stream_url: Optional[str] = None
    confidence: Optional[float] = None


class HostPlaylist(BaseModel):
    type: Literal["playlist"] = "playlist"
    id: str
    title: str
    tracks: Union[List[HostTrack], Literal[False]] = False


class Profile(BaseModel):
    username: str
    avatar: Optional[Artwork] = None
    permalink: Optional[str] = None
    country: str
    plan: Optional[str] = None
    playlist_count: int = 0
    private_playlist_count: int = 0


class PlayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    track_id: str = Field(alias="trackId")


class HealthResponse(BaseModel):
    status: str
    name: str
    version: str
    authorized: bool


class ErrorResponse(BaseModel):
    error: str
    message: str
    detail: Optional[str] = None


class OAuthUrlResponse(BaseModel):
    url: str


class OkResponse(BaseModel):
    ok: bool
