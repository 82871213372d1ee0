"""
Goal: Shared fixtures: an in-memory settings store and a fake SoundCloud backend
served through httpx.MockTransport, so no test touches the network or keyring.
"""
import os
import tempfile

# Keep logs/db out of the real home directory; must happen before soundbridge imports.
os.environ.setdefault("SB_HOME", tempfile.mkdtemp(prefix="soundbridge-tests-"))

from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest

from soundbridge.adapters.soundcloud import SoundCloudClient
from soundbridge.services.media_service import SoundCloudAdapter

CLIENT_ID = "abc"
REDIRECT_URI = "http://127.0.0.1:5030/oauth2/callback"

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class MemoryStore:
    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}

    async def get(self, key: str) -> Any:
        return self.data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    async def unset(self, key: str) -> None:
        self.data.pop(key, None)


class FakeSoundCloud:
    """Routes keyed by (METHOD, path); every request is recorded."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Reply] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, reply: Reply) -> None:
        self.routes[(method, path)] = reply

    def json(self, method: str, path: str, body: Any, status: int = 200) -> None:
        self.on(method, path, httpx.Response(status, json=body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(
                404, json={"errors": [{"error_message": "404 - Not Found"}]}
            )
        if callable(reply):
            return reply(request)
        return reply

    def paths(self) -> List[str]:
        return [c.url.path for c in self.calls]


@pytest.fixture
def backend() -> FakeSoundCloud:
    return FakeSoundCloud()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_adapter(backend, store):
    def _make(**kwargs) -> SoundCloudAdapter:
        http = httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
        client = SoundCloudClient(CLIENT_ID, "shh", REDIRECT_URI, http=http)
        kwargs.setdefault("resolve_redirects", False)
        return SoundCloudAdapter(client, store, **kwargs)

    return _make


def sc_track(track_id: int, **extra) -> Dict[str, Any]:
    track = {
        "id": track_id,
        "title": f"Track {track_id}",
        "user": {"username": "dj-someone"},
        "duration": 215000,
        "artwork_url": f"https://i1.sndcdn.com/artworks-{track_id}-large.jpg",
        "genre": "Jazz",
        "release_year": 2015,
        "release_month": 6,
        "release_day": 9,
        "bpm": 120,
        "streamable": True,
        "stream_url": f"https://api.soundcloud.com/tracks/{track_id}/stream",
    }
    track.update(extra)
    return track
