"""
Goal: The SoundCloud media adapter the host talks to.

- Owns the credential (token + authorized flag) behind one asyncio.Lock.
- OAuth: start_oauth2() hands out the authorize URL, on_authorization_code()
  finishes the exchange, deauthorize() undoes it.
- Media events: search / play / getPlaylists / getPlaylist, reachable either as
  methods, through dispatch(event, payload), or host-style via
  emit(event, payload, callback) -> callback(err, result).
- While linked, a poller refreshes the host's playlist view.
Settings persistence and "playlists changed" notifications go to collaborators
passed in by whoever hosts us.
"""

from __future__ import annotations

import asyncio
import secrets
from inspect import isawaitable
from typing import Any, Awaitable, Callable, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from soundbridge.adapters.mapping import (map_playlist, map_playlists,
                                          map_profile, map_track)
from soundbridge.adapters.query import build_search_query
from soundbridge.adapters.soundcloud import SoundCloudClient
from soundbridge.db import SettingsStore
from soundbridge.errors import (ExternalApiError, InvalidRequest,
                                NotAuthenticated, OAuthExchangeFailure,
                                SoundBridgeError)
from soundbridge.models.schemas import (HostPlaylist, HostTrack, Profile,
                                        SearchQuery)
from soundbridge.services.poller import PlaylistPoller
from soundbridge.settings import (NEUTRAL_CONFIDENCE, POLL_INTERVAL,
                                  RESOLVE_STREAM_REDIRECTS, SEARCH_LIMIT,
                                  STREAM_RESOLVE_TIMEOUT)

# Keys in the host settings store
K_ACCESS_TOKEN = "accessToken"
K_AUTHORIZED = "authorized"

PlaylistNotifier = Callable[[List[HostPlaylist]], Any]
HostCallback = Callable[[Optional[SoundBridgeError], Any], Any]


class OneShot:
    """Wrap a callback so it runs at most once; later calls are ignored."""

    def __init__(self, fn: Optional[Callable[..., Any]]) -> None:
        self._fn = fn
        self.fired = False

    def __call__(self, *args: Any) -> Any:
        if self.fired:
            logger.warning("One-shot callback fired again; ignoring")
            return None
        self.fired = True
        if self._fn is None:
            return None
        return self._fn(*args)


def _collection(data: Any) -> List[Dict[str, Any]]:
    """SoundCloud answers with a bare list or a {collection: [...]} page."""
    if isinstance(data, dict):
        data = data.get("collection")
    return [item for item in (data or []) if isinstance(item, dict)]


class SoundCloudAdapter:
    def __init__(
        self,
        client: SoundCloudClient,
        store: SettingsStore,
        notify_playlists: Optional[PlaylistNotifier] = None,
        poll_interval: float = POLL_INTERVAL,
        resolve_redirects: bool = RESOLVE_STREAM_REDIRECTS,
        search_limit: int = SEARCH_LIMIT,
    ) -> None:
        self.client = client
        self.store = store
        self.notify_playlists = notify_playlists
        self.resolve_redirects = resolve_redirects
        self.search_limit = search_limit

        self._lock = asyncio.Lock()
        self._token: Optional[str] = None
        self._authorized = False
        self._pending_state: Optional[str] = None
        self._url_delivery: Optional[OneShot] = None

        self.poller = PlaylistPoller(self.refresh_playlists, poll_interval)
        self.handlers: Dict[str, Callable[[Any], Awaitable[Any]]] = {
            "search": self._on_search,
            "play": self._on_play,
            "getPlaylists": self._on_get_playlists,
            "getPlaylist": self._on_get_playlist,
        }

    @property
    def authorized(self) -> bool:
        return self._authorized

    # ---------- lifecycle ----------

    async def init(self) -> None:
        """Pick up a credential persisted by an earlier run."""
        token = await self.store.get(K_ACCESS_TOKEN)
        authorized = bool(await self.store.get(K_AUTHORIZED))
        if token and authorized:
            async with self._lock:
                self._token = token
                self._authorized = True
            logger.info("SoundCloud credential restored from settings")
            self.poller.start()
        else:
            logger.info("No SoundCloud credential stored; waiting for OAuth")

    async def close(self) -> None:
        await self.poller.stop()
        await self.client.aclose()

    # ---------- credential ----------

    async def _require_token(self) -> str:
        async with self._lock:
            if not self._authorized or not self._token:
                raise NotAuthenticated()
            return self._token

    async def _current_token(self) -> Optional[str]:
        async with self._lock:
            return self._token if self._authorized else None

    async def _notify_host(self, playlists: List[HostPlaylist]) -> None:
        if self.notify_playlists is None:
            return
        result = self.notify_playlists(playlists)
        if isawaitable(result):
            await result

    # ---------- OAuth ----------

    def start_oauth2(self, on_url: Optional[Callable[[str], Any]] = None) -> str:
        """
        Step 1 of the redirect dance: mint a state, build the authorize URL,
        hand it to the host exactly once and return it.
        """
        state = secrets.token_urlsafe(16)
        self._pending_state = state
        url = self.client.authorize_url(state)
        self._url_delivery = OneShot(on_url)
        self._url_delivery(url)
        logger.info("OAuth started; waiting for SoundCloud callback")
        return url

    async def on_authorization_code(self, code: str, state: Optional[str] = None) -> None:
        """Step 3: swap the code for a token, persist it and start polling."""
        expected, self._pending_state = self._pending_state, None
        if state is not None and state != expected:
            logger.error("OAuth callback state mismatch; dropping code")
            raise OAuthExchangeFailure("state mismatch, start the login again")
        if not code:
            raise OAuthExchangeFailure("missing authorization code")

        try:
            token = await self.client.exchange_code(code)
        except OAuthExchangeFailure as e:
            logger.error("OAuth code exchange failed: {}", e.message)
            raise

        async with self._lock:
            self._token = token
            self._authorized = True
        await self.store.set(K_ACCESS_TOKEN, token)
        await self.store.set(K_AUTHORIZED, True)
        logger.info("SoundCloud account linked")

        await self.refresh_playlists()
        self.poller.start()

    async def on_authorization_error(self, error: str) -> None:
        self._pending_state = None
        logger.error("OAuth callback reported an error: {}", error)
        raise OAuthExchangeFailure(f"authorization denied: {error}")

    async def deauthorize(self) -> None:
        async with self._lock:
            self._token = None
            self._authorized = False
        await self.store.unset(K_ACCESS_TOKEN)
        await self.store.set(K_AUTHORIZED, False)
        await self._notify_host([])
        await self.poller.stop()
        logger.info("SoundCloud account unlinked")

    # ---------- media operations ----------

    async def search(self, query: SearchQuery) -> List[HostTrack]:
        built = build_search_query(query)
        params: Dict[str, Any] = {
            "q": built.q,
            "limit": self.search_limit,
            "filter": "streamable",
        }
        if built.genres:
            params["genres"] = built.genres

        data = await self.client.get("/tracks", params)
        result = [
            map_track(track, confidence=NEUTRAL_CONFIDENCE)
            for track in _collection(data)
            if track.get("streamable")
        ]
        logger.info("Search {!r} -> {} tracks", built.q, len(result))
        return result

    async def play(self, track_id: str) -> HostTrack:
        if not track_id:
            raise InvalidRequest("track id is required")

        token = await self._current_token()
        track = await self.client.get(f"/tracks/{track_id}", token=token)
        raw = track.get("stream_url")
        if not raw:
            raise ExternalApiError(f"track {track_id} has no stream url")

        url = self.client.stream_url(raw)
        if self.resolve_redirects:
            try:
                url = await self.client.resolve_redirect(url, STREAM_RESOLVE_TIMEOUT)
            except SoundBridgeError as e:
                logger.warning("Stream redirect for track {} failed: {}", track_id, e.message)
                raise

        return map_track(track).model_copy(update={"stream_url": url})

    async def list_playlists(self) -> List[HostPlaylist]:
        token = await self._require_token()
        data = await self.client.get("/me/playlists", token=token)
        return map_playlists(_collection(data))

    async def get_playlist(self, playlist_id: str) -> HostPlaylist:
        if not playlist_id:
            raise InvalidRequest("playlist id is required")
        token = await self._require_token()
        data = await self.client.get(f"/me/playlists/{playlist_id}", token=token)
        return map_playlist(data)

    async def get_profile(self) -> Profile:
        token = await self._require_token()
        me = await self.client.get("/me", token=token)
        return map_profile(me)

    async def refresh_playlists(self) -> None:
        """Poll tick: re-read playlists and tell the host. Never raises."""
        try:
            playlists = await self.list_playlists()
        except NotAuthenticated:
            logger.debug("Skipping playlist refresh; not linked")
            return
        except SoundBridgeError as e:
            logger.warning("Playlist refresh failed: {}", e.message)
            return
        await self._notify_host(playlists)

    # ---------- host event dispatch ----------

    async def _on_search(self, payload: Any) -> List[HostTrack]:
        if isinstance(payload, SearchQuery):
            return await self.search(payload)
        try:
            query = SearchQuery.model_validate(payload or {})
        except ValidationError as e:
            raise InvalidRequest(
                "malformed search query", detail=str(e.errors(include_url=False))
            ) from e
        return await self.search(query)

    async def _on_play(self, payload: Any) -> HostTrack:
        if isinstance(payload, dict):
            payload = payload.get("trackId") or payload.get("track_id")
        return await self.play(str(payload) if payload else "")

    async def _on_get_playlists(self, _: Any) -> List[HostPlaylist]:
        return await self.list_playlists()

    async def _on_get_playlist(self, payload: Any) -> HostPlaylist:
        if isinstance(payload, dict):
            payload = payload.get("playlistId") or payload.get("playlist_id")
        return await self.get_playlist(str(payload) if payload else "")

    async def dispatch(self, event: str, payload: Any = None) -> Any:
        handler = self.handlers.get(event)
        if handler is None:
            raise InvalidRequest(f"unknown media event: {event}")
        return await handler(payload)

    async def emit(self, event: str, payload: Any, callback: HostCallback) -> None:
        """Host-style delivery: callback(err, result), errors passed through untouched."""
        try:
            result = await self.dispatch(event, payload)
        except SoundBridgeError as e:
            logger.warning("Media event {} failed: {}", event, e.code)
            outcome = callback(e, None)
        else:
            outcome = callback(None, result)
        if isawaitable(outcome):
            await outcome
