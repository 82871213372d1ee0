"""
SoundBridge Agent (FastAPI + Uvicorn)

Goals
- Play the host's part for the SoundCloud adapter: HTTP endpoints for the
  settings UI (/oauth2, /deauthorize, /profile) and the media events
  (search, play, playlists) under /v1/media.
- The OAuth redirect lands on /oauth2/callback and completes the exchange.
- Adapter errors become {error, message} JSON with a stable code, so
  "not_authenticated" can be told apart from upstream trouble.
- create_app(adapter=...) lets tests inject an adapter wired to a fake backend.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from keyring.errors import KeyringError
from loguru import logger

from soundbridge.adapters.soundcloud import SoundCloudClient
from soundbridge.auth.client_config import get_client_id, get_client_secret
from soundbridge.db import KVSettingsStore, init_db, make_engine, make_sessionmaker
from soundbridge.errors import OAuthExchangeFailure, SoundBridgeError
from soundbridge.models.schemas import (ErrorResponse, HealthResponse,
                                        HostPlaylist, HostTrack,
                                        OAuthUrlResponse, OkResponse, PlayRequest,
                                        Profile, SearchQuery)
from soundbridge.services.logs import configure_logging
from soundbridge.services.media_service import SoundCloudAdapter
from soundbridge.settings import (LOG_DIR, SB_HOST, SB_PORT,
                                  SOUNDCLOUD_REDIRECT_URI)

APP_NAME = "SoundBridge Agent"
VERSION = "0.4.0"


def _read_app_credentials() -> tuple[str, str]:
    try:
        client_id, secret = get_client_id(), get_client_secret()
    except KeyringError:
        # never crash the agent on a missing keyring backend
        logger.exception("Could not read SoundCloud app credentials from keyring")
        client_id = secret = None
    if not client_id:
        logger.warning("SoundCloud client id not configured; set SOUNDCLOUD_CLIENT_ID")
    return client_id or "", secret or ""


def _adapter(request: Request) -> SoundCloudAdapter:
    adapter = getattr(request.app.state, "adapter", None)
    if adapter is None:
        raise HTTPException(status_code=503, detail="adapter not ready")
    return adapter


def create_app(adapter: Optional[SoundCloudAdapter] = None) -> FastAPI:
    def _store_playlists(playlists: List[HostPlaylist]) -> None:
        app.state.static_playlists = playlists
        logger.info("Host playlists refreshed ({} playlists)", len(playlists))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.adapter is not None:
            yield
            return

        configure_logging()
        logger.info("Agent startup; logs at {}", LOG_DIR)
        engine = make_engine()
        await init_db(engine)
        client_id, secret = _read_app_credentials()
        owned = SoundCloudAdapter(
            SoundCloudClient(client_id, secret, SOUNDCLOUD_REDIRECT_URI),
            KVSettingsStore(make_sessionmaker(engine)),
            notify_playlists=_store_playlists,
        )
        app.state.adapter = owned
        await owned.init()
        try:
            yield
        finally:
            await owned.close()
            await engine.dispose()
            app.state.adapter = None
            logger.info("Agent shutdown")

    app = FastAPI(title=APP_NAME, version=VERSION, lifespan=lifespan)
    app.state.adapter = adapter
    app.state.static_playlists = []
    if adapter is not None and adapter.notify_playlists is None:
        adapter.notify_playlists = _store_playlists

    @app.exception_handler(SoundBridgeError)
    async def soundbridge_error(_: Request, exc: SoundBridgeError):
        body = ErrorResponse(**exc.to_dict()).model_dump(exclude_none=True)
        return JSONResponse(body, status_code=exc.status_code)

    # ---- Health ------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        current = getattr(request.app.state, "adapter", None)
        return HealthResponse(
            status="ok",
            name=APP_NAME,
            version=VERSION,
            authorized=bool(current and current.authorized),
        )

    # ---- Settings UI endpoints -----------------------------------------------

    @app.get("/oauth2", response_model=OAuthUrlResponse)
    async def oauth2(sc: SoundCloudAdapter = Depends(_adapter)) -> OAuthUrlResponse:
        return OAuthUrlResponse(url=sc.start_oauth2())

    @app.get("/oauth2/callback", response_class=HTMLResponse)
    async def oauth2_callback(
        code: Optional[str] = None,
        state: Optional[str] = None,
        error: Optional[str] = None,
        sc: SoundCloudAdapter = Depends(_adapter),
    ):
        try:
            if error or not code:
                await sc.on_authorization_error(error or "missing code")
            else:
                await sc.on_authorization_code(code, state)
        except OAuthExchangeFailure as e:
            return HTMLResponse(
                f"<h3>SoundCloud linking failed.</h3><pre>{e.message}</pre>",
                status_code=e.status_code,
            )
        return HTMLResponse("<h3>SoundCloud linked. You can close this tab.</h3>")

    @app.post("/deauthorize", response_model=OkResponse)
    async def deauthorize(sc: SoundCloudAdapter = Depends(_adapter)) -> OkResponse:
        await sc.deauthorize()
        return OkResponse(ok=True)

    @app.get("/profile", response_model=Profile, response_model_exclude_none=True)
    async def profile(sc: SoundCloudAdapter = Depends(_adapter)) -> Profile:
        return await sc.get_profile()

    # ---- Media events ------------------------------------------------------

    @app.post(
        "/v1/media/search",
        response_model=List[HostTrack],
        response_model_exclude_none=True,
    )
    async def media_search(
        query: SearchQuery, sc: SoundCloudAdapter = Depends(_adapter)
    ) -> Any:
        return await sc.search(query)

    @app.post(
        "/v1/media/play", response_model=HostTrack, response_model_exclude_none=True
    )
    async def media_play(
        body: PlayRequest, sc: SoundCloudAdapter = Depends(_adapter)
    ) -> Any:
        return await sc.play(body.track_id)

    @app.get(
        "/v1/media/playlists",
        response_model=List[HostPlaylist],
        response_model_exclude_none=True,
    )
    async def media_playlists(sc: SoundCloudAdapter = Depends(_adapter)) -> Any:
        return await sc.list_playlists()

    @app.get(
        "/v1/media/playlists/{playlist_id}",
        response_model=HostPlaylist,
        response_model_exclude_none=True,
    )
    async def media_playlist(
        playlist_id: str, sc: SoundCloudAdapter = Depends(_adapter)
    ) -> Any:
        return await sc.get_playlist(playlist_id)

    @app.get(
        "/v1/media/static-playlists",
        response_model=List[HostPlaylist],
        response_model_exclude_none=True,
    )
    async def media_static_playlists(request: Request) -> Any:
        """Last playlist snapshot pushed by the adapter (poll or (de)authorize)."""
        return request.app.state.static_playlists

    return app


app = create_app()


# --------------- Runner -------------------


def main() -> None:
    """Run uvicorn with external logging disabled (Loguru handles logs)."""
    import uvicorn

    configure_logging()
    config = uvicorn.Config(
        app,
        host=SB_HOST,
        port=SB_PORT,
        log_config=None,
        access_log=False,
        loop="asyncio",
        lifespan="on",
    )

    server = uvicorn.Server(config)
    logger.info("Starting Uvicorn on {}:{}", SB_HOST, SB_PORT)
    try:
        server.run()  # blocking
    except Exception:  # noqa: BLE001
        logger.exception("Fatal error starting SoundBridge Agent")
        raise
    finally:
        logger.info(
            "Uvicorn exited (graceful={})", getattr(server, "should_exit", None)
        )


if __name__ == "__main__":
    main()
