"""
SoundBridge SoundCloud client (OAuth code flow + REST helpers)

Goals
- Build the authorize URL the host redirects the browser to.
- Exchange ?code=... for an access token (client secret flow, non-expiring scope).
- GET helpers for /tracks, /me, /me/playlists that attach either the user's
  oauth_token or our client_id.
- Resolve stream redirects with a short HEAD, because some players don't follow them.
- Never log tokens.

The httpx.AsyncClient is owned by this object and can be injected, which is how
tests swap SoundCloud for an httpx.MockTransport.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from soundbridge.errors import (ExternalApiError, OAuthExchangeFailure,
                                RedirectResolutionFailure)
from soundbridge.settings import HTTP_TIMEOUT

API_BASE = "https://api.soundcloud.com"
AUTH_URL = "https://soundcloud.com/connect"
TOKEN_URL = "https://api.soundcloud.com/oauth2/token"
SCOPE = "non-expiring"


def _upstream_message(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text or r.reason_phrase
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0] or {}
            return str(first.get("error_message") or first)
        for key in ("error_description", "error", "message"):
            if body.get(key):
                return str(body[key])
    return r.text or r.reason_phrase


class SoundCloudClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._http = http or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    # ---------- OAuth ----------

    def authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": SCOPE,
            "state": state,
        }
        q = httpx.QueryParams(params)
        return f"{AUTH_URL}?{q}"

    async def exchange_code(self, code: str) -> str:
        """Trade an authorization code for an access token."""
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
            "code": code,
        }
        try:
            r = await self._http.post(
                TOKEN_URL,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise OAuthExchangeFailure(f"token endpoint unreachable: {e}") from e

        if r.status_code != 200:
            raise OAuthExchangeFailure(
                f"token exchange failed ({r.status_code}): {_upstream_message(r)}"
            )
        tok = r.json() or {}
        access = tok.get("access_token")
        if not access:
            raise OAuthExchangeFailure("token response had no access_token")
        return str(access)

    # ---------- REST ----------

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        query = dict(params or {})
        if token:
            query["oauth_token"] = token
        else:
            query["client_id"] = self.client_id

        try:
            r = await self._http.get(f"{API_BASE}{path}", params=query)
        except httpx.HTTPError as e:
            logger.warning("SoundCloud GET {} failed: {}", path, type(e).__name__)
            raise ExternalApiError(str(e) or type(e).__name__) from e

        if not r.is_success:
            msg = _upstream_message(r)
            logger.warning("SoundCloud GET {} -> {}", path, r.status_code)
            raise ExternalApiError(msg, upstream_status=r.status_code)
        return r.json()

    def stream_url(self, raw_stream_url: str) -> str:
        return f"{raw_stream_url}?client_id={self.client_id}"

    async def resolve_redirect(self, url: str, timeout: float) -> str:
        """HEAD the URL, follow redirects, and hand back where we landed."""
        try:
            r = await self._http.head(url, follow_redirects=True, timeout=timeout)
        except httpx.TimeoutException as e:
            raise RedirectResolutionFailure("stream redirect timed out") from e
        except httpx.HTTPError as e:
            raise RedirectResolutionFailure(
                f"stream redirect failed: {type(e).__name__}"
            ) from e
        if not r.is_success:
            raise RedirectResolutionFailure(
                f"stream redirect answered {r.status_code}"
            )
        return str(r.url)

    async def aclose(self) -> None:
        await self._http.aclose()
