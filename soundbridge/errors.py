"""
Goal: One small error family for everything the adapter can surface to the host.
Each error carries a stable `code` tag so the host can tell "please log in again"
apart from "SoundCloud is having a bad day".
"""

from __future__ import annotations

from typing import Optional


class SoundBridgeError(Exception):
    code = "soundbridge_error"
    status_code = 500

    def __init__(self, message: str = "", detail: Optional[str] = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        self.detail = detail

    def to_dict(self) -> dict:
        body = {"error": self.code, "message": self.message}
        if self.detail:
            body["detail"] = self.detail
        return body


class NotAuthenticated(SoundBridgeError):
    """No usable SoundCloud token; the user has to link the account again."""

    code = "not_authenticated"
    status_code = 401

    def __init__(self, message: str = "SoundCloud account is not linked") -> None:
        super().__init__(message)


class InvalidRequest(SoundBridgeError):
    """The host handed us an event we can't act on (missing id, bad payload)."""

    code = "invalid_request"
    status_code = 400


class ExternalApiError(SoundBridgeError):
    """SoundCloud answered with a non-2xx status, or could not be reached."""

    code = "external_api_error"
    status_code = 502

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(message, detail)
        self.upstream_status = upstream_status


class OAuthExchangeFailure(SoundBridgeError):
    code = "oauth_exchange_failed"
    status_code = 400


class RedirectResolutionFailure(SoundBridgeError):
    code = "redirect_resolution_failed"
    status_code = 504
