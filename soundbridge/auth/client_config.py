"""
Goal: Store and retrieve the SoundCloud app credentials (client id + secret) in the OS keyring.
So the project works for anyone without hard-coding IDs in the repo; env vars still win.
"""

from typing import Optional

import keyring
from keyring.errors import PasswordDeleteError

from soundbridge.settings import SOUNDCLOUD_CLIENT_ID, SOUNDCLOUD_CLIENT_SECRET

# One service bucket for all SoundCloud app secrets
_SERVICE = "SoundBridge"
_K_CLIENT_ID = "client_id"
_K_CLIENT_SECRET = "client_secret"


def _set(key: str, value: str) -> None:
    if not value or not isinstance(value, str):
        raise ValueError(f"{key} must be a non-empty string.")
    keyring.set_password(_SERVICE, key, value.strip())


def set_client_id(value: str) -> None:
    _set(_K_CLIENT_ID, value)


def set_client_secret(value: str) -> None:
    _set(_K_CLIENT_SECRET, value)


def get_client_id() -> Optional[str]:
    """
    Prefer env var if provided (useful for CI/dev), else read from keyring.
    """
    return SOUNDCLOUD_CLIENT_ID or keyring.get_password(_SERVICE, _K_CLIENT_ID)


def get_client_secret() -> Optional[str]:
    return SOUNDCLOUD_CLIENT_SECRET or keyring.get_password(_SERVICE, _K_CLIENT_SECRET)


def clear() -> None:
    """
    Remove both saved values. Missing entries are fine.
    """
    for key in (_K_CLIENT_ID, _K_CLIENT_SECRET):
        try:
            keyring.delete_password(_SERVICE, key)
        except PasswordDeleteError:
            pass
