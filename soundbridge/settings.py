"""
Goal: Centralized configuration for SoundBridge (paths, ports, SoundCloud app, policy knobs).
Everything comes from the environment; nothing secret is hard-coded here.
"""

import os
import re
from pathlib import Path


def _validate_port(port_str: str, default: int) -> int:
    """Validate port number is in valid range."""
    try:
        port = int(port_str)
        if 1024 <= port <= 65535:
            return port
    except ValueError:
        pass
    return default


def _validate_host(host_str: str, default: str) -> str:
    """Validate host is localhost or valid IP."""
    if not host_str:
        return default

    # Only allow localhost variants and private IPs
    allowed_hosts = {'127.0.0.1', 'localhost', '::1'}
    if host_str in allowed_hosts:
        return host_str

    # Validate private IP ranges
    if re.match(r'^192\.168\.\d{1,3}\.\d{1,3}$', host_str) or \
       re.match(r'^10\.\d{1,3}\.\d{1,3}\.\d{1,3}$', host_str) or \
       re.match(r'^172\.(1[6-9]|2[0-9]|3[0-1])\.\d{1,3}\.\d{1,3}$', host_str):
        return host_str

    return default


def _positive_float(value: str, default: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Where logs and the settings database live
APP_DIR = Path(os.getenv("SB_HOME") or str(Path.home() / ".soundbridge"))
LOG_DIR = APP_DIR / "logs"
DB_PATH = APP_DIR / "state.db"

# Local agent address
SB_PORT = _validate_port(os.getenv("SB_PORT", "5030"), 5030)
SB_HOST = _validate_host(os.getenv("SB_HOST", "127.0.0.1"), "127.0.0.1")

# SoundCloud app registration. Client id/secret may also live in keyring
# (see soundbridge.auth.client_config); the env wins when both are set.
SOUNDCLOUD_CLIENT_ID = os.getenv("SOUNDCLOUD_CLIENT_ID", "")
SOUNDCLOUD_CLIENT_SECRET = os.getenv("SOUNDCLOUD_CLIENT_SECRET", "")
SOUNDCLOUD_REDIRECT_URI = os.getenv(
    "SOUNDCLOUD_REDIRECT_URI", f"http://{SB_HOST}:{SB_PORT}/oauth2/callback"
)

# Policy knobs
SEARCH_LIMIT = 50
NEUTRAL_CONFIDENCE = 0.5
COUNTRY_FALLBACK = "unknown"
POLL_INTERVAL = _positive_float(os.getenv("SB_POLL_INTERVAL", "300"), 300.0)
STREAM_RESOLVE_TIMEOUT = 2.0
RESOLVE_STREAM_REDIRECTS = _flag("SB_RESOLVE_REDIRECTS", "true")
HTTP_TIMEOUT = 10.0

# Make sure folders exist
APP_DIR.mkdir(parents=True, exist_ok=True)
LOG_DIR.mkdir(parents=True, exist_ok=True)
