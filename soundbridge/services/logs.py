"""
Goal: Set up loguru logging to a rolling log file under SB_HOME/logs.
Keep output friendly and keep OAuth tokens out of every sink.
"""

import re
import sys
from pathlib import Path

from loguru import logger

from soundbridge.settings import LOG_DIR

# A credential key with a live value (anything but the redaction marker)
_UNREDACTED_SECRET = re.compile(
    r"(oauth_token|client_secret|access_token|refresh_token|password|code)"
    r"\s*[=:]\s*(?!\[REDACTED\])[^&\s]+",
    re.IGNORECASE,
)
_TOKEN_SHAPED = re.compile(r"[A-Za-z0-9_-]{32,}")


def _sanitize_log_message(msg: str) -> str:
    """Remove sensitive information from log messages."""
    # Query-string credentials first, so the value goes with the key
    msg = re.sub(
        r'(oauth_token|client_secret|access_token|code)=[^&\s]+',
        r'\1=[REDACTED]',
        msg,
    )

    # Anything else that looks like a token
    msg = re.sub(r'[A-Za-z0-9_-]{32,}', '[REDACTED]', msg)

    return msg


def _filter_sensitive_logs(record) -> bool:
    """Keep records carrying a raw secret value out of the log file."""
    message = record["message"]
    return not (_UNREDACTED_SECRET.search(message) or _TOKEN_SHAPED.search(message))


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        lambda msg: sys.stderr.write(_sanitize_log_message(msg)),
        level=level,
        colorize=False,
        backtrace=False,
        diagnose=False,
    )
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(Path(LOG_DIR) / "{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="14 days",
        level=level,
        backtrace=False,
        diagnose=False,
        serialize=False,
        enqueue=True,
        filter=_filter_sensitive_logs,
    )
