"""
SoundBridge Agent entrypoint

Goals
- Simple uvicorn runner so scripts can `python -m soundbridge.cli.entry` or import run().
- Keep config via env (SB_HOST/SB_PORT) and match Agent defaults.
"""

from __future__ import annotations

import uvicorn

from soundbridge.services.logs import configure_logging
from soundbridge.settings import SB_HOST, SB_PORT


def run() -> None:
    configure_logging()
    uvicorn.run(
        "soundbridge.main:app",
        host=SB_HOST,
        port=SB_PORT,
        reload=False,
        log_config=None,
        access_log=False,
    )


if __name__ == "__main__":
    run()
