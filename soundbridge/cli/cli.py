r"""
Goal: Friendly, typed CLI for the SoundBridge agent.

- Export `app` (tests import this).
- Show "SoundBridge CLI" in --help output.
- Talks to the running agent over httpx; `config` writes app credentials to keyring.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

import httpx
import typer

from soundbridge.auth import client_config

app = typer.Typer(
    help="SoundBridge CLI",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _host() -> str:
    return os.getenv("SB_HOST", "127.0.0.1")


def _port() -> int:
    try:
        return int(os.getenv("SB_PORT", "5030"))
    except ValueError:
        return 5030


def _base_url() -> str:
    return os.getenv("SB_URL", f"http://{_host()}:{_port()}")


BASE_URL = _base_url()


def _get(path: str) -> httpx.Response:
    with httpx.Client(timeout=10.0) as c:
        return c.get(f"{BASE_URL}{path}")


def _post(path: str, payload: Dict[str, Any] | None = None) -> httpx.Response:
    with httpx.Client(timeout=15.0) as c:
        return c.post(f"{BASE_URL}{path}", json=payload or {})


def _echo(r: httpx.Response) -> None:
    typer.echo(json.dumps(r.json(), indent=2))
    if r.status_code >= 400:
        raise typer.Exit(1)


@app.callback(help="SoundBridge CLI")
def _root_callback() -> None:  # noqa: D401 - short help callback
    """Root callback for the CLI."""
    return None


# -----------------------
# Agent + account
# -----------------------
@app.command("health")
def health() -> None:
    with httpx.Client(timeout=5.0) as c:
        r = c.get(f"{BASE_URL}/health")
        _echo(r)


@app.command("login")
def login() -> None:
    """Print the SoundCloud authorize URL; open it in a browser to link."""
    _echo(_get("/oauth2"))


@app.command("logout")
def logout() -> None:
    _echo(_post("/deauthorize"))


@app.command("profile")
def profile() -> None:
    _echo(_get("/profile"))


# -----------------------
# Media
# -----------------------
@app.command("search")
def search(
    query: Optional[str] = typer.Argument(None, help="Free-text query"),
    artist: Optional[str] = typer.Option(None),
    track: Optional[str] = typer.Option(None),
    album: Optional[str] = typer.Option(None),
    genre: Optional[str] = typer.Option(None),
) -> None:
    payload = {
        "artist": artist,
        "track": track,
        "album": album,
        "genre": genre,
        "query": query,
    }
    _echo(_post("/v1/media/search", {k: v for k, v in payload.items() if v}))


@app.command("play")
def play(track_id: str) -> None:
    _echo(_post("/v1/media/play", {"track_id": track_id}))


@app.command("playlists")
def playlists(playlist_id: Optional[str] = typer.Argument(None)) -> None:
    if playlist_id:
        _echo(_get(f"/v1/media/playlists/{playlist_id}"))
    else:
        _echo(_get("/v1/media/playlists"))


# -----------------------
# App credentials (keyring)
# -----------------------
config = typer.Typer(help="SoundCloud app credentials stored in the OS keyring")
app.add_typer(config, name="config")


@config.command("set-client-id")
def config_set_client_id(client_id: str) -> None:
    client_config.set_client_id(client_id)
    typer.echo(json.dumps({"ok": True}, indent=2))


@config.command("set-client-secret")
def config_set_client_secret(
    secret: str = typer.Option(..., prompt=True, hide_input=True)
) -> None:
    client_config.set_client_secret(secret)
    typer.echo(json.dumps({"ok": True}, indent=2))


@config.command("clear")
def config_clear() -> None:
    client_config.clear()
    typer.echo(json.dumps({"ok": True}, indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
