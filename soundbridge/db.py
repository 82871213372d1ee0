"""
Goal: Minimal async SQLite key/value store standing in for the host's settings manager.
We expose:
  - Base / KV model (tiny key/value table)
  - make_engine(path) + make_sessionmaker(engine)
  - init_db(engine): create tables on startup
  - SettingsStore protocol and the KV-backed implementation the adapter uses
Values are JSON-encoded so booleans survive the round trip.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Protocol

from sqlalchemy import String, Text, delete
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from soundbridge.settings import DB_PATH

# --- Declarative base with proper typing -------------------------------------


class Base(DeclarativeBase):
    """Typed declarative base."""


class KV(Base):
    __tablename__ = "kv"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# --- Engine + sessionmaker (async) -------------------------------------------


def make_engine(path: Path = DB_PATH) -> AsyncEngine:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(f"sqlite+aiosqlite:///{path}", echo=False)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# --- Settings store ----------------------------------------------------------


class SettingsStore(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def unset(self, key: str) -> None: ...


class KVSettingsStore:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def get(self, key: str) -> Any:
        async with self._sessions() as session:
            row = await session.get(KV, key)
            if row is None or row.value is None:
                return None
            return json.loads(row.value)

    async def set(self, key: str, value: Any) -> None:
        async with self._sessions() as session:
            async with session.begin():
                await session.merge(KV(key=key, value=json.dumps(value)))

    async def unset(self, key: str) -> None:
        async with self._sessions() as session:
            async with session.begin():
                await session.execute(delete(KV).where(KV.key == key))
