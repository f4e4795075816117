"""
SQLite connection management.

The store keeps one long-lived ``aiosqlite`` connection per database file.
SQLite allows a single writer, so writes go through :meth:`transaction`,
which serializes them on a semaphore and commits or rolls back as a unit.
Reads in WAL mode run concurrently and need no lock.

Usage
-----
    manager = ConnectionManager()
    await manager.open(Path("./data/moderation.db"))

    async with manager.transaction() as conn:
        await conn.execute("INSERT ...")

    async with manager.read() as conn:
        cursor = await conn.execute("SELECT ...")

    await manager.close()

Pass ``":memory:"`` as the path for a throwaway database.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from chatwarden.util.logger import get_logger

logger = get_logger("database_connection")

MEMORY_PATH = ":memory:"

_PRAGMAS = [
    "PRAGMA journal_mode = WAL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA cache_size = -65536",     # 64 MB page cache
    "PRAGMA temp_store = MEMORY",
    "PRAGMA busy_timeout = 5000",
]


class ConnectionManager:
    """
    Wrapper around a single aiosqlite connection.

    Reads use :meth:`read` (or :attr:`connection`) directly. Writes use
    ``async with transaction()``, which admits one writer at a time.
    """

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._write_sem = asyncio.Semaphore(1)
        self._path: Path | str | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def path(self) -> Path | str | None:
        return self._path

    async def open(self, path: Path | str) -> None:
        """
        Open the database and apply the connection pragmas.

        Args:
            path: Database file, or ``":memory:"``.
        """
        if self._conn is not None:
            logger.warning("[DB CONNECTION] open() called but connection already exists, ignoring")
            return

        self._path = path
        if str(path) != MEMORY_PATH:
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(str(path))
        self._conn.row_factory = aiosqlite.Row

        for pragma in _PRAGMAS:
            await self._conn.execute(pragma)
        await self._conn.commit()

        logger.info("[DB CONNECTION] Opened connection to %s", path)

    async def close(self) -> None:
        """Checkpoint the WAL and close the connection."""
        if self._conn is None:
            return

        try:
            await self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await self._conn.commit()
        except aiosqlite.Error:
            logger.exception("[DB CONNECTION] WAL checkpoint failed during close")
        finally:
            await self._conn.close()
            self._conn = None
            logger.info("[DB CONNECTION] Connection closed")

    @property
    def connection(self) -> aiosqlite.Connection:
        """
        The raw connection.

        Raises:
            RuntimeError: If the connection has not been opened yet.
        """
        if self._conn is None:
            raise RuntimeError("ConnectionManager: connection is not open. Call await open(path) first.")
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Serialized write transaction: commits on clean exit, rolls back on error.

        Raises:
            RuntimeError: If the connection is not open.
        """
        conn = self.connection

        async with self._write_sem:
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Symmetric counterpart of :meth:`transaction` for reads; takes no lock."""
        yield self.connection
