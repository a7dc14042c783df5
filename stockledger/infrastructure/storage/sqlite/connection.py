"""
Pooled aiosqlite connections to the stock database.

Ledger writes go through ``transaction()``, which opens with BEGIN IMMEDIATE:
the database write lock is held from the balance read to the conditional
balance UPDATE, so a stale ``balance_before`` is detected rather than lost.
Readers use ``acquire()`` and, under WAL, only see committed movements.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import ConfigurationError

logger = get_logger(__name__)

# Applied to every new connection; busy_timeout is added per pool
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """Fixed number of connections to one SQLite file, opened lazily."""

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        if pool_size < 1:
            raise ConfigurationError(
                f"SQLite pool size must be at least 1, got {pool_size}",
                code="CONFIGURATION_ERROR",
                details={"pool_size": pool_size},
            )
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._connections: list[aiosqlite.Connection] = []
        self._open_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return bool(self._connections)

    @property
    def idle_count(self) -> int:
        return self._idle.qsize()

    async def open(self) -> None:
        """Open all connections. A no-op on an already open pool."""
        async with self._open_lock:
            if self.is_open:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await self.connect()
                self._connections.append(conn)
                self._idle.put_nowait(conn)
        logger.info("sqlite_pool_opened", db_path=str(self.db_path), size=self.pool_size)

    async def connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout)}")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection; it goes back to the pool on exit."""
        if not self.is_open:
            await self.open()
        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection inside BEGIN IMMEDIATE ... COMMIT.

        Any exception, cancellation included, rolls the whole unit back.
        """
        async with self.acquire() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    async def close(self) -> None:
        async with self._open_lock:
            if not self.is_open:
                return
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._idle = asyncio.Queue()
        logger.info("sqlite_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Process-wide pool built from ``StorageSettings``."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.open()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.transaction() as conn:
        yield conn
