# app/infra/db/connection.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Optional, Sequence

import aiosqlite


class Database:
    """
    Async SQLite helper for the local side of the tracker (task cache,
    notification map, inbox).

    A fresh connection per call; rows come back as aiosqlite.Row.
    """

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(self._path) as conn:
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA foreign_keys=ON;")
            yield conn

    async def executescript(self, sql: str) -> None:
        async with self._connect() as conn:
            await conn.execute("PRAGMA journal_mode=WAL;")
            await conn.executescript(sql)
            await conn.commit()

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        async with self._connect() as conn:
            await conn.execute(sql, params)
            await conn.commit()

    async def replace_rows(
        self,
        delete_sql: str,
        insert_sql: str,
        rows: Iterable[Sequence[Any]],
    ) -> None:
        """Delete + bulk insert in one transaction (snapshot style tables)."""
        async with self._connect() as conn:
            await conn.execute(delete_sql)
            await conn.executemany(insert_sql, list(rows))
            await conn.commit()

    async def fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[aiosqlite.Row]:
        async with self._connect() as conn:
            cur = await conn.execute(sql, params)
            return await cur.fetchone()

    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[aiosqlite.Row]:
        async with self._connect() as conn:
            cur = await conn.execute(sql, params)
            return list(await cur.fetchall())
