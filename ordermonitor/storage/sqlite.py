"""SQLite-backed document store.

Documents are stored as JSON text, one table for all collections. Filtering
happens in Python after loading a collection, which is adequate for the
five-minute windows the monitors read.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence

import aiosqlite

from .base import DocumentStore, Filter, StorageError, matches

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    collection TEXT NOT NULL,
    key TEXT NOT NULL,
    body TEXT NOT NULL,
    UNIQUE (collection, key)
);
CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection);
"""

_DATETIME_TAG = "__datetime__"


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode(obj: Dict[str, Any]) -> Any:
    if len(obj) == 1 and _DATETIME_TAG in obj:
        return datetime.fromisoformat(obj[_DATETIME_TAG])
    return obj


def dumps(document: Mapping[str, Any]) -> str:
    return json.dumps(dict(document), default=_encode)


def loads(body: str) -> Dict[str, Any]:
    return json.loads(body, object_hook=_decode)


class SQLiteDocumentStore(DocumentStore):
    """Persist documents in a SQLite database via :mod:`aiosqlite`.

    For ``:memory:`` databases a single connection is kept open, since
    in-memory databases are connection scoped.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._initialized = False
        self._init_lock: Optional[asyncio.Lock] = None
        self._persistent_conn: Optional[aiosqlite.Connection] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self._db_path == ":memory:":
                self._persistent_conn = await aiosqlite.connect(":memory:")
                await self._persistent_conn.executescript(SCHEMA)
            else:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(SCHEMA)
            self._initialized = True

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            await self._ensure_initialized()
            if self._persistent_conn is not None:
                yield self._persistent_conn
                return
            async with aiosqlite.connect(self._db_path) as db:
                yield db
        except aiosqlite.Error as exc:
            raise StorageError(f"SQLite operation failed: {exc}") from exc

    async def add(self, collection: str, document: Mapping[str, Any]) -> str:
        key = uuid.uuid4().hex
        async with self._connection() as db:
            await db.execute(
                "INSERT INTO documents (collection, key, body) VALUES (?, ?, ?)",
                (collection, key, dumps(document)),
            )
            await db.commit()
        return key

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        async with self._connection() as db:
            async with db.execute(
                "SELECT body FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            ) as cursor:
                row = await cursor.fetchone()
        return loads(row[0]) if row else None

    async def update(
        self, collection: str, key: str, fields: Mapping[str, Any]
    ) -> None:
        async with self._connection() as db:
            async with db.execute(
                "SELECT body FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            ) as cursor:
                row = await cursor.fetchone()
            if row is None:
                raise StorageError(f"Document {collection}/{key} does not exist")
            document = loads(row[0])
            document.update(fields)
            await db.execute(
                "UPDATE documents SET body = ? WHERE collection = ? AND key = ?",
                (dumps(document), collection, key),
            )
            await db.commit()

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        async with self._connection() as db:
            async with db.execute(
                "SELECT key, body FROM documents WHERE collection = ? ORDER BY seq",
                (collection,),
            ) as cursor:
                rows = await cursor.fetchall()
        results: List[Dict[str, Any]] = []
        for key, body in rows:
            document = loads(body)
            if matches(document, filters):
                results.append({"_id": key, **document})
                if limit is not None and len(results) >= limit:
                    break
        return results

    async def close(self) -> None:
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False
