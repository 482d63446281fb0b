"""
Document store access on top of asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

Documents live in a single `documents` table as JSONB bodies, grouped by
collection name and keyed by the string form of the collection's key field
(`entryID` for blog entries, `newsletterID` for newsletters).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from . import config
from .errors import DuplicateKey, ServiceError, StoreConflict, StoreUnavailable

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

# Errors raised by the driver or the network that mean "the store is not usable right now".
_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)
_CONFLICT_ERRORS = (asyncpg.SerializationError, asyncpg.DeadlockDetectedError)

PUSH_MAX_ATTEMPTS = 3

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
  seq bigserial,
  collection text NOT NULL,
  doc_key text NOT NULL,
  body jsonb NOT NULL,
  created_at timestamptz NOT NULL DEFAULT now(),
  updated_at timestamptz NOT NULL DEFAULT now(),
  PRIMARY KEY (collection, doc_key)
)
"""


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = config.database_url()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    new_pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=1,
        max_size=5,
        command_timeout=config.store_timeout_s(),
    )
    try:
        await new_pool.execute(SCHEMA_SQL)
    except BaseException:
        await new_pool.close()
        raise
    _pool = new_pool


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def is_ready() -> bool:
    return _pool is not None


def _json_arg(value: Any) -> str:
    """
    asyncpg does not automatically encode Python values for jsonb parameters.
    We pass JSON as a string and cast to jsonb in SQL.
    """
    return json.dumps(value, ensure_ascii=True)


def _load_body(raw: Any) -> dict[str, Any]:
    if isinstance(raw, str):
        return json.loads(raw)
    return dict(raw)


class Collection:
    """
    Handle on one named collection, bound to a single borrowed connection.

    Only valid inside the `session()` block that produced it.
    """

    def __init__(
        self,
        conn: asyncpg.Connection,
        name: str,
        key_field: str,
        *,
        timeout_s: float,
    ) -> None:
        self._conn = conn
        self.name = name
        self.key_field = key_field
        self._timeout = timeout_s

    def key_of(self, document: dict[str, Any]) -> str:
        return str(document[self.key_field])

    async def find_one(self, key: Any) -> dict[str, Any] | None:
        row = await self._conn.fetchrow(
            """
            SELECT body
            FROM documents
            WHERE collection = $1
              AND doc_key = $2
            """,
            self.name,
            str(key),
            timeout=self._timeout,
        )
        return _load_body(row["body"]) if row is not None else None

    async def find_all(self) -> list[dict[str, Any]]:
        rows = await self._conn.fetch(
            """
            SELECT body
            FROM documents
            WHERE collection = $1
            ORDER BY seq ASC
            """,
            self.name,
            timeout=self._timeout,
        )
        return [_load_body(r["body"]) for r in rows]

    async def count(self) -> int:
        value = await self._conn.fetchval(
            """
            SELECT count(*)
            FROM documents
            WHERE collection = $1
            """,
            self.name,
            timeout=self._timeout,
        )
        return int(value or 0)

    async def insert_many(self, documents: list[dict[str, Any]]) -> list[str]:
        """
        Insert all documents in one transaction. Returns the inserted keys.
        """
        keys = [self.key_of(doc) for doc in documents]
        if not documents:
            return keys

        args = [(self.name, key, _json_arg(doc)) for key, doc in zip(keys, documents)]
        try:
            async with self._conn.transaction():
                await self._conn.executemany(
                    """
                    INSERT INTO documents (collection, doc_key, body)
                    VALUES ($1, $2, $3::jsonb)
                    """,
                    args,
                    timeout=self._timeout,
                )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateKey(f"A document with the same {self.key_field} already exists.") from exc
        return keys

    async def push(self, key: Any, field: str, value: Any) -> dict[str, Any] | None:
        """
        Append `value` to the array at `field` in one atomic UPDATE.

        The row lock taken by UPDATE serializes concurrent pushes on the same
        document, so no append is lost. Returns the updated body, or None when
        no document has this key.

        Deadlock / serialization aborts are retried a few times before
        surfacing as `StoreConflict`.
        """
        for attempt in range(1, PUSH_MAX_ATTEMPTS + 1):
            try:
                return await self._push_once(key, field, value)
            except _CONFLICT_ERRORS as exc:
                logger.warning(
                    "store_push_conflict collection=%s key=%s attempt=%s",
                    self.name,
                    key,
                    attempt,
                )
                if attempt == PUSH_MAX_ATTEMPTS:
                    raise StoreConflict("Concurrent update kept conflicting; giving up.") from exc
        return None

    async def _push_once(self, key: Any, field: str, value: Any) -> dict[str, Any] | None:
        row = await self._conn.fetchrow(
            """
            UPDATE documents
            SET body = jsonb_set(
                  body,
                  ARRAY[$3::text],
                  COALESCE(body -> $3::text, '[]'::jsonb) || jsonb_build_array($4::jsonb)
                ),
                updated_at = now()
            WHERE collection = $1
              AND doc_key = $2
            RETURNING body
            """,
            self.name,
            str(key),
            field,
            _json_arg(value),
            timeout=self._timeout,
        )
        return _load_body(row["body"]) if row is not None else None


@asynccontextmanager
async def session(name: str, key_field: str) -> AsyncIterator[Collection]:
    """
    Borrow a pooled connection for one logical operation on one collection.

    The connection goes back to the pool on every exit path. Driver and
    timeout errors surface as `StoreUnavailable`; `ServiceError`s raised by
    the caller's block pass through unchanged.
    """
    current = _pool
    if current is None:
        raise StoreUnavailable("Document store is not configured.")

    timeout_s = config.store_timeout_s()
    try:
        conn = await current.acquire(timeout=timeout_s)
    except _STORE_ERRORS as exc:
        logger.exception("store_acquire_failed collection=%s", name)
        raise StoreUnavailable("Could not connect to the document store.") from exc

    try:
        yield Collection(conn, name, key_field, timeout_s=timeout_s)
    except ServiceError:
        raise
    except _STORE_ERRORS as exc:
        logger.exception("store_operation_failed collection=%s", name)
        raise StoreUnavailable("Document store operation failed.") from exc
    finally:
        await current.release(conn)
