"""Async Data Access Layer for the generation_requests table.

Provides GenerationRequestDAL, the SQLite implementation of
`dal.gateway.GenerationRequestGateway`, on top of
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Sequence

import aiosqlite

from models.generation_request import GenerationRequest, GenerationStatus
from utils.database_init import AsyncDatabaseInitializer
from utils.exceptions import DuplicateIdError, NotFoundError, StorageUnavailableError

LOGGER = logging.getLogger(__name__)


class GenerationRequestDAL:
    """Data access layer for generation request rows.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`). Each operation opens its own connection, so
    there are no transactions spanning calls.
    """

    _COLUMNS = (
        "id",
        "original_filename",
        "original_image_path",
        "color_count",
        "difficulty",
        "status",
        "client_session_id",
        "created_at",
        "output_path",
        "error_message",
        "completed_at",
    )
    _MUTABLE_COLUMNS = ("status", "output_path", "error_message", "completed_at")
    _COLUMN_LIST = ", ".join(_COLUMNS)
    _PLACEHOLDERS = ", ".join("?" for _ in _COLUMNS)
    _ORDER = "ORDER BY created_at DESC, rowid DESC"

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    @asynccontextmanager
    async def _connection(self, action: str) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection, translating driver failures into StorageUnavailableError."""
        try:
            async with self._db.connection() as conn:
                yield conn
        except (aiosqlite.Error, OSError) as exc:
            LOGGER.error("Error during %s in SQLite: %s", action, exc)
            raise StorageUnavailableError(f"Failed to {action}.") from exc

    async def create(self, request: GenerationRequest) -> str:
        """Insert a new row and return its id.

        Raises:
            DuplicateIdError: If a row with the same id already exists.
        """
        record = request.to_record()
        try:
            async with self._connection("insert generation request") as conn:
                await conn.execute(
                    f"INSERT INTO generation_requests ({self._COLUMN_LIST}) VALUES ({self._PLACEHOLDERS})",
                    tuple(record[col] for col in self._COLUMNS),
                )
                await conn.commit()
        except StorageUnavailableError as exc:
            cause = exc.__cause__
            if isinstance(cause, aiosqlite.IntegrityError) and "UNIQUE constraint failed" in str(cause):
                raise DuplicateIdError(f"Generation request with ID {request.id} already exists.") from cause
            raise

        LOGGER.info("Generation request inserted into SQLite with ID: %s", request.id)
        return request.id

    async def get(self, request_id: str) -> GenerationRequest:
        """Return the request with `request_id` or raise NotFoundError."""
        async with self._connection("get generation request") as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM generation_requests WHERE id = ?",
                (request_id,),
            )
            row = await cur.fetchone()

        if row is None:
            raise NotFoundError(f"Generation request with ID {request_id} not found.")
        return self._row_to_request(row)

    async def list_all(self) -> List[GenerationRequest]:
        async with self._connection("list generation requests") as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM generation_requests {self._ORDER}"
            )
            rows = await cur.fetchall()

        LOGGER.info("Listed %d generation requests", len(rows))
        return [self._row_to_request(r) for r in rows]

    async def update(self, request: GenerationRequest) -> None:
        """Overwrite the mutable fields of an existing row.

        Raises:
            NotFoundError: If no row has `request.id`.
        """
        record = request.to_record()
        assignments = ", ".join(f"{col} = ?" for col in self._MUTABLE_COLUMNS)
        params = [record[col] for col in self._MUTABLE_COLUMNS]
        params.append(request.id)

        async with self._connection("update generation request") as conn:
            cur = await conn.execute(
                f"UPDATE generation_requests SET {assignments} WHERE id = ?",
                tuple(params),
            )
            await conn.commit()
            changed = cur.rowcount

        if changed == 0:
            raise NotFoundError(f"Generation request with ID {request.id} not found for update.")
        LOGGER.info("Generation request %s updated to status %s", request.id, request.status.value)

    async def count_by_session(self, session_id: str) -> int:
        async with self._connection("count generation requests by session") as conn:
            cur = await conn.execute(
                "SELECT COUNT(*) FROM generation_requests WHERE client_session_id = ?",
                (session_id,),
            )
            row = await cur.fetchone()

        count = int(row[0]) if row else 0
        LOGGER.info("Counted %d generation requests for session ID: %s", count, session_id)
        return count

    async def list_by_session(self, session_id: str) -> List[GenerationRequest]:
        async with self._connection("list generation requests by session") as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM generation_requests WHERE client_session_id = ? {self._ORDER}",
                (session_id,),
            )
            rows = await cur.fetchall()

        LOGGER.info("Retrieved %d generation requests for session ID: %s", len(rows), session_id)
        return [self._row_to_request(r) for r in rows]

    async def list_by_status(self, status: GenerationStatus) -> List[GenerationRequest]:
        async with self._connection("list generation requests by status") as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM generation_requests WHERE status = ? {self._ORDER}",
                (status.value,),
            )
            rows = await cur.fetchall()
        return [self._row_to_request(r) for r in rows]

    @classmethod
    def _row_to_request(cls, row: Sequence[object]) -> GenerationRequest:
        """Convert a DB row tuple into a GenerationRequest."""
        return GenerationRequest.from_record(dict(zip(cls._COLUMNS, row)))
