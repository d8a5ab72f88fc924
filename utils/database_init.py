import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS generation_requests (
    id TEXT PRIMARY KEY,
    original_filename TEXT NOT NULL,
    original_image_path TEXT NOT NULL,
    color_count TEXT NOT NULL,
    difficulty TEXT NOT NULL,
    status TEXT NOT NULL,
    client_session_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    output_path TEXT,
    error_message TEXT,
    completed_at TEXT
)
"""

CREATE_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_generation_requests_session ON generation_requests(client_session_id)",
    "CREATE INDEX IF NOT EXISTS idx_generation_requests_status ON generation_requests(status)",
)


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database holding generation requests.

    - The database file is located at: <database_dir>/app.db
    - `database_dir` defaults to the DATABASE_DIR environment variable. A
      RuntimeError is raised if neither is given, or if the path is a file.
    - `ensure_database()` creates the file and the `generation_requests`
      table on first call. Existing rows are kept across restarts.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.

    The instance is created once by the application lifespan and handed to
    the DAL; there is no module-level connection state.
    """

    def __init__(self, database_dir: Optional[Path | str] = None) -> None:
        raw_dir = str(database_dir) if database_dir is not None else os.getenv("DATABASE_DIR")

        if raw_dir is None or not raw_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        db_dir = Path(raw_dir).expanduser()

        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={raw_dir!r} points to a file, not a directory "
                f"({db_dir}). Please set DATABASE_DIR to a directory path."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.db_dir = db_dir
        self.db_path = self.db_dir / "app.db"
        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite database and its schema exist at `self.db_path`.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(CREATE_TABLE)
                    for statement in CREATE_INDEXES:
                        await db.execute(statement)
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    async def ping(self) -> bool:
        """Return True if a trivial query succeeds against the database."""
        try:
            async with self.connection() as conn:
                cur = await conn.execute("SELECT 1")
                row = await cur.fetchone()
                return bool(row and row[0] == 1)
        except (aiosqlite.Error, OSError):
            return False

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The schema is created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
