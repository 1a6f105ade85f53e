# local store for device pairings and the receipt journal, internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = "data/pos.sqlite"
SCHEMA_SCRIPT = os.path.join(os.path.dirname(__file__), "tables.sql")
# bump together with tables.sql
SCHEMA_VERSION = 1

_initialized = False
_init_lock = asyncio.Lock()


async def _schema_version(conn: aiosqlite.Connection) -> int:
    cur = await conn.execute("PRAGMA user_version;")
    row = await cur.fetchone()
    await cur.close()
    return int(row[0]) if row else 0


async def _migrate(conn: aiosqlite.Connection) -> None:
    """Run the schema script; every statement in it is idempotent."""
    _logger.info(f"Creating local store schema v{SCHEMA_VERSION} in {DB_PATH}...")
    with open(SCHEMA_SCRIPT, "r", encoding="utf-8") as f:
        await conn.executescript(f.read())
    await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    await conn.commit()


def configure(path: str) -> None:
    """Point the store at another file; the schema is checked on next connect."""
    global DB_PATH, _initialized
    DB_PATH = path
    _initialized = False


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Creates the parent directory on first use and brings the schema up to
    SCHEMA_VERSION.
    """
    global _initialized
    parent = os.path.dirname(DB_PATH)
    if parent:
        os.makedirs(parent, exist_ok=True)
    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row

    try:
        if not _initialized:
            async with _init_lock:
                if not _initialized:
                    if await _schema_version(conn) < SCHEMA_VERSION:
                        await _migrate(conn)
                    _initialized = True
        yield conn
    finally:
        await conn.close()
