# manages the sqlite connection, creates the schema and seed data on first use
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

_HERE = os.path.dirname(os.path.abspath(__file__))

DB_PATH = settings.db_path
SCHEMA_SCRIPT = os.path.join(_HERE, "schema.sql")
SEED_SCRIPT = os.path.join(_HERE, "seed.sql")

_initialized = False
_init_lock = asyncio.Lock()


async def _run_script(conn: aiosqlite.Connection, script: str) -> None:
    _logger.info(f"Running {os.path.basename(script)}...")
    with open(script, "r", encoding="utf-8") as f:
        await conn.executescript(f.read())


async def _is_empty(conn: aiosqlite.Connection) -> bool:
    """True for a database holding no storefront table yet."""
    cur = await conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'kv_store';"
    )
    row = await cur.fetchone()
    await cur.close()
    return row is None


async def _prepare_db(conn: aiosqlite.Connection) -> None:
    """
    Seed a new database. An existing one only gets the schema re-applied,
    every statement in it being CREATE ... IF NOT EXISTS, so tables added
    since it was created appear without touching stored data.
    """
    fresh = await _is_empty(conn)
    if fresh:
        _logger.info(f"Initializing database at {DB_PATH}...")
    await _run_script(conn, SCHEMA_SCRIPT)
    if fresh:
        await _run_script(conn, SEED_SCRIPT)
    await conn.commit()


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Creates the schema and seed rows the first time the database is opened.
    """
    global _initialized
    db_dir = os.path.dirname(DB_PATH)
    if db_dir and not os.path.isdir(db_dir):
        os.makedirs(db_dir, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row
    await conn.execute("PRAGMA foreign_keys = ON;")

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                await _prepare_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()
