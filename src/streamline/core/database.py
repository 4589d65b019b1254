import asyncio

import asyncpg
from loguru import logger

SCHEMA = """
CREATE TABLE IF NOT EXISTS streamers (
    id TEXT PRIMARY KEY,
    twitch_id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    twitch_username TEXT NOT NULL UNIQUE,
    avatar TEXT,
    bio TEXT,
    twitch_url TEXT,
    followers TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS games (
    id TEXT PRIMARY KEY,
    igdb_id INTEGER,
    title TEXT NOT NULL,
    image TEXT,
    synopsis TEXT,
    genre TEXT,
    platform TEXT,
    website TEXT,
    store_links TEXT,
    is_custom_game BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS streamer_games (
    id TEXT PRIMARY KEY,
    streamer_id TEXT NOT NULL REFERENCES streamers(id) ON DELETE CASCADE,
    game_id TEXT REFERENCES games(id) ON DELETE CASCADE,
    custom_title TEXT,
    custom_image TEXT,
    status TEXT NOT NULL,
    started_at TIMESTAMPTZ,
    finished_at TIMESTAMPTZ,
    notes TEXT,
    sort_order INTEGER,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS streamer_games_streamer_idx ON streamer_games (streamer_id, status);

CREATE TABLE IF NOT EXISTS scheduled_streams (
    id TEXT PRIMARY KEY,
    streamer_id TEXT NOT NULL REFERENCES streamers(id) ON DELETE CASCADE,
    game_id TEXT REFERENCES games(id) ON DELETE CASCADE,
    igdb_game_id INTEGER,
    game_title TEXT,
    game_image TEXT,
    game_synopsis TEXT,
    scheduled_date TIMESTAMPTZ NOT NULL,
    scheduled_time TEXT NOT NULL,
    duration TEXT NOT NULL,
    links TEXT,
    notes TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS scheduled_streams_streamer_idx ON scheduled_streams (streamer_id, scheduled_date);
"""


class DatabaseNotConnected(Exception):
    pass


class Database:
    """Process wide database handle.

    Built once at startup and handed to the request handlers through
    `get_database`. Concurrent `connect` calls share a single pool.
    """

    def __init__(self, url: str, min_size: int = 1, max_size: int = 10):
        self._db: asyncpg.Pool | None = None
        self._url = url
        self._min_size = min_size
        self._max_size = max_size
        self._lock = asyncio.Lock()
        self.ready = False

    async def connect(self) -> bool:
        """Connect to the database and create the tables if needed."""
        async with self._lock:
            if self._db is not None:
                return True

            logger.info("Connecting to database")
            try:
                self._db = await asyncpg.create_pool(self._url, min_size=self._min_size, max_size=self._max_size)
            except (OSError, asyncpg.exceptions.PostgresError) as e:
                logger.error("Could not connect to database")
                raise e

            async with self._db.acquire() as conn:
                await conn.execute(SCHEMA)

            logger.info("Connected to database")
            self.ready = True
            return True

    async def disconnect(self):
        async with self._lock:
            if self._db is None:
                return
            logger.info("Disconnecting from database")
            await self._db.close()
            self._db = None
            self.ready = False

    @property
    def db(self) -> asyncpg.Pool:
        """The connection pool, raises `DatabaseNotConnected` before `connect`."""
        if not self._db:
            raise DatabaseNotConnected("Database not connected")

        return self._db
