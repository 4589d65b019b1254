import secrets
import string
import time
from datetime import datetime, timezone

import asyncpg
import orjson
from loguru import logger

from streamline.core.database import Database
from streamline.core.ordering import OrderAssignment
from streamline.core.schemas.games import Game, GameCreate, StreamerGame, StreamerGameCreate
from streamline.core.schemas.streamers import Streamer
from streamline.core.schemas.streams import ScheduledStream, ScheduledStreamCreate, StreamGame
from streamline.core.schemas.twitch import User

_ALPHABET = string.digits + string.ascii_lowercase

STREAMER_GAME_COLUMNS = (
    "game_id",
    "custom_title",
    "custom_image",
    "status",
    "started_at",
    "finished_at",
    "notes",
    "sort_order",
)
SCHEDULED_STREAM_COLUMNS = ("scheduled_date", "scheduled_time", "duration", "links", "notes")

GAME_SELECT = """
    g.id AS g_id, g.igdb_id AS g_igdb_id, g.title AS g_title, g.image AS g_image,
    g.synopsis AS g_synopsis, g.genre AS g_genre, g.platform AS g_platform,
    g.website AS g_website, g.store_links AS g_store_links,
    g.is_custom_game AS g_is_custom_game, g.created_at AS g_created_at
"""


def generate_id() -> str:
    """`<epoch ms>-<6 random base36 chars>`"""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}"


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _dumps(value) -> str:
    return orjson.dumps(value).decode("utf-8")


def _loads(value: str | None, default=None):
    if not value:
        return default if default is not None else []
    try:
        return orjson.loads(value)
    except orjson.JSONDecodeError:
        logger.error(f"Could not decode JSON column value {value!r}")
        return default if default is not None else []


def _game_from_row(row: asyncpg.Record, prefix: str = "") -> Game:
    return Game(
        id=row[f"{prefix}id"],
        igdb_id=row[f"{prefix}igdb_id"],
        title=row[f"{prefix}title"],
        image=row[f"{prefix}image"],
        synopsis=row[f"{prefix}synopsis"],
        genre=_loads(row[f"{prefix}genre"]),
        platform=row[f"{prefix}platform"],
        website=row[f"{prefix}website"],
        store_links=_loads(row[f"{prefix}store_links"]),
        is_custom_game=row[f"{prefix}is_custom_game"],
        created_at=row[f"{prefix}created_at"],
    )


def _set_clause(changes: dict, start: int = 1) -> tuple[str, list]:
    assignments = [f"{column} = ${i}" for i, column in enumerate(changes, start=start)]
    return ", ".join(assignments), list(changes.values())


class StreamerRepository:
    def __init__(self, database: Database):
        self._database = database

    async def get(self, streamer_id: str) -> Streamer | None:
        async with self._database.db.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM streamers WHERE id = $1", streamer_id)
        return Streamer(**dict(row)) if row else None

    async def get_by_username(self, twitch_username: str) -> Streamer | None:
        """Public routing lookup, case-insensitive like Twitch logins."""
        async with self._database.db.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM streamers WHERE lower(twitch_username) = lower($1)", twitch_username)
        return Streamer(**dict(row)) if row else None

    async def upsert_from_twitch(self, user: User) -> Streamer:
        """Create the streamer on the first login, refresh the profile fields afterwards."""
        logger.info(f"Upserting streamer {user.login} ({user.id})")
        async with self._database.db.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO streamers (id, twitch_id, name, twitch_username, avatar, bio, twitch_url, followers, created_at)
                VALUES ($1, $1, $2, $3, $4, $5, $6, $7, $8)
                ON CONFLICT (twitch_id) DO UPDATE SET
                    name = EXCLUDED.name,
                    avatar = EXCLUDED.avatar,
                    bio = EXCLUDED.bio,
                    twitch_url = EXCLUDED.twitch_url,
                    followers = EXCLUDED.followers
                RETURNING *
                """,
                user.id,
                user.name,
                user.login,
                user.profile_image_url,
                user.description,
                user.channel_url,
                str(user.view_count),
                utcnow(),
            )
        return Streamer(**dict(row))


class GameRepository:
    def __init__(self, database: Database):
        self._database = database

    async def create(self, data: GameCreate) -> Game:
        logger.info(f"Registering game {data.title!r}")
        async with self._database.db.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO games (id, igdb_id, title, image, synopsis, genre, platform, website,
                                   store_links, is_custom_game, created_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                RETURNING *
                """,
                generate_id(),
                data.igdb_id,
                data.title,
                data.image,
                data.synopsis,
                _dumps(data.genre),
                data.platform,
                data.website,
                _dumps([link.model_dump() for link in data.store_links]),
                data.is_custom_game,
                utcnow(),
            )
        return _game_from_row(row)

    async def get(self, game_id: str) -> Game | None:
        async with self._database.db.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM games WHERE id = $1", game_id)
        return _game_from_row(row) if row else None


class StreamerGameRepository:
    def __init__(self, database: Database):
        self._database = database

    @staticmethod
    def _from_row(row: asyncpg.Record) -> StreamerGame:
        return StreamerGame(
            id=row["id"],
            streamer_id=row["streamer_id"],
            game_id=row["game_id"],
            custom_title=row["custom_title"],
            custom_image=row["custom_image"],
            status=row["status"],
            started_at=row["started_at"],
            finished_at=row["finished_at"],
            notes=row["notes"],
            sort_order=row["sort_order"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            game=_game_from_row(row, prefix="g_") if row["g_id"] else None,
        )

    async def create(self, streamer_id: str, data: StreamerGameCreate) -> StreamerGame:
        logger.info(f"Adding {data.game_id or data.custom_title!r} to the list of streamer {streamer_id}")
        item_id = generate_id()
        now = utcnow()
        async with self._database.db.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO streamer_games (id, streamer_id, game_id, custom_title, custom_image, status,
                                            started_at, finished_at, notes, sort_order, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $11)
                """,
                item_id,
                streamer_id,
                data.game_id,
                data.custom_title,
                data.custom_image,
                data.status,
                data.started_at,
                data.finished_at,
                data.notes,
                data.sort_order,
                now,
            )
        return await self.get(item_id)  # type: ignore

    async def get(self, item_id: str) -> StreamerGame | None:
        async with self._database.db.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT sg.*, {GAME_SELECT}
                FROM streamer_games sg LEFT JOIN games g ON sg.game_id = g.id
                WHERE sg.id = $1
                """,
                item_id,
            )
        return self._from_row(row) if row else None

    async def list_by_streamer(self, streamer_id: str) -> list[StreamerGame]:
        async with self._database.db.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT sg.*, {GAME_SELECT}
                FROM streamer_games sg LEFT JOIN games g ON sg.game_id = g.id
                WHERE sg.streamer_id = $1
                ORDER BY sg.created_at
                """,
                streamer_id,
            )
        return [self._from_row(row) for row in rows]

    async def update(self, item_id: str, changes: dict) -> bool:
        """Apply whitelisted column changes, returns False when the row does not exist."""
        changes = {k: v for k, v in changes.items() if k in STREAMER_GAME_COLUMNS}
        changes["updated_at"] = utcnow()
        clause, values = _set_clause(changes, start=2)
        async with self._database.db.acquire() as conn:
            r = await conn.execute(f"UPDATE streamer_games SET {clause} WHERE id = $1", item_id, *values)
        return r != "UPDATE 0"

    async def set_order(self, assignments: list[OrderAssignment]) -> None:
        """Write a whole column ordering in one transaction."""
        now = utcnow()
        async with self._database.db.acquire() as conn:
            async with conn.transaction():
                await conn.executemany(
                    "UPDATE streamer_games SET status = $2, sort_order = $3, updated_at = $4 WHERE id = $1",
                    [(a.id, a.status, a.sort_order, now) for a in assignments],
                )

    async def delete(self, item_id: str) -> bool:
        async with self._database.db.acquire() as conn:
            r = await conn.execute("DELETE FROM streamer_games WHERE id = $1", item_id)
        return r != "DELETE 0"


class ScheduledStreamRepository:
    def __init__(self, database: Database):
        self._database = database

    @staticmethod
    def _from_row(row: asyncpg.Record) -> ScheduledStream:
        if row["g_id"]:
            game = StreamGame(**_game_from_row(row, prefix="g_").model_dump())
        elif row["game_title"]:
            game = StreamGame(
                igdb_id=row["igdb_game_id"],
                title=row["game_title"],
                image=row["game_image"],
                synopsis=row["game_synopsis"],
            )
        else:
            game = None

        return ScheduledStream(
            id=row["id"],
            streamer_id=row["streamer_id"],
            game_id=row["game_id"],
            igdb_game_id=row["igdb_game_id"],
            game_title=row["game_title"],
            game_image=row["game_image"],
            game_synopsis=row["game_synopsis"],
            scheduled_date=row["scheduled_date"],
            scheduled_time=row["scheduled_time"],
            duration=row["duration"],
            links=_loads(row["links"]),
            notes=row["notes"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            game=game,
        )

    async def create(self, streamer_id: str, data: ScheduledStreamCreate) -> ScheduledStream:
        logger.info(f"Scheduling a {data.kind} stream for streamer {streamer_id} at {data.scheduled_date}")
        stream_id = generate_id()
        custom = data.kind == "custom"
        async with self._database.db.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO scheduled_streams (id, streamer_id, game_id, igdb_game_id, game_title, game_image,
                                               game_synopsis, scheduled_date, scheduled_time, duration, links,
                                               notes, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $13)
                """,
                stream_id,
                streamer_id,
                None if custom else data.game_id,  # type: ignore
                data.igdb_game_id,
                data.game_title if custom else None,  # type: ignore
                data.game_image if custom else None,  # type: ignore
                data.game_synopsis if custom else None,  # type: ignore
                data.scheduled_date,
                data.scheduled_time,
                data.duration,
                _dumps([link.model_dump() for link in data.links]),
                data.notes,
                utcnow(),
            )
        return await self.get(stream_id)  # type: ignore

    async def get(self, stream_id: str) -> ScheduledStream | None:
        async with self._database.db.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT s.*, {GAME_SELECT}
                FROM scheduled_streams s LEFT JOIN games g ON s.game_id = g.id
                WHERE s.id = $1
                """,
                stream_id,
            )
        return self._from_row(row) if row else None

    async def list_by_streamer(self, streamer_id: str) -> list[ScheduledStream]:
        async with self._database.db.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT s.*, {GAME_SELECT}
                FROM scheduled_streams s LEFT JOIN games g ON s.game_id = g.id
                WHERE s.streamer_id = $1
                ORDER BY s.scheduled_date
                """,
                streamer_id,
            )
        return [self._from_row(row) for row in rows]

    async def update(self, stream_id: str, changes: dict) -> bool:
        changes = {k: v for k, v in changes.items() if k in SCHEDULED_STREAM_COLUMNS}
        if "links" in changes:
            changes["links"] = _dumps(changes["links"] or [])
        changes["updated_at"] = utcnow()
        clause, values = _set_clause(changes, start=2)
        async with self._database.db.acquire() as conn:
            r = await conn.execute(f"UPDATE scheduled_streams SET {clause} WHERE id = $1", stream_id, *values)
        return r != "UPDATE 0"

    async def delete(self, stream_id: str) -> bool:
        async with self._database.db.acquire() as conn:
            r = await conn.execute("DELETE FROM scheduled_streams WHERE id = $1", stream_id)
        return r != "DELETE 0"
