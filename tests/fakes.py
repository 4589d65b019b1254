"""In-memory stand-ins for the repositories, plugged through `app.dependency_overrides`."""

from datetime import datetime, timedelta, timezone

from streamline.core.models.database import (
    SCHEDULED_STREAM_COLUMNS,
    STREAMER_GAME_COLUMNS,
    generate_id,
    utcnow,
)
from streamline.core.ordering import OrderAssignment
from streamline.core.schemas.games import Game, GameCreate, StreamerGame, StreamerGameCreate
from streamline.core.schemas.streamers import Streamer
from streamline.core.schemas.streams import ScheduledStream, StreamGame
from streamline.core.schemas.twitch import User

BASE_TIME = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)


class ForeignKeyViolation(Exception):
    """Raised where PostgreSQL would reject a row pointing at a missing game."""


class InMemoryStore:
    def __init__(self) -> None:
        self.streamers: dict[str, Streamer] = {}
        self.games: dict[str, Game] = {}
        self.streamer_games: dict[str, StreamerGame] = {}
        self.scheduled_streams: dict[str, ScheduledStream] = {}

    def check_game(self, game_id: str | None) -> None:
        if game_id is not None and game_id not in self.games:
            raise ForeignKeyViolation(f"game {game_id} does not exist")

    def add_streamer(self, streamer_id: str, username: str) -> Streamer:
        streamer = Streamer(
            id=streamer_id,
            twitch_id=streamer_id,
            name=username.capitalize(),
            twitch_username=username,
            twitch_url=f"https://twitch.tv/{username}",
            followers="0",
            created_at=BASE_TIME,
        )
        self.streamers[streamer_id] = streamer
        return streamer

    def add_game(self, title: str, **fields) -> Game:
        game = Game(id=generate_id(), title=title, created_at=BASE_TIME, **fields)
        self.games[game.id] = game
        return game

    def add_streamer_game(self, streamer_id: str, status: str, title: str, minutes: int = 0, **fields) -> StreamerGame:
        """Custom-title item, `minutes` offsets its timestamps from `BASE_TIME`."""
        timestamp = BASE_TIME + timedelta(minutes=minutes)
        item = StreamerGame(
            id=generate_id(),
            streamer_id=streamer_id,
            custom_title=title,
            status=status,
            created_at=timestamp,
            updated_at=timestamp,
            **fields,
        )
        self.streamer_games[item.id] = item
        return item

    def add_scheduled_stream(self, streamer_id: str, scheduled_date: datetime, game_title: str, **fields) -> ScheduledStream:
        stream = ScheduledStream(
            id=generate_id(),
            streamer_id=streamer_id,
            game_title=game_title,
            scheduled_date=scheduled_date,
            scheduled_time=f"{scheduled_date:%H:%M}",
            duration="2h",
            created_at=BASE_TIME,
            updated_at=BASE_TIME,
            game=StreamGame(title=game_title),
            **fields,
        )
        self.scheduled_streams[stream.id] = stream
        return stream


class FakeStreamerRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get(self, streamer_id: str) -> Streamer | None:
        return self._store.streamers.get(streamer_id)

    async def get_by_username(self, twitch_username: str) -> Streamer | None:
        for streamer in self._store.streamers.values():
            if streamer.twitch_username.lower() == twitch_username.lower():
                return streamer
        return None

    async def upsert_from_twitch(self, user: User) -> Streamer:
        existing = self._store.streamers.get(user.id)
        streamer = Streamer(
            id=user.id,
            twitch_id=user.id,
            name=user.name,
            twitch_username=existing.twitch_username if existing else user.login,
            avatar=user.profile_image_url,
            bio=user.description,
            twitch_url=user.channel_url,
            followers=str(user.view_count),
            created_at=existing.created_at if existing else utcnow(),
        )
        self._store.streamers[user.id] = streamer
        return streamer


class FakeGameRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def create(self, data: GameCreate) -> Game:
        game = Game(id=generate_id(), created_at=utcnow(), **data.model_dump())
        self._store.games[game.id] = game
        return game

    async def get(self, game_id: str) -> Game | None:
        return self._store.games.get(game_id)


class FakeStreamerGameRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.set_order_calls: list[list[OrderAssignment]] = []
        self.failing_ids: set[str] = set()

    def _join(self, item: StreamerGame) -> StreamerGame:
        game = self._store.games.get(item.game_id) if item.game_id else None
        return item.model_copy(update={"game": game})

    async def create(self, streamer_id: str, data: StreamerGameCreate) -> StreamerGame:
        self._store.check_game(data.game_id)
        now = utcnow()
        item = StreamerGame(
            id=generate_id(),
            streamer_id=streamer_id,
            created_at=now,
            updated_at=now,
            **data.model_dump(exclude={"streamer_id"}),
        )
        self._store.streamer_games[item.id] = item
        return self._join(item)

    async def get(self, item_id: str) -> StreamerGame | None:
        item = self._store.streamer_games.get(item_id)
        return self._join(item) if item else None

    async def list_by_streamer(self, streamer_id: str) -> list[StreamerGame]:
        items = [i for i in self._store.streamer_games.values() if i.streamer_id == streamer_id]
        return [self._join(i) for i in sorted(items, key=lambda i: i.created_at)]

    async def update(self, item_id: str, changes: dict) -> bool:
        if item_id in self.failing_ids:
            raise ConnectionError(f"write of {item_id} failed")
        item = self._store.streamer_games.get(item_id)
        if item is None:
            return False
        changes = {k: v for k, v in changes.items() if k in STREAMER_GAME_COLUMNS}
        self._store.check_game(changes.get("game_id"))
        self._store.streamer_games[item_id] = item.model_copy(update={**changes, "updated_at": utcnow()})
        return True

    async def set_order(self, assignments: list[OrderAssignment]) -> None:
        self.set_order_calls.append(assignments)
        for a in assignments:
            item = self._store.streamer_games[a.id]
            self._store.streamer_games[a.id] = item.model_copy(update={"status": a.status, "sort_order": a.sort_order})

    async def delete(self, item_id: str) -> bool:
        return self._store.streamer_games.pop(item_id, None) is not None


class FakeScheduledStreamRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def create(self, streamer_id: str, data) -> ScheduledStream:
        now = utcnow()
        if data.kind == "catalog":
            self._store.check_game(data.game_id)
            game = StreamGame(**self._store.games[data.game_id].model_dump())
            custom = {}
        else:
            game = StreamGame(
                igdb_id=data.igdb_game_id, title=data.game_title, image=data.game_image, synopsis=data.game_synopsis
            )
            custom = {"game_title": data.game_title, "game_image": data.game_image, "game_synopsis": data.game_synopsis}

        stream = ScheduledStream(
            id=generate_id(),
            streamer_id=streamer_id,
            game_id=data.game_id if data.kind == "catalog" else None,
            igdb_game_id=data.igdb_game_id,
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time,
            duration=data.duration,
            links=data.links,
            notes=data.notes,
            created_at=now,
            updated_at=now,
            game=game,
            **custom,
        )
        self._store.scheduled_streams[stream.id] = stream
        return stream

    async def get(self, stream_id: str) -> ScheduledStream | None:
        return self._store.scheduled_streams.get(stream_id)

    async def list_by_streamer(self, streamer_id: str) -> list[ScheduledStream]:
        streams = [s for s in self._store.scheduled_streams.values() if s.streamer_id == streamer_id]
        return sorted(streams, key=lambda s: s.scheduled_date)

    async def update(self, stream_id: str, changes: dict) -> bool:
        stream = self._store.scheduled_streams.get(stream_id)
        if stream is None:
            return False
        changes = {k: v for k, v in changes.items() if k in SCHEDULED_STREAM_COLUMNS}
        data = stream.model_dump()
        data.update(changes, updated_at=utcnow())
        self._store.scheduled_streams[stream_id] = ScheduledStream.model_validate(data)
        return True

    async def delete(self, stream_id: str) -> bool:
        return self._store.scheduled_streams.pop(stream_id, None) is not None
