"""Repository tests against a real PostgreSQL, enabled by setting TEST_POSTGRES_URL."""

import os
import re
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from streamline.core.database import Database, DatabaseNotConnected
from streamline.core.models.database import (
    GameRepository,
    ScheduledStreamRepository,
    StreamerGameRepository,
    StreamerRepository,
    generate_id,
)
from streamline.core.ordering import ListOrdering
from streamline.core.schemas.games import GameCreate, StoreLink, StreamerGameCreate
from streamline.core.schemas.streams import CatalogStreamCreate, CustomStreamCreate
from streamline.core.schemas.twitch import User

POSTGRES_URL = os.getenv("TEST_POSTGRES_URL")

requires_postgres = pytest.mark.skipif(not POSTGRES_URL, reason="TEST_POSTGRES_URL not set")

USER = User(id="30672329", login="felps", display_name="Felps", view_count=10)


def test_generate_id_format():
    assert re.fullmatch(r"\d{13}-[0-9a-z]{6}", generate_id())


def test_database_not_connected():
    with pytest.raises(DatabaseNotConnected):
        Database("postgresql://localhost/none").db


@pytest_asyncio.fixture
async def database():
    database = Database(POSTGRES_URL)  # type: ignore
    await database.connect()
    async with database.db.acquire() as conn:
        await conn.execute("TRUNCATE scheduled_streams, streamer_games, games, streamers")
    yield database
    await database.disconnect()


@requires_postgres
@pytest.mark.asyncio
async def test_connect_is_idempotent(database):
    pool = database.db
    assert await database.connect()
    assert database.db is pool


@requires_postgres
@pytest.mark.asyncio
async def test_streamer_upsert_refreshes_profile(database):
    streamers = StreamerRepository(database)

    created = await streamers.upsert_from_twitch(USER)
    updated = await streamers.upsert_from_twitch(USER.model_copy(update={"display_name": "FELPS", "view_count": 11}))

    assert created.id == updated.id == "30672329"
    assert updated.name == "FELPS"
    assert updated.followers == "11"
    assert (await streamers.get_by_username("Felps")).id == "30672329"


@requires_postgres
@pytest.mark.asyncio
async def test_streamer_games_ordering(database):
    await StreamerRepository(database).upsert_from_twitch(USER)
    game = await GameRepository(database).create(
        GameCreate(title="Hades", genre=["Indie"], store_links=[StoreLink(name="Steam", url="https://store.steampowered.com")])
    )
    items = StreamerGameRepository(database)
    hades = await items.create(USER.id, StreamerGameCreate(game_id=game.id, status="to_play"))
    tunic = await items.create(USER.id, StreamerGameCreate(custom_title="Tunic", status="to_play"))

    assert hades.game.store_links[0].name == "Steam"
    assert tunic.title == "Tunic"

    result = await ListOrdering(items).reindex([tunic.id, hades.id], "playing")
    assert result.ok

    listed = {i.id: i for i in await items.list_by_streamer(USER.id)}
    assert (listed[tunic.id].status, listed[tunic.id].sort_order) == ("playing", 10)
    assert (listed[hades.id].status, listed[hades.id].sort_order) == ("playing", 20)

    assert await items.update(hades.id, {"notes": "Zerado", "streamer_id": "someone else"})
    assert (await items.get(hades.id)).streamer_id == USER.id
    assert await items.delete(hades.id)
    assert not await items.delete(hades.id)


@requires_postgres
@pytest.mark.asyncio
async def test_scheduled_streams(database):
    await StreamerRepository(database).upsert_from_twitch(USER)
    game = await GameRepository(database).create(GameCreate(title="Celeste", platform="PC"))
    streams = ScheduledStreamRepository(database)
    when = datetime(2025, 10, 21, 1, 0, tzinfo=timezone.utc)

    catalog = await streams.create(
        USER.id, CatalogStreamCreate(game_id=game.id, scheduled_date=when, scheduled_time="22:00", duration="2h")
    )
    custom = await streams.create(
        USER.id,
        CustomStreamCreate(game_title="Segredo", scheduled_date=when, scheduled_time="22:00", duration="1h"),
    )

    assert catalog.game.title == "Celeste"
    assert catalog.game.platform == "PC"
    assert custom.game.title == "Segredo"
    assert custom.game_id is None

    assert await streams.update(custom.id, {"links": [{"url": "https://twitch.tv/felps", "name": None}]})
    assert (await streams.get(custom.id)).links[0].url == "https://twitch.tv/felps"
    assert len(await streams.list_by_streamer(USER.id)) == 2
