import os

os.environ.setdefault("TWITCH_CLIENT_ID", "test_client_id")
os.environ.setdefault("TWITCH_CLIENT_SECRET", "test_client_secret")

from typing import AsyncGenerator  # noqa: E402
from unittest import mock  # noqa: E402

import orjson  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fakes import (  # noqa: E402
    FakeGameRepository,
    FakeScheduledStreamRepository,
    FakeStreamerGameRepository,
    FakeStreamerRepository,
    InMemoryStore,
)
from httpx import ASGITransport, AsyncClient  # noqa: E402
from loguru import logger  # noqa: E402

from streamline.core.dependencies.database import (  # noqa: E402
    get_game_repository,
    get_scheduled_stream_repository,
    get_streamer_game_repository,
    get_streamer_repository,
)
from streamline.core.dependencies.twitch import get_igdb_client, get_twitch_api  # noqa: E402
from streamline.core.igdb import IGDBClient  # noqa: E402
from streamline.core.schemas.streamers import Session, Streamer  # noqa: E402
from streamline.core.settings import settings  # noqa: E402
from streamline.core.twitch import TwitchAPI  # noqa: E402
from streamline.main import app  # noqa: E402

FELPS_ID = "30672329"
OTHER_ID = "11111111"


@pytest.fixture
def caplog(caplog):
    handler_id = logger.add(caplog.handler, format="{message}")
    yield caplog
    logger.remove(handler_id)


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_streamer(FELPS_ID, "felps")
    store.add_streamer(OTHER_ID, "outro")
    return store


@pytest.fixture
def streamer_games(store) -> FakeStreamerGameRepository:
    return FakeStreamerGameRepository(store)


@pytest.fixture
def twitch_api():
    return mock.MagicMock(spec=TwitchAPI)


@pytest.fixture
def igdb_client():
    return mock.MagicMock(spec=IGDBClient)


@pytest_asyncio.fixture
async def test_client(store, streamer_games, twitch_api, igdb_client) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_streamer_repository] = lambda: FakeStreamerRepository(store)
    app.dependency_overrides[get_game_repository] = lambda: FakeGameRepository(store)
    app.dependency_overrides[get_streamer_game_repository] = lambda: streamer_games
    app.dependency_overrides[get_scheduled_stream_repository] = lambda: FakeScheduledStreamRepository(store)
    app.dependency_overrides[get_twitch_api] = lambda: twitch_api
    app.dependency_overrides[get_igdb_client] = lambda: igdb_client

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def session_for(streamer: Streamer) -> Session:
    return Session(
        id=streamer.id,
        name=streamer.name,
        twitch_username=streamer.twitch_username,
        twitch_url=streamer.twitch_url,
        followers=streamer.followers,
        access_token="user_access_token",
    )


def session_headers(session: Session) -> dict[str, str]:
    """Request headers carrying `session` in the session cookie."""
    payload = orjson.dumps(session.model_dump(by_alias=True)).decode("utf-8")
    return {"Cookie": f"{settings.session_cookie_name}={payload}"}


@pytest.fixture
def felps_headers(store) -> dict[str, str]:
    return session_headers(session_for(store.streamers[FELPS_ID]))


@pytest.fixture
def other_headers(store) -> dict[str, str]:
    return session_headers(session_for(store.streamers[OTHER_ID]))
