from typing import Annotated

from fastapi import Depends, Request

from streamline.core.database import Database
from streamline.core.models.database import (
    GameRepository,
    ScheduledStreamRepository,
    StreamerGameRepository,
    StreamerRepository,
)


def get_database(request: Request) -> Database:
    """The database handle created at startup."""
    return request.app.state.database


def get_streamer_repository(database: Annotated[Database, Depends(get_database)]) -> StreamerRepository:
    return StreamerRepository(database)


def get_game_repository(database: Annotated[Database, Depends(get_database)]) -> GameRepository:
    return GameRepository(database)


def get_streamer_game_repository(database: Annotated[Database, Depends(get_database)]) -> StreamerGameRepository:
    return StreamerGameRepository(database)


def get_scheduled_stream_repository(
    database: Annotated[Database, Depends(get_database)]
) -> ScheduledStreamRepository:
    return ScheduledStreamRepository(database)


Streamers = Annotated[StreamerRepository, Depends(get_streamer_repository)]
Games = Annotated[GameRepository, Depends(get_game_repository)]
StreamerGames = Annotated[StreamerGameRepository, Depends(get_streamer_game_repository)]
ScheduledStreams = Annotated[ScheduledStreamRepository, Depends(get_scheduled_stream_repository)]
