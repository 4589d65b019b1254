from typing import Annotated

from fastapi import Depends, Request

from streamline.core.igdb import IGDBClient
from streamline.core.twitch import TwitchAPI


def get_twitch_api(request: Request) -> TwitchAPI:
    return request.app.state.twitch_api


def get_igdb_client(request: Request) -> IGDBClient:
    return request.app.state.igdb


Twitch = Annotated[TwitchAPI, Depends(get_twitch_api)]
IGDB = Annotated[IGDBClient, Depends(get_igdb_client)]
