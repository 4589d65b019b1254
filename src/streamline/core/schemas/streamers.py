from datetime import datetime

from pydantic import Field

from streamline.core.schemas.base import CamelModel


class Streamer(CamelModel):
    """A streamer account, created on the first Twitch login"""

    id: str
    twitch_id: str
    name: str
    twitch_username: str
    avatar: str | None = None
    bio: str | None = None
    twitch_url: str | None = None
    followers: str | None = None
    created_at: datetime


class Session(CamelModel):
    """Payload stored in the session cookie"""

    id: str = Field(min_length=1)
    name: str = ""
    twitch_username: str = ""
    avatar: str | None = None
    bio: str | None = None
    twitch_url: str | None = None
    followers: str | None = None
    access_token: str | None = None
    broadcaster_type: str | None = None
    created_at: str | None = None


class PublicSession(CamelModel):
    """Session data safe to echo back to the browser"""

    id: str
    name: str
    twitch_username: str
    avatar: str | None = None
    bio: str | None = None
    twitch_url: str | None = None
    followers: str | None = None
    broadcaster_type: str | None = None
    created_at: str | None = None
