from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Discriminator, Field, Tag, field_validator

from streamline.core.schemas.base import CamelModel
from streamline.core.schemas.games import StoreLink


class StreamLink(CamelModel):
    url: str
    name: str | None = None


class StreamGame(CamelModel):
    """Game data attached to a scheduled stream, from the games table or the custom columns"""

    id: str | None = None
    igdb_id: int | None = None
    title: str
    image: str | None = None
    synopsis: str | None = None
    genre: list[str] = []
    platform: str | None = None
    website: str | None = None
    store_links: list[StoreLink] = []


class ScheduledStream(CamelModel):
    id: str
    streamer_id: str
    game_id: str | None = None
    igdb_game_id: int | None = None
    game_title: str | None = None
    game_image: str | None = None
    game_synopsis: str | None = None
    scheduled_date: datetime
    scheduled_time: str
    duration: str
    links: list[StreamLink] = []
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    game: StreamGame | None = None


class _ScheduledStreamBase(CamelModel):
    scheduled_date: datetime
    scheduled_time: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    links: list[StreamLink] = []
    notes: str | None = None


class CatalogStreamCreate(_ScheduledStreamBase):
    """Stream of a game already registered in the games table"""

    kind: Literal["catalog"] = "catalog"
    game_id: str = Field(min_length=1)
    igdb_game_id: int | None = None


class CustomStreamCreate(_ScheduledStreamBase):
    """Stream of an ad-hoc game that bypasses the games table"""

    kind: Literal["custom"] = "custom"
    game_title: str = Field(min_length=1, max_length=100)
    game_image: str | None = None
    game_synopsis: str | None = None
    igdb_game_id: int | None = None


def _stream_kind(value) -> str | None:
    # bodies without `kind` are told apart by the presence of a game id
    if isinstance(value, dict):
        if value.get("kind"):
            return value["kind"]
        return "catalog" if value.get("gameId") or value.get("game_id") else "custom"
    return getattr(value, "kind", None)


ScheduledStreamCreate = Annotated[
    Union[
        Annotated[CatalogStreamCreate, Tag("catalog")],
        Annotated[CustomStreamCreate, Tag("custom")],
    ],
    Discriminator(_stream_kind),
]


class ScheduledStreamUpdate(CamelModel):
    scheduled_date: datetime | None = None
    scheduled_time: str | None = Field(default=None, min_length=1)
    duration: str | None = Field(default=None, min_length=1)
    links: list[StreamLink] | None = None
    notes: str | None = None

    @field_validator("scheduled_date", "scheduled_time", "duration", "links")
    @classmethod
    def check_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ScheduleEntry(CamelModel):
    """A scheduled stream normalized for display"""

    id: str
    title: str
    image: str
    scheduled_time: str
    scheduled_at: int
    relative_day: str
    duration: str
    platform: str = ""
    synopsis: str = ""
    stream_url: str
    store_links: list[StoreLink] = []
    notes: str | None = None
    igdb_id: int | None = None


class ScheduleView(CamelModel):
    view: Literal["today", "week", "month"]
    entries: list[ScheduleEntry] = []
    by_weekday: dict[str, list[ScheduleEntry]] | None = None
    selected_date: str | None = None
    selected: list[ScheduleEntry] | None = None
