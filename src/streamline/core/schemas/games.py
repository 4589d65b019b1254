from datetime import datetime
from typing import Literal

from pydantic import Field, computed_field, field_validator, model_validator

from streamline.core.constants import STATUSES_WITH_NOTES
from streamline.core.schemas.base import CamelModel

Status = Literal["to_play", "playing", "finished", "dropped"]


class StoreLink(CamelModel):
    name: str
    url: str


class Game(CamelModel):
    """A catalog or custom game row"""

    id: str
    igdb_id: int | None = None
    title: str
    image: str | None = None
    synopsis: str | None = None
    genre: list[str] = []
    platform: str | None = None
    website: str | None = None
    store_links: list[StoreLink] = []
    is_custom_game: bool = False
    created_at: datetime


class GameCreate(CamelModel):
    igdb_id: int | None = None
    title: str = Field(min_length=1, max_length=100)
    image: str | None = None
    synopsis: str | None = None
    genre: list[str] = []
    platform: str | None = None
    website: str | None = None
    store_links: list[StoreLink] = []
    is_custom_game: bool = False


class StreamerGame(CamelModel):
    """A game tracked by a streamer, joined with its catalog row when there is one"""

    id: str
    streamer_id: str
    game_id: str | None = None
    custom_title: str | None = None
    custom_image: str | None = None
    status: str
    started_at: datetime | None = None
    finished_at: datetime | None = None
    notes: str | None = None
    sort_order: int | None = None
    created_at: datetime
    updated_at: datetime
    game: Game | None = None

    @property
    def title(self) -> str:
        if self.game is not None:
            return self.game.title
        return self.custom_title or ""

    @property
    def image(self) -> str | None:
        if self.game is not None:
            return self.game.image
        return self.custom_image

    @computed_field  # type: ignore[misc]
    @property
    def shows_notes(self) -> bool:
        return self.status in STATUSES_WITH_NOTES


class StreamerGameCreate(CamelModel):
    streamer_id: str | None = None
    game_id: str | None = None
    custom_title: str | None = None
    custom_image: str | None = None
    status: Status
    started_at: datetime | None = None
    finished_at: datetime | None = None
    notes: str | None = None
    sort_order: int | None = None

    @model_validator(mode="after")
    def check_game_or_custom_title(self):
        if not self.game_id and not self.custom_title:
            raise ValueError("gameId or customTitle is required")
        return self


class StreamerGameUpdate(CamelModel):
    """Partial update, only the fields present in the body are applied"""

    game_id: str | None = None
    custom_title: str | None = None
    custom_image: str | None = None
    status: Status | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    notes: str | None = None
    sort_order: int | None = None

    @field_validator("status")
    @classmethod
    def check_status_not_null(cls, v):
        # omitted keeps the current status, an explicit null is rejected
        if v is None:
            raise ValueError("status cannot be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ReorderRequest(CamelModel):
    status: Status
    ids: list[str] = Field(min_length=1)
    atomic: bool = True


class MoveRequest(CamelModel):
    status: Status
    before_id: str | None = None
    atomic: bool = True


class ReorderResponse(CamelModel):
    ok: bool
    status: Status
    order: list[str]
    failed: list[str] = []


class StreamerGamePage(CamelModel):
    items: list[StreamerGame]
    page: int
    page_size: int
    total_pages: int
    total: int
