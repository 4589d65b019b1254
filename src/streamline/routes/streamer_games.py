from typing import Annotated, Literal

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from streamline.core.constants import TABLE_PAGE_SIZE
from streamline.core.dependencies.auth import CurrentSession, ensure_owner
from streamline.core.dependencies.database import Games, StreamerGames
from streamline.core.ordering import ListOrdering, ReindexResult, sort_column
from streamline.core.schedule import filter_streamer_games, group_by_status, paginate, sort_entries
from streamline.core.schemas.games import (
    MoveRequest,
    ReorderRequest,
    ReorderResponse,
    StreamerGame,
    StreamerGameCreate,
    StreamerGamePage,
    StreamerGameUpdate,
)

router = APIRouter(prefix="/api/streamer-games", tags=["Streamer games"])


def require_streamer_id(streamer_id: str | None) -> str:
    if not streamer_id:
        raise HTTPException(status_code=400, detail="streamerId is required")
    return streamer_id


async def get_owned_item(items: StreamerGames, item_id: str, session: CurrentSession) -> StreamerGame:
    item = await items.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Not found")
    ensure_owner(session, item.streamer_id)
    return item


def reorder_response(result: ReindexResult) -> ReorderResponse:
    if not result.ok:
        logger.warning(f"Column {result.status} partially reindexed, failed items: {result.failed}")
    return ReorderResponse(ok=result.ok, status=result.status, order=result.order, failed=result.failed)  # type: ignore


@router.get("", response_model=list[StreamerGame])
async def list_streamer_games(
    items: StreamerGames,
    streamerId: str | None = None,
    q: str | None = None,
    status: str | None = None,
) -> list[StreamerGame]:
    """Public list of a streamer's games, filtered by title search and status."""
    streamer_id = require_streamer_id(streamerId)
    return filter_streamer_games(await items.list_by_streamer(streamer_id), q=q, status=status)


@router.get("/board", response_model=dict[str, list[StreamerGame]])
async def get_board(items: StreamerGames, streamerId: str | None = None) -> dict[str, list[StreamerGame]]:
    """Kanban columns keyed by status, each one in its manual order."""
    streamer_id = require_streamer_id(streamerId)
    groups = group_by_status(await items.list_by_streamer(streamer_id))
    return {status: sort_column(column) for status, column in groups.items()}


@router.get("/table", response_model=StreamerGamePage)
async def get_table(
    items: StreamerGames,
    streamerId: str | None = None,
    q: str | None = None,
    status: str | None = None,
    sort: Literal["recent", "updatedAt", "title_asc", "title", "status"] = "updatedAt",
    direction: Literal["asc", "desc"] | None = None,
    page: int = 1,
    pageSize: Annotated[int, Query(ge=1, le=100)] = TABLE_PAGE_SIZE,
) -> StreamerGamePage:
    """Sorted and paginated table of a streamer's games.

    Without an explicit direction the date based sorts are newest first and
    the others ascending. Pages out of range are clamped.
    """
    streamer_id = require_streamer_id(streamerId)
    if direction is None:
        direction = "desc" if sort in ("recent", "updatedAt") else "asc"

    filtered = filter_streamer_games(await items.list_by_streamer(streamer_id), q=q, status=status)
    result = paginate(sort_entries(filtered, sort, direction), pageSize, page)
    return StreamerGamePage(
        items=result.items,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        total=result.total,
    )


@router.post("", response_model=StreamerGame)
async def create_streamer_game(
    data: StreamerGameCreate, items: StreamerGames, games: Games, session: CurrentSession
) -> StreamerGame:
    """Add a game to the logged streamer's list."""
    if data.streamer_id is not None:
        ensure_owner(session, data.streamer_id)
    if data.game_id and await games.get(data.game_id) is None:
        raise HTTPException(status_code=400, detail="Unknown gameId")

    return await items.create(session.id, data)


@router.post("/reorder", response_model=ReorderResponse)
async def reorder_column(data: ReorderRequest, items: StreamerGames, session: CurrentSession) -> ReorderResponse:
    """Persist the complete ordering of one status column after a drag-and-drop."""
    if len(set(data.ids)) != len(data.ids):
        raise HTTPException(status_code=400, detail="Duplicated ids")

    owned = {item.id for item in await items.list_by_streamer(session.id)}
    if foreign := [item_id for item_id in data.ids if item_id not in owned]:
        logger.info(f"Streamer {session.id} tried to reorder items it does not own: {foreign}")
        raise HTTPException(status_code=403, detail="Forbidden")

    result = await ListOrdering(items).reindex(data.ids, data.status, atomic=data.atomic)
    return reorder_response(result)


@router.post("/{item_id}/move", response_model=ReorderResponse)
async def move_streamer_game(
    item_id: str, data: MoveRequest, items: StreamerGames, session: CurrentSession
) -> ReorderResponse:
    """Drop an item into a column before `beforeId`, or at its end."""
    await get_owned_item(items, item_id, session)
    column = await items.list_by_streamer(session.id)
    result = await ListOrdering(items).move(column, item_id, data.status, data.before_id, atomic=data.atomic)
    return reorder_response(result)


@router.patch("/{item_id}")
async def update_streamer_game(
    item_id: str, data: StreamerGameUpdate, items: StreamerGames, games: Games, session: CurrentSession
) -> dict:
    """Partial update, only whitelisted fields present in the body are written."""
    item = await get_owned_item(items, item_id, session)
    changes = data.changes()
    if changes.get("game_id") and await games.get(changes["game_id"]) is None:
        raise HTTPException(status_code=400, detail="Unknown gameId")

    merged = {"game_id": item.game_id, "custom_title": item.custom_title, **changes}
    if not merged["game_id"] and not merged["custom_title"]:
        raise HTTPException(status_code=400, detail="gameId or customTitle is required")

    if changes.keys() == {"status"}:
        await ListOrdering(items).change_status(item_id, changes["status"])
    elif changes:
        await items.update(item_id, changes)
    return {"ok": True}


@router.delete("/{item_id}")
async def delete_streamer_game(item_id: str, items: StreamerGames, session: CurrentSession) -> dict:
    await get_owned_item(items, item_id, session)
    await items.delete(item_id)
    logger.info(f"Item {item_id} removed from the list of streamer {session.id}")
    return {"ok": True}
