from typing import Annotated

from fastapi import APIRouter, Body, HTTPException
from loguru import logger

from streamline.core.dependencies.auth import CurrentSession, ensure_owner
from streamline.core.dependencies.database import Games, ScheduledStreams
from streamline.core.images import LARGE, normalize_image_url
from streamline.core.schemas.streams import ScheduledStream, ScheduledStreamCreate, ScheduledStreamUpdate

router = APIRouter(prefix="/api/scheduled-streams", tags=["Scheduled streams"])


async def get_owned_stream(streams: ScheduledStreams, stream_id: str, session: CurrentSession) -> ScheduledStream:
    stream = await streams.get(stream_id)
    if stream is None:
        raise HTTPException(status_code=404, detail="Not found")
    ensure_owner(session, stream.streamer_id)
    return stream


@router.get("", response_model=list[ScheduledStream])
async def list_scheduled_streams(streams: ScheduledStreams, streamerId: str | None = None) -> list[ScheduledStream]:
    """Public list of a streamer's scheduled streams, joined with their game."""
    if not streamerId:
        raise HTTPException(status_code=400, detail="streamerId is required")
    return await streams.list_by_streamer(streamerId)


@router.post("", response_model=ScheduledStream)
async def create_scheduled_stream(
    data: Annotated[ScheduledStreamCreate, Body()], streams: ScheduledStreams, games: Games, session: CurrentSession
) -> ScheduledStream:
    """Schedule a stream for the logged streamer, either of a registered game or of a custom one."""
    if data.kind == "catalog" and await games.get(data.game_id) is None:
        raise HTTPException(status_code=400, detail="Unknown gameId")
    if data.kind == "custom" and data.game_image:
        data.game_image = normalize_image_url(data.game_image, size=LARGE)

    stream = await streams.create(session.id, data)
    logger.info(f"Stream {stream.id} scheduled by streamer {session.id}")
    return stream


@router.get("/{stream_id}", response_model=ScheduledStream)
async def get_scheduled_stream(stream_id: str, streams: ScheduledStreams) -> ScheduledStream:
    stream = await streams.get(stream_id)
    if stream is None:
        raise HTTPException(status_code=404, detail="Not found")
    return stream


@router.patch("/{stream_id}")
async def update_scheduled_stream(
    stream_id: str, data: ScheduledStreamUpdate, streams: ScheduledStreams, session: CurrentSession
) -> dict:
    await get_owned_stream(streams, stream_id, session)
    changes = data.changes()
    if changes:
        await streams.update(stream_id, changes)
    return {"ok": True}


@router.delete("/{stream_id}")
async def delete_scheduled_stream(stream_id: str, streams: ScheduledStreams, session: CurrentSession) -> dict:
    await get_owned_stream(streams, stream_id, session)
    await streams.delete(stream_id)
    logger.info(f"Stream {stream_id} deleted by streamer {session.id}")
    return {"success": True}
