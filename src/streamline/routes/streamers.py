from datetime import date
from typing import Annotated, Literal

from fastapi import APIRouter, HTTPException, Query

from streamline.core.dependencies.clock import Now, Timezone
from streamline.core.dependencies.database import ScheduledStreams, Streamers
from streamline.core.schedule import build_schedule_view, normalize_entry
from streamline.core.schemas.streamers import Streamer
from streamline.core.schemas.streams import ScheduleView

router = APIRouter(prefix="/api/streamers", tags=["Streamers"])


async def get_streamer_or_404(streamers: Streamers, handle: str) -> Streamer:
    streamer = await streamers.get_by_username(handle)
    if streamer is None:
        raise HTTPException(status_code=404, detail="Streamer não encontrado")
    return streamer


@router.get("/{handle}", response_model=Streamer)
async def get_streamer(handle: str, streamers: Streamers) -> Streamer:
    """Public profile of a streamer, looked up by Twitch username."""
    return await get_streamer_or_404(streamers, handle)


@router.get("/{handle}/schedule", response_model=ScheduleView)
async def get_schedule(
    handle: str,
    streamers: Streamers,
    streams: ScheduledStreams,
    now: Now,
    tz: Timezone,
    view: Literal["today", "week", "month"] = "week",
    selected: Annotated[date | None, Query(alias="date")] = None,
) -> ScheduleView:
    """Schedule of a streamer for one tab of the public page.

    `date` picks the week shown by the week view and the day highlighted by
    the month view, both default to today in the display timezone.
    """
    streamer = await get_streamer_or_404(streamers, handle)
    entries = [normalize_entry(s, streamer.twitch_username, tz) for s in await streams.list_by_streamer(streamer.id)]
    return build_schedule_view(entries, view, now, tz, selected=selected)
