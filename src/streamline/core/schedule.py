"""Aggregation of a streamer's schedule and game list into display views.

Everything here works on data that is already loaded: normalizing scheduled
streams, slicing them by day, week or month, and sorting, filtering and
paginating lists. Day boundaries are computed in the display timezone.
"""

import math
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import cmp_to_key
from typing import Any, Iterable, Literal, Sequence, TypeVar
from zoneinfo import ZoneInfo

import humanize

from streamline.core.constants import (
    DEFAULT_GAME_TITLE,
    STATUS_PRIORITY,
    STATUSES,
    WEEKDAYS,
)
from streamline.core.images import LARGE, normalize_image_url
from streamline.core.schemas.streams import ScheduledStream, ScheduleEntry, ScheduleView

T = TypeVar("T")

SortKey = Literal["recent", "updatedAt", "title_asc", "title", "status", "scheduled"]
Direction = Literal["asc", "desc"]

SORT_KEYS = ("recent", "updatedAt", "title_asc", "title", "status", "scheduled")


@dataclass
class Page:
    items: list
    page: int
    page_size: int
    total_pages: int
    total: int


def _get(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _epoch_ms(value: datetime | None) -> int:
    return int(value.timestamp() * 1000) if value else 0


def format_scheduled_time(value: datetime, tz: ZoneInfo) -> str:
    """pt-BR long form, e.g. `segunda-feira, 20/10, 19:00`."""
    local = value.astimezone(tz)
    return f"{WEEKDAYS[local.weekday()].lower()}, {local:%d/%m}, {local:%H:%M}"


def normalize_entry(stream: ScheduledStream, twitch_username: str, tz: ZoneInfo) -> ScheduleEntry:
    """Flatten a scheduled stream and its game into a display entry."""
    game = stream.game
    raw_image = (game.image if game else None) or stream.game_image
    local_date = stream.scheduled_date.astimezone(tz).date()

    return ScheduleEntry(
        id=stream.id,
        title=(game.title if game else None) or stream.game_title or DEFAULT_GAME_TITLE,
        image=normalize_image_url(raw_image, size=LARGE),
        scheduled_time=format_scheduled_time(stream.scheduled_date, tz),
        scheduled_at=_epoch_ms(stream.scheduled_date),
        relative_day=humanize.naturalday(local_date, format="%d/%m"),
        duration=stream.duration,
        platform=(game.platform if game else None) or "",
        synopsis=(game.synopsis if game else None) or stream.game_synopsis or "",
        stream_url=f"https://twitch.tv/{twitch_username}",
        store_links=game.store_links if game else [],
        notes=stream.notes or None,
        igdb_id=(game.igdb_id if game else None) or stream.igdb_game_id,
    )


def _local_date(entry: ScheduleEntry, tz: ZoneInfo) -> date:
    return datetime.fromtimestamp(entry.scheduled_at / 1000, tz=tz).date()


def local_midnight(now: datetime, tz: ZoneInfo) -> datetime:
    return now.astimezone(tz).replace(hour=0, minute=0, second=0, microsecond=0)


def filter_today(entries: Iterable[ScheduleEntry], now: datetime, tz: ZoneInfo) -> list[ScheduleEntry]:
    """Entries scheduled in `[local midnight, next local midnight)`."""
    start = local_midnight(now, tz)
    end = start + timedelta(days=1)
    start_ms, end_ms = _epoch_ms(start), _epoch_ms(end)
    return [e for e in entries if start_ms <= e.scheduled_at < end_ms]


def filter_week(
    entries: Iterable[ScheduleEntry], tz: ZoneInfo, reference: date | None = None
) -> dict[str, list[ScheduleEntry]]:
    """Entries grouped under their weekday name, Monday first.

    With a `reference` date only the Monday to Sunday week containing it is kept.
    """
    groups: dict[str, list[ScheduleEntry]] = {day: [] for day in WEEKDAYS}
    if reference is not None:
        monday = reference - timedelta(days=reference.weekday())
        sunday = monday + timedelta(days=6)

    for entry in entries:
        day = _local_date(entry, tz)
        if reference is not None and not (monday <= day <= sunday):
            continue
        groups[WEEKDAYS[day.weekday()]].append(entry)
    return groups


def filter_by_calendar_date(entries: Iterable[ScheduleEntry], selected: date, tz: ZoneInfo) -> list[ScheduleEntry]:
    return [e for e in entries if _local_date(e, tz) == selected]


def filter_month(entries: Iterable[ScheduleEntry], reference: date, tz: ZoneInfo) -> list[ScheduleEntry]:
    """All entries in the month of `reference`."""
    result = []
    for entry in entries:
        day = _local_date(entry, tz)
        if (day.year, day.month) == (reference.year, reference.month):
            result.append(entry)
    return result


def collation_key(value: str) -> tuple[str, str]:
    """Accent and case insensitive ordering, with the original text as tiebreaker."""
    stripped = "".join(c for c in unicodedata.normalize("NFKD", value) if not unicodedata.combining(c))
    return stripped.casefold(), value


def _compare(a, b) -> int:
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a - b  # type: ignore
    ka, kb = collation_key(str(a)), collation_key(str(b))
    return (ka > kb) - (ka < kb)


def _sort_value(item: Any, key: str):
    if key in ("recent", "updatedAt"):
        return _epoch_ms(_get(item, "updated_at"))
    if key in ("title", "title_asc"):
        return (_get(item, "title") or "").lower()
    if key == "status":
        return STATUS_PRIORITY.get(_get(item, "status"), -1)
    if key == "scheduled":
        return _get(item, "scheduled_at") or 0
    raise ValueError(f"Unknown sort key {key!r}")


def sort_entries(items: Iterable[T], key: SortKey, direction: Direction = "asc") -> list[T]:
    """Stable sort by `key`, `desc` negates the comparison."""
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}")
    sign = -1 if direction == "desc" else 1

    def comparator(a, b) -> int:
        return sign * _compare(_sort_value(a, key), _sort_value(b, key))

    return sorted(items, key=cmp_to_key(comparator))


def paginate(items: Sequence[T], page_size: int, page: int) -> Page:
    """Slice one page out of `items`, clamping `page` to the existing pages."""
    if page_size < 1:
        raise ValueError("page_size must be positive")
    total_pages = max(1, math.ceil(len(items) / page_size))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        total=len(items),
    )


def group_by_status(items: Iterable[T]) -> dict[str, list[T]]:
    """Four disjoint buckets, items with an unknown status are left out."""
    groups: dict[str, list[T]] = {status: [] for status in STATUSES}
    for item in items:
        status = _get(item, "status")
        if status in groups:
            groups[status].append(item)
    return groups


def filter_streamer_games(items: Iterable[T], q: str | None = None, status: str | None = None) -> list[T]:
    """Case-insensitive title search plus exact status match, `all` disables the status filter."""
    query = (q or "").strip().casefold()
    result = []
    for item in items:
        if status and status != "all" and _get(item, "status") != status:
            continue
        if query and query not in (_get(item, "title") or "").casefold():
            continue
        result.append(item)
    return result


def build_schedule_view(
    entries: list[ScheduleEntry],
    view: Literal["today", "week", "month"],
    now: datetime,
    tz: ZoneInfo,
    selected: date | None = None,
) -> ScheduleView:
    """Compose the payload of one schedule tab from normalized entries."""
    entries = sort_entries(entries, "scheduled")

    if view == "today":
        return ScheduleView(view=view, entries=filter_today(entries, now, tz))

    if view == "week":
        reference = selected or now.astimezone(tz).date()
        by_weekday = filter_week(entries, tz, reference=reference)
        return ScheduleView(
            view=view,
            entries=[e for day in by_weekday.values() for e in day],
            by_weekday=by_weekday,
            selected_date=reference.isoformat(),
        )

    selected = selected or now.astimezone(tz).date()
    return ScheduleView(
        view=view,
        entries=filter_month(entries, selected, tz),
        selected_date=selected.isoformat(),
        selected=filter_by_calendar_date(entries, selected, tz),
    )
