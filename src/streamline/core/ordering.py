"""Manual ordering of the games inside a status column.

Every item of a column gets an explicit `sort_order`, spaced by `SORT_STEP` so a
single item can later be slotted between two others without renumbering the
whole column. A drag-and-drop rewrites the complete ordering of the target column.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Protocol

from loguru import logger

if TYPE_CHECKING:
    from streamline.core.schemas.games import StreamerGame

SORT_STEP = 10


@dataclass(frozen=True)
class OrderAssignment:
    id: str
    status: str
    sort_order: int


@dataclass
class ReindexResult:
    status: str
    order: list[str]
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class OrderStore(Protocol):
    async def update(self, item_id: str, changes: dict) -> bool: ...

    async def set_order(self, assignments: list[OrderAssignment]) -> None: ...


def reindex_assignments(ids: Iterable[str], status: str) -> list[OrderAssignment]:
    """`sort_order = (position + 1) * SORT_STEP` for each id, in the given order."""
    return [OrderAssignment(id=item_id, status=status, sort_order=(i + 1) * SORT_STEP) for i, item_id in enumerate(ids)]


def move_to_position(column_ids: list[str], dragged_id: str, before_id: str | None = None) -> list[str]:
    """New ordering of a column after dropping `dragged_id` before `before_id`.

    The dragged item is first removed from the column (it may come from another
    one). A missing or unknown `before_id` appends it to the end.
    """
    remaining = [item_id for item_id in column_ids if item_id != dragged_id]
    if before_id is not None and before_id in remaining:
        index = remaining.index(before_id)
    else:
        index = len(remaining)
    return remaining[:index] + [dragged_id] + remaining[index:]


def column_sort_key(item: "StreamerGame") -> tuple:
    # items without a sort_order go last, ordered by title
    return (item.sort_order is None, item.sort_order or 0, item.title.casefold())


def sort_column(items: Iterable["StreamerGame"]) -> list["StreamerGame"]:
    return sorted(items, key=column_sort_key)


def column_ids(items: Iterable["StreamerGame"], status: str) -> list[str]:
    """Ids of the `status` column in display order."""
    return [item.id for item in sort_column(i for i in items if i.status == status)]


class ListOrdering:
    """Persists column orderings through a streamer-game repository."""

    def __init__(self, store: OrderStore) -> None:
        self._store = store

    async def reindex(self, ids: list[str], status: str, atomic: bool = True) -> ReindexResult:
        """Persist the full ordering of the `status` column.

        Atomic mode writes everything in one transaction. Otherwise each item is
        written on its own and the ids that failed are reported back, leaving the
        ones already written in place.
        """
        assignments = reindex_assignments(ids, status)
        result = ReindexResult(status=status, order=list(ids))
        logger.info(f"Reindexing {len(assignments)} items of column {status} (atomic={atomic})")

        if atomic:
            await self._store.set_order(assignments)
            return result

        for assignment in assignments:
            try:
                updated = await self._store.update(
                    assignment.id, {"status": assignment.status, "sort_order": assignment.sort_order}
                )
            except Exception:
                logger.exception(f"Could not persist the position of item {assignment.id}")
                result.failed.append(assignment.id)
                continue
            if not updated:
                logger.warning(f"Item {assignment.id} disappeared while reindexing column {status}")
                result.failed.append(assignment.id)

        return result

    async def move(
        self,
        items: list["StreamerGame"],
        dragged_id: str,
        status: str,
        before_id: str | None = None,
        atomic: bool = True,
    ) -> ReindexResult:
        """Drop `dragged_id` into the `status` column before `before_id` and persist the column."""
        order = move_to_position(column_ids(items, status), dragged_id, before_id)
        return await self.reindex(order, status, atomic=atomic)

    async def change_status(self, item_id: str, status: str) -> bool:
        """Plain status change, the item keeps its sort_order."""
        logger.info(f"Moving item {item_id} to {status}")
        return await self._store.update(item_id, {"status": status})
