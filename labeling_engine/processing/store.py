"""
Work item store.

The single piece of mutable shared state: an arena of work items keyed by id,
kept in upload order. All writes go through one asyncio lock and are applied
as field-level patches, so concurrent batch merges and annotator actions never
overwrite each other.
"""

import asyncio
from typing import Any, Callable, Iterable, Protocol

import structlog

from ..models import ADVANCEABLE_STATUSES, UnitResult, WorkItem, WorkItemStatus, dump_fields

logger = structlog.get_logger()


class WorkItemRepository(Protocol):
    """Persistence collaborator receiving granular field updates."""

    async def update_fields(self, item_id: str, fields: dict[str, Any]) -> None: ...


class WorkItemStore:
    """Arena of work items guarded by a single-writer lock."""

    def __init__(
        self,
        items: Iterable[WorkItem] = (),
        repository: WorkItemRepository | None = None,
    ):
        self.repository = repository
        self._items: dict[str, WorkItem] = {}
        self._lock = asyncio.Lock()
        self.load(items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def load(self, items: Iterable[WorkItem]) -> None:
        """
        Replace the store's contents.

        Raises:
            ValueError: If two items share an id
        """
        loaded: dict[str, WorkItem] = {}
        for item in items:
            if item.id in loaded:
                raise ValueError(f"Duplicate work item id: {item.id}")
            loaded[item.id] = item.model_copy(deep=True)
        self._items = loaded

    def get(self, item_id: str) -> WorkItem | None:
        """Get a copy of one item."""
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item is not None else None

    def items(self) -> list[WorkItem]:
        """Snapshot of all items in upload order."""
        return [item.model_copy(deep=True) for item in self._items.values()]

    async def merge_suggestions(self, results: Iterable[UnitResult]) -> list[str]:
        """
        Apply completed generation results to the current state.

        Each result sets ``ai_suggestions[profile_id]``; items whose status is
        pending, ai_processed or rejected advance to ai_processed, unless the
        item is on the assignment path, where status is left to ``resolve``.

        Returns:
            Ids of the items that were touched, in first-touch order
        """
        touched: dict[str, None] = {}
        async with self._lock:
            for result in results:
                item = self._items.get(result.item_id)
                if item is None:
                    logger.warning("merge_unknown_item", item_id=result.item_id)
                    continue

                item.ai_suggestions = {**item.ai_suggestions, result.profile_id: result.text}
                # Assignment-backed status belongs to the consensus resolver
                if not item.uses_assignments and item.status in ADVANCEABLE_STATUSES:
                    item.status = WorkItemStatus.AI_PROCESSED
                touched[item.id] = None

            updates = [
                (item_id, dump_fields(self._items[item_id], ["ai_suggestions", "status"]))
                for item_id in touched
            ]

        await self._persist(updates)
        return list(touched)

    async def mutate(self, item_id: str, fn: Callable[[WorkItem], WorkItem]) -> WorkItem:
        """
        Apply ``fn`` to one item under the lock.

        ``fn`` receives a copy and returns the updated item; only fields that
        changed are forwarded to the repository.

        Raises:
            KeyError: If the item does not exist
        """
        async with self._lock:
            current = self._items.get(item_id)
            if current is None:
                raise KeyError(item_id)

            updated = fn(current.model_copy(deep=True))
            if updated.id != item_id:
                raise ValueError("Work item id cannot change")

            before = current.model_dump(mode="json")
            after = updated.model_dump(mode="json")
            changed = {key: value for key, value in after.items() if before.get(key) != value}
            self._items[item_id] = updated

        if changed:
            await self._persist([(item_id, changed)])
        return updated.model_copy(deep=True)

    async def _persist(self, updates: list[tuple[str, dict[str, Any]]]) -> None:
        if self.repository is None:
            return
        for item_id, fields in updates:
            await self.repository.update_fields(item_id, fields)
