"""
Annotation service.

Applies assignment, review and allocation operations to the shared work item
store, so every mutation is serialised with AI merges, resolved, and forwarded
to the persistence collaborator as a field-level update.
"""

from datetime import datetime

import structlog

from ..models import AssignmentView, IAAConfig, UserRole, WorkItem
from ..processing.store import WorkItemStore
from . import assignments, review
from .allocator import allocate


logger = structlog.get_logger()


class AssignmentService:
    """Annotator and reviewer actions against a WorkItemStore."""

    def __init__(self, store: WorkItemStore):
        self.store = store

    async def start(self, item_id: str, annotator_id: str) -> WorkItem:
        return await self.store.mutate(
            item_id, lambda item: assignments.start_assignment(item, annotator_id)
        )

    async def save_draft(self, item_id: str, annotator_id: str, value: str) -> WorkItem:
        return await self.store.mutate(
            item_id, lambda item: assignments.save_draft(item, annotator_id, value)
        )

    async def submit(
        self,
        item_id: str,
        annotator_id: str,
        value: str,
        at: datetime | None = None,
    ) -> WorkItem:
        """
        Submit an annotator's value.

        Raises:
            KeyError: Unknown item
            ValueError: Empty value
        """
        updated = await self.store.mutate(
            item_id, lambda item: assignments.submit_assignment(item, annotator_id, value, at)
        )
        logger.info(
            "assignment_submitted",
            item_id=item_id,
            annotator_id=annotator_id,
            status=updated.status.value,
        )
        return updated

    async def clear(self, item_id: str, annotator_id: str) -> WorkItem:
        updated = await self.store.mutate(
            item_id, lambda item: assignments.clear_assignment(item, annotator_id)
        )
        logger.info(
            "assignment_cleared",
            item_id=item_id,
            annotator_id=annotator_id,
            status=updated.status.value,
        )
        return updated

    reject = clear

    def view(self, item_id: str, viewer_id: str, role: UserRole) -> AssignmentView:
        """
        Per-viewer view of one item.

        Raises:
            KeyError: Unknown item
        """
        item = self.store.get(item_id)
        if item is None:
            raise KeyError(item_id)
        return assignments.view_for(item, viewer_id, role)

    # Legacy single-annotator actions

    async def accept(
        self,
        item_id: str,
        content: str,
        annotator_id: str | None = None,
        annotator_name: str | None = None,
    ) -> WorkItem:
        return await self.store.mutate(
            item_id,
            lambda item: review.accept_annotation(item, content, annotator_id, annotator_name),
        )

    async def save_edit(
        self,
        item_id: str,
        content: str,
        annotator_id: str | None = None,
        annotator_name: str | None = None,
    ) -> WorkItem:
        return await self.store.mutate(
            item_id,
            lambda item: review.save_edit(item, content, annotator_id, annotator_name),
        )

    async def reject_annotation(self, item_id: str) -> WorkItem:
        return await self.store.mutate(item_id, review.reject_annotation)

    async def rate(self, item_id: str, profile_id: str, rating: int) -> WorkItem:
        return await self.store.mutate(
            item_id, lambda item: review.rate_model(item, profile_id, rating)
        )

    async def set_human_annotation(self, item_id: str, content: str) -> WorkItem:
        return await self.store.mutate(
            item_id, lambda item: review.set_human_annotation(item, content)
        )

    # Allocation

    async def reallocate(self, config: IAAConfig, project_id: str) -> list[WorkItem]:
        """Re-run IAA allocation over every item in the store."""
        allocated = allocate(self.store.items(), config, project_id)
        for updated in allocated:
            await self.store.mutate(updated.id, lambda _item, new=updated: new)
        return allocated
