"""
Pending-set rule for processing runs and estimates.

Human-finalized items (accepted, edited) are frozen. Without ``force`` an
(item, profile) pair is skipped once that profile's suggestion exists.
"""

from typing import Iterable

from ..models import FINALIZED_STATUSES, ModelProfile, ProcessingScope, WorkItem


def is_frozen(item: WorkItem) -> bool:
    return item.status in FINALIZED_STATUSES


def needs_profile(item: WorkItem, profile_id: str, force: bool) -> bool:
    """Whether one (item, profile) pair should run."""
    if is_frozen(item):
        return False
    return force or profile_id not in item.ai_suggestions


def profiles_to_run(
    item: WorkItem, profiles: Iterable[ModelProfile], force: bool
) -> list[ModelProfile]:
    """Profiles that still have to run on an item."""
    return [profile for profile in profiles if needs_profile(item, profile.id, force)]


def select_pending(
    items: Iterable[WorkItem],
    profiles: list[ModelProfile],
    scope: ProcessingScope | None = None,
    force: bool = False,
) -> list[WorkItem]:
    """
    Select the items a run would touch, in collection order.

    Args:
        items: Candidate work items
        profiles: Selected model profiles
        scope: Which items are considered (all by default)
        force: Reprocess pairs that already have suggestions

    Returns:
        Items with at least one pair to run
    """
    scope = scope or ProcessingScope.all()
    return [
        item
        for item in items
        if scope.includes(item.id) and profiles_to_run(item, profiles, force)
    ]
