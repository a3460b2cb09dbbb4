"""Annotation statistics and project completion."""

from typing import Sequence

from .models import AnnotationStats, WorkItem, WorkItemStatus

COMPLETED_STATUSES = frozenset({WorkItemStatus.ACCEPTED, WorkItemStatus.EDITED})
PROCESSED_STATUSES = frozenset(
    {WorkItemStatus.AI_PROCESSED, WorkItemStatus.ACCEPTED, WorkItemStatus.EDITED}
)


def compute_stats(items: Sequence[WorkItem], session_seconds: int = 0) -> AnnotationStats:
    """
    Snapshot of annotation progress.

    Rejected items are the pending ones that already carry suggestions.
    Average confidence ignores items without a positive confidence.
    """
    confidences = [item.confidence for item in items if item.confidence and item.confidence > 0]

    return AnnotationStats(
        total_accepted=sum(1 for item in items if item.status == WorkItemStatus.ACCEPTED),
        total_rejected=sum(
            1
            for item in items
            if item.status == WorkItemStatus.PENDING and item.ai_suggestions
        ),
        total_edited=sum(1 for item in items if item.status == WorkItemStatus.EDITED),
        total_processed=sum(1 for item in items if item.status in PROCESSED_STATUSES),
        average_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
        session_time=session_seconds,
    )


def completed_count(items: Sequence[WorkItem]) -> int:
    return sum(1 for item in items if item.status in COMPLETED_STATUSES)


def completion_progress(items: Sequence[WorkItem]) -> float:
    """Percent of items accepted or edited."""
    if not items:
        return 0.0
    return completed_count(items) / len(items) * 100


def is_project_complete(items: Sequence[WorkItem]) -> bool:
    return bool(items) and completed_count(items) == len(items)
