"""
Legacy single-annotator review actions.

Used by workflows that do not track assignments. Each action returns an
updated copy of the item.
"""

from datetime import datetime

from ..models import WorkItem, WorkItemStatus


def _stamp(annotator_id: str | None, annotator_name: str | None) -> dict:
    return {
        "annotator_id": annotator_id,
        "annotator_name": annotator_name,
        "annotated_at": datetime.now(),
    }


def accept_annotation(
    item: WorkItem,
    content: str,
    annotator_id: str | None = None,
    annotator_name: str | None = None,
) -> WorkItem:
    """Accept a suggestion (or any content) as the final annotation."""
    return item.model_copy(
        update={
            "final_annotation": content,
            "status": WorkItemStatus.ACCEPTED,
            **_stamp(annotator_id, annotator_name),
        }
    )


def save_edit(
    item: WorkItem,
    content: str,
    annotator_id: str | None = None,
    annotator_name: str | None = None,
) -> WorkItem:
    """Save an edited annotation."""
    return item.model_copy(
        update={
            "final_annotation": content,
            "status": WorkItemStatus.EDITED,
            **_stamp(annotator_id, annotator_name),
        }
    )


def reject_annotation(item: WorkItem) -> WorkItem:
    """Reject the current annotation; the item goes back to pending."""
    return item.model_copy(update={"final_annotation": "", "status": WorkItemStatus.PENDING})


def rate_model(item: WorkItem, profile_id: str, rating: int) -> WorkItem:
    """
    Rate one model's suggestion.

    Raises:
        ValueError: If the rating is not between 1 and 5
    """
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValueError(f"Rating must be an integer from 1 to 5, got {rating!r}")
    return item.model_copy(update={"ratings": {**item.ratings, profile_id: rating}})


def set_human_annotation(item: WorkItem, content: str) -> WorkItem:
    """Store the free-form human annotation field."""
    return item.model_copy(update={"human_annotation": content})
