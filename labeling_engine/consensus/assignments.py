"""
Assignment operations.

Pure functions over a work item: each returns an updated copy with the
consensus resolution re-applied. An annotator has at most one assignment per
item; new assignments are appended in arrival order.
"""

from datetime import datetime

from ..models import (
    Assignment,
    AssignmentStatus,
    AssignmentView,
    UserRole,
    WorkItem,
)
from .resolver import apply_resolution, resolve

REVIEWER_ROLES = frozenset({UserRole.ADMIN, UserRole.MANAGER})


def _with_assignment(item: WorkItem, assignment: Assignment) -> WorkItem:
    """Replace or append the annotator's assignment, then resolve."""
    assignments = list(item.assignments)
    for index, existing in enumerate(assignments):
        if existing.annotator_id == assignment.annotator_id:
            assignments[index] = assignment
            break
    else:
        assignments.append(assignment)

    return apply_resolution(item.model_copy(update={"assignments": assignments}))


def start_assignment(item: WorkItem, annotator_id: str) -> WorkItem:
    """Claim an item; an existing assignment keeps its draft value."""
    existing = item.assignment_for(annotator_id)
    assignment = Assignment(
        annotator_id=annotator_id,
        status=AssignmentStatus.IN_PROGRESS,
        value=existing.value if existing else None,
    )
    return _with_assignment(item, assignment)


def save_draft(item: WorkItem, annotator_id: str, value: str) -> WorkItem:
    """Store a draft value without submitting it."""
    return _with_assignment(
        item,
        Assignment(annotator_id=annotator_id, status=AssignmentStatus.IN_PROGRESS, value=value),
    )


def submit_assignment(
    item: WorkItem,
    annotator_id: str,
    value: str,
    at: datetime | None = None,
) -> WorkItem:
    """
    Mark the annotator's assignment done.

    Raises:
        ValueError: If the value is empty or blank
    """
    if not value or not value.strip():
        raise ValueError("Cannot submit an empty annotation")

    return _with_assignment(
        item,
        Assignment(
            annotator_id=annotator_id,
            status=AssignmentStatus.DONE,
            value=value,
            annotated_at=at or datetime.now(),
        ),
    )


def clear_assignment(item: WorkItem, annotator_id: str) -> WorkItem:
    """Send the annotator's assignment back to pending with no value."""
    return _with_assignment(
        item,
        Assignment(annotator_id=annotator_id, status=AssignmentStatus.PENDING),
    )


reject_assignment = clear_assignment


def view_for(item: WorkItem, viewer_id: str, role: UserRole) -> AssignmentView:
    """
    What one viewer sees of an item.

    Annotators see only their own draft and done flag. Managers and admins
    also get the resolved consensus and every assignment.
    """
    own = item.assignment_for(viewer_id)
    view = AssignmentView(
        item_id=item.id,
        viewer_id=viewer_id,
        role=role,
        draft=(own.value or "") if own else "",
        own_status=own.status if own else AssignmentStatus.PENDING,
        is_own_done=bool(own and own.status == AssignmentStatus.DONE),
    )

    if role in REVIEWER_ROLES:
        view.consensus = resolve(item)
        view.assignments = [assignment.model_copy() for assignment in item.assignments]
    return view
