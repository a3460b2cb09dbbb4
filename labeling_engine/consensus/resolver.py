"""
Consensus resolution.

An item's status and final annotation are a pure function of its assignments
and ``iaa_required_count``. Once the quota of done assignments with a value is
met, the first such assignment in arrival order provides the final annotation.
No vote or agreement score is computed.
"""

from ..models import ConsensusResolution, WorkItem, WorkItemStatus


def resolve(item: WorkItem) -> ConsensusResolution:
    """Compute the derived status and final annotation of an item."""
    required = item.iaa_required_count
    done = [assignment for assignment in item.assignments if assignment.is_done_with_value]

    if len(done) < required:
        return ConsensusResolution(
            status=WorkItemStatus.PENDING,
            final_annotation="",
            done_count=len(done),
            required=required,
        )

    return ConsensusResolution(
        status=WorkItemStatus.ACCEPTED,
        final_annotation=done[0].value or "",
        done_count=len(done),
        required=required,
    )


def apply_resolution(item: WorkItem) -> WorkItem:
    """Return a copy of the item with the resolution written back."""
    resolution = resolve(item)
    return item.model_copy(
        update={
            "status": resolution.status,
            "final_annotation": resolution.final_annotation,
        }
    )
