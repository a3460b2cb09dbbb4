"""
Inter-annotator agreement: allocation, consensus resolution and annotator
actions.
"""

from .allocator import (
    Mulberry32,
    allocate,
    combined_seed,
    fnv1a_32,
    iaa_item_count,
    seeded_permutation,
    select_iaa_indices,
)
from .assignments import (
    clear_assignment,
    reject_assignment,
    save_draft,
    start_assignment,
    submit_assignment,
    view_for,
)
from .resolver import apply_resolution, resolve
from .review import (
    accept_annotation,
    rate_model,
    reject_annotation,
    save_edit,
    set_human_annotation,
)
from .service import AssignmentService

__all__ = [
    # Allocation
    "Mulberry32",
    "allocate",
    "combined_seed",
    "fnv1a_32",
    "iaa_item_count",
    "seeded_permutation",
    "select_iaa_indices",
    # Resolution
    "apply_resolution",
    "resolve",
    # Assignments
    "clear_assignment",
    "reject_assignment",
    "save_draft",
    "start_assignment",
    "submit_assignment",
    "view_for",
    # Legacy review
    "accept_annotation",
    "rate_model",
    "reject_annotation",
    "save_edit",
    "set_human_annotation",
    # Service
    "AssignmentService",
]
