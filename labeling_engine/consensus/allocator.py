"""
Inter-annotator agreement (IAA) allocation.

Selects, once per upload, which work items need several independent
annotations. The selection is reproducible for a given
(seed, project id, item count, portion):

- the configured seed is combined with a 32-bit FNV-1a hash of the project id
- a mulberry32 generator seeded with that value drives a Fisher-Yates shuffle
  of the item indices
- the first ``ceil(total * portion / 100)`` shuffled indices become IAA items
"""

import math
from fractions import Fraction
from typing import Sequence

import structlog

from ..models import IAAConfig, WorkItem

logger = structlog.get_logger()

MASK_32 = 0xFFFFFFFF
FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash over the UTF-8 bytes of ``text``."""
    value = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & MASK_32
    return value


def combined_seed(seed: int, project_id: str) -> int:
    """Fold the project id into the configured seed."""
    return (seed ^ fnv1a_32(project_id)) & MASK_32


class Mulberry32:
    """Small deterministic 32-bit PRNG producing floats in [0, 1)."""

    def __init__(self, seed: int):
        self.state = seed & MASK_32

    def random(self) -> float:
        self.state = (self.state + 0x6D2B79F5) & MASK_32
        t = self.state
        t = ((t ^ (t >> 15)) * (t | 1)) & MASK_32
        t ^= (t + ((t ^ (t >> 7)) * (t | 61) & MASK_32)) & MASK_32
        return ((t ^ (t >> 14)) & MASK_32) / 4294967296


def seeded_permutation(count: int, seed: int) -> list[int]:
    """Fisher-Yates shuffle of ``range(count)``, last index first."""
    indices = list(range(count))
    rng = Mulberry32(seed)
    for i in range(count - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        indices[i], indices[j] = indices[j], indices[i]
    return indices


def iaa_item_count(total: int, portion_percent: float) -> int:
    """Exact ``ceil(total * portion / 100)``, clamped to ``[0, total]``."""
    if total <= 0 or portion_percent <= 0:
        return 0
    count = math.ceil(Fraction(total) * Fraction(str(portion_percent)) / 100)
    return min(count, total)


def select_iaa_indices(total: int, config: IAAConfig, project_id: str) -> list[int]:
    """
    Indices of the IAA items, in shuffled order.

    Returns an empty list when IAA is disabled.
    """
    if not config.enabled:
        return []
    count = iaa_item_count(total, config.portion_percent)
    if count == 0:
        return []
    return seeded_permutation(total, combined_seed(config.seed, project_id))[:count]


def allocate(items: Sequence[WorkItem], config: IAAConfig, project_id: str) -> list[WorkItem]:
    """
    Mark the IAA subset of an upload.

    Every item gets ``is_iaa``/``iaa_required_count`` set and its assignments
    reset. The input items are not modified.

    Args:
        items: Work items in upload order
        config: Project IAA policy
        project_id: Project identifier mixed into the seed

    Returns:
        Updated copies of the items, same order
    """
    selected = set(select_iaa_indices(len(items), config, project_id))
    required = config.required_count

    allocated = []
    for index, item in enumerate(items):
        is_iaa = index in selected
        allocated.append(
            item.model_copy(
                deep=True,
                update={
                    "is_iaa": is_iaa,
                    "iaa_required_count": required if is_iaa else 1,
                    "assignments": [],
                },
            )
        )

    logger.info(
        "iaa_allocated",
        project_id=project_id,
        items=len(items),
        iaa_items=len(selected),
        required_count=required,
        enabled=config.enabled,
    )
    return allocated
