"""Tests for legacy review actions and statistics."""

import pytest

from labeling_engine.consensus.review import (
    accept_annotation,
    rate_model,
    reject_annotation,
    save_edit,
    set_human_annotation,
)
from labeling_engine.models import WorkItem, WorkItemStatus
from labeling_engine.stats import completion_progress, compute_stats, is_project_complete


class TestLegacyReview:
    """Single-annotator accept/edit/reject."""

    def test_accept_stamps_annotator(self):
        item = accept_annotation(WorkItem(id="a", content="x"), "label", "u1", "Ana")

        assert item.status == WorkItemStatus.ACCEPTED
        assert item.final_annotation == "label"
        assert item.annotator_id == "u1"
        assert item.annotated_at is not None

    def test_edit_then_reject(self):
        item = save_edit(WorkItem(id="a", content="x"), "fixed")
        assert item.status == WorkItemStatus.EDITED

        item = reject_annotation(item)
        assert item.status == WorkItemStatus.PENDING
        assert item.final_annotation == ""

    @pytest.mark.parametrize("rating", [0, 6, 2.5, True])
    def test_invalid_rating(self, rating):
        with pytest.raises(ValueError):
            rate_model(WorkItem(id="a", content="x"), "llama", rating)

    def test_rating_and_human_annotation(self):
        item = rate_model(WorkItem(id="a", content="x", ratings={"gpt": 2}), "llama", 5)
        item = set_human_annotation(item, "free text")

        assert item.ratings == {"gpt": 2, "llama": 5}
        assert item.human_annotation == "free text"


class TestStats:
    """Progress counters."""

    def _items(self) -> list[WorkItem]:
        return [
            WorkItem(id="1", content="x", status=WorkItemStatus.ACCEPTED, confidence=0.9),
            WorkItem(id="2", content="x", status=WorkItemStatus.EDITED, confidence=0.7),
            WorkItem(id="3", content="x", status=WorkItemStatus.AI_PROCESSED, ai_suggestions={"m": "s"}),
            WorkItem(id="4", content="x", status=WorkItemStatus.PENDING, ai_suggestions={"m": "s"}),
            WorkItem(id="5", content="x", status=WorkItemStatus.PENDING),
        ]

    def test_compute_stats(self):
        stats = compute_stats(self._items(), session_seconds=42)

        assert stats.total_accepted == 1
        assert stats.total_edited == 1
        assert stats.total_rejected == 1
        assert stats.total_processed == 3
        assert stats.average_confidence == pytest.approx(0.8)
        assert stats.session_time == 42

    def test_completion(self):
        items = self._items()

        assert completion_progress(items) == pytest.approx(40.0)
        assert not is_project_complete(items)
        assert not is_project_complete([])
        assert completion_progress([]) == 0.0
        assert is_project_complete(items[:2])
