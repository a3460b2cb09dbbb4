"""Tests for consensus resolution and assignment operations."""

from datetime import datetime

import pytest

from labeling_engine.consensus.assignments import (
    clear_assignment,
    reject_assignment,
    save_draft,
    start_assignment,
    submit_assignment,
    view_for,
)
from labeling_engine.consensus.resolver import resolve
from labeling_engine.models import (
    Assignment,
    AssignmentStatus,
    UserRole,
    WorkItem,
    WorkItemStatus,
)


def _iaa_item(required: int = 3) -> WorkItem:
    return WorkItem(id="a", content="x", is_iaa=True, iaa_required_count=required)


class TestResolve:
    """Status and final annotation are derived from assignments."""

    def test_threshold_of_three(self):
        """Pending after two done assignments, accepted after the third."""
        item = _iaa_item(3)
        item = submit_assignment(item, "u1", "cat")
        item = submit_assignment(item, "u2", "dog")
        assert item.status == WorkItemStatus.PENDING
        assert item.final_annotation == ""

        item = submit_assignment(item, "u3", "bird")
        assert item.status == WorkItemStatus.ACCEPTED
        assert item.final_annotation == "cat"

    def test_reverting_an_assignment_regresses_completion(self):
        item = _iaa_item(3)
        for annotator, value in (("u1", "cat"), ("u2", "dog"), ("u3", "bird")):
            item = submit_assignment(item, annotator, value)

        item = clear_assignment(item, "u2")

        assert item.status == WorkItemStatus.PENDING
        assert item.final_annotation == ""
        reverted = item.assignment_for("u2")
        assert reverted.status == AssignmentStatus.PENDING
        assert reverted.value is None
        assert reverted.annotated_at is None

    def test_first_qualifying_assignment_in_arrival_order_wins(self):
        """Assignments without a value are skipped when picking the answer."""
        item = WorkItem(
            id="a",
            content="x",
            is_iaa=True,
            iaa_required_count=2,
            assignments=[
                Assignment(annotator_id="u1", status=AssignmentStatus.DONE, value="   "),
                Assignment(annotator_id="u2", status=AssignmentStatus.IN_PROGRESS, value="draft"),
                Assignment(annotator_id="u3", status=AssignmentStatus.DONE, value="first"),
                Assignment(annotator_id="u4", status=AssignmentStatus.DONE, value="second"),
            ],
        )

        resolution = resolve(item)

        assert resolution.status == WorkItemStatus.ACCEPTED
        assert resolution.final_annotation == "first"
        assert resolution.done_count == 2
        assert resolution.is_complete

    def test_single_annotator_item(self):
        item = submit_assignment(WorkItem(id="a", content="x"), "u1", "label")

        assert item.status == WorkItemStatus.ACCEPTED
        assert item.final_annotation == "label"


class TestAssignmentOperations:
    """Arrival order and per-annotator uniqueness."""

    def test_one_assignment_per_annotator_in_arrival_order(self):
        item = _iaa_item(2)
        item = start_assignment(item, "u2")
        item = start_assignment(item, "u1")
        item = save_draft(item, "u2", "draft")
        item = start_assignment(item, "u2")

        assert [a.annotator_id for a in item.assignments] == ["u2", "u1"]
        assert item.assignment_for("u2").value == "draft"
        assert item.assignment_for("u2").status == AssignmentStatus.IN_PROGRESS

    def test_drafts_do_not_count(self):
        item = save_draft(_iaa_item(2), "u1", "a")
        item = save_draft(item, "u2", "b")

        assert item.status == WorkItemStatus.PENDING

    def test_submit_stamps_time(self):
        at = datetime(2024, 5, 1, 12, 0)

        item = submit_assignment(_iaa_item(2), "u1", "value", at=at)

        assert item.assignment_for("u1").annotated_at == at

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_submission_is_rejected(self, value):
        with pytest.raises(ValueError):
            submit_assignment(_iaa_item(2), "u1", value)

    def test_reject_is_clear(self):
        item = submit_assignment(WorkItem(id="a", content="x"), "u1", "label")

        item = reject_assignment(item, "u1")

        assert item.status == WorkItemStatus.PENDING

    def test_operations_return_copies(self):
        item = _iaa_item(2)

        submit_assignment(item, "u1", "value")

        assert item.assignments == []


class TestVisibility:
    """Annotators see their own work; managers see everything."""

    def _item(self) -> WorkItem:
        item = _iaa_item(2)
        item = submit_assignment(item, "u1", "cat")
        item = save_draft(item, "u2", "dog?")
        return item

    def test_annotator_sees_only_own_draft(self):
        view = view_for(self._item(), "u2", UserRole.ANNOTATOR)

        assert view.draft == "dog?"
        assert view.own_status == AssignmentStatus.IN_PROGRESS
        assert not view.is_own_done
        assert view.consensus is None
        assert view.assignments == []

    def test_annotator_without_assignment(self):
        view = view_for(self._item(), "u9", UserRole.ANNOTATOR)

        assert view.draft == ""
        assert view.own_status == AssignmentStatus.PENDING

    @pytest.mark.parametrize("role", [UserRole.MANAGER, UserRole.ADMIN])
    def test_reviewers_see_consensus_and_all_assignments(self, role):
        view = view_for(self._item(), "boss", role)

        assert view.consensus.status == WorkItemStatus.PENDING
        assert view.consensus.done_count == 1
        assert [a.annotator_id for a in view.assignments] == ["u1", "u2"]
