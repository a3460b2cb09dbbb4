"""
Batch window processor.

Runs AI processing for a scope of work items against the selected model
profiles:

1. The selection is validated; nothing is submitted if it is unusable.
2. Pending items are split into batches, and batches into windows.
3. Windows run one after another; the batches of a window run together.
4. Each batch fans out one unit per (item, profile) pair to the dispatcher and
   merges its results into the store when all its units have finished.
5. Progress is reported after every window.

A failed unit is logged and does not stop its siblings. The first failure is
re-raised once every window has completed.
"""

import asyncio
import inspect
from datetime import datetime
from typing import Any, Callable

import structlog

from ..config.settings import settings
from ..errors import ProviderError
from ..models import (
    ProcessingProgress,
    ProcessingReport,
    ProcessingScope,
    ResolvedProfile,
    UnitResult,
    WorkItem,
)
from .dispatcher import Dispatcher
from .invoker import ModelInvoker, TextGenerator
from .selection import needs_profile, select_pending
from .store import WorkItemStore

logger = structlog.get_logger()

ProgressCallback = Callable[[ProcessingProgress], Any]


def chunk(values: list, size: int) -> list[list]:
    """Split a list into consecutive chunks of at most ``size``."""
    return [values[i : i + size] for i in range(0, len(values), size)]


class BatchWindowProcessor:
    """
    Drives the dispatcher across all (item, profile) pairs of a run.

    The dispatcher is shared by every run of this processor, so the in-flight
    bound holds across overlapping runs too.
    """

    def __init__(
        self,
        store: WorkItemStore,
        generator: TextGenerator,
        dispatcher: Dispatcher | None = None,
        batch_size: int | None = None,
        concurrent_batches: int | None = None,
    ):
        """
        Initialize the processor.

        Args:
            store: Shared work item store
            generator: GenerateText collaborator (validates selections too)
            dispatcher: Admission controller (created from settings if None)
            batch_size: Items per batch (default from settings)
            concurrent_batches: Batches per window (default from settings)
        """
        self.store = store
        self.generator = generator
        self.dispatcher = dispatcher or Dispatcher()
        self.invoker = ModelInvoker(generator, self.dispatcher)
        self.batch_size = batch_size if batch_size is not None else settings.batch_size
        self.concurrent_batches = (
            concurrent_batches
            if concurrent_batches is not None
            else settings.concurrent_batches_per_window
        )

        if self.batch_size < 1 or self.concurrent_batches < 1:
            raise ValueError("batch_size and concurrent_batches must be at least 1")

        self.last_report: ProcessingReport | None = None

    async def run(
        self,
        profile_ids: list[str],
        scope: ProcessingScope | None = None,
        force: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> ProcessingReport:
        """
        Process a scope of items with the selected profiles.

        Args:
            profile_ids: Selected model profile ids
            scope: Items to consider (all by default)
            force: Reprocess pairs that already have suggestions
            on_progress: Called after each window with (current, total)

        Returns:
            ProcessingReport for the run (also kept as ``last_report``)

        Raises:
            ConfigurationError: Before any submission, if the selection is unusable
            ProviderError: After the run, if any unit failed (the first failure)
        """
        resolved = self.generator.validate_selection(profile_ids)
        profiles = [r.profile for r in resolved]

        pending = select_pending(self.store.items(), profiles, scope, force)
        report = ProcessingReport(total_items=len(pending))
        self.last_report = report

        if not pending:
            logger.info("nothing_to_process", profiles=len(resolved), force=force)
            report.finished_at = datetime.now()
            return report

        batches = chunk(pending, self.batch_size)
        windows = chunk(batches, self.concurrent_batches)
        report.batches = len(batches)
        report.windows = len(windows)

        logger.info(
            "processing_started",
            items=len(pending),
            profiles=len(resolved),
            batches=len(batches),
            windows=len(windows),
            concurrent_batches=self.concurrent_batches,
            force=force,
        )

        errors: list[ProviderError] = []
        total = len(pending)

        for window_index, window in enumerate(windows):
            batch_offset = window_index * self.concurrent_batches
            await asyncio.gather(
                *(
                    self._process_batch(batch, batch_offset + i, resolved, force, report, errors)
                    for i, batch in enumerate(window)
                )
            )

            current = min((window_index + 1) * self.concurrent_batches * self.batch_size, total)
            logger.info(
                "window_completed",
                window=window_index + 1,
                windows=len(windows),
                current=current,
                total=total,
            )
            if on_progress is not None:
                outcome = on_progress(ProcessingProgress(current=current, total=total))
                if inspect.isawaitable(outcome):
                    await outcome

        report.finished_at = datetime.now()
        logger.info(
            "processing_finished",
            submitted=report.submitted_units,
            succeeded=report.succeeded_units,
            failed=report.failed_units,
        )

        if errors:
            logger.error(
                "processing_partial_failure",
                failed=report.failed_units,
                succeeded=report.succeeded_units,
                first_error=str(errors[0]),
            )
            raise errors[0]

        return report

    async def _process_batch(
        self,
        batch: list[WorkItem],
        batch_index: int,
        resolved: list[ResolvedProfile],
        force: bool,
        report: ProcessingReport,
        errors: list[ProviderError],
    ) -> None:
        units = [
            self._run_unit(item, profile, report, errors)
            for profile in resolved
            for item in batch
            if needs_profile(item, profile.profile_id, force)
        ]
        report.submitted_units += len(units)

        outcomes = await asyncio.gather(*units)
        results = [outcome for outcome in outcomes if outcome is not None]

        touched = await self.store.merge_suggestions(results)
        logger.debug(
            "batch_merged",
            batch=batch_index,
            units=len(units),
            results=len(results),
            items=len(touched),
        )

    async def _run_unit(
        self,
        item: WorkItem,
        resolved: ResolvedProfile,
        report: ProcessingReport,
        errors: list[ProviderError],
    ) -> UnitResult | None:
        try:
            result = await self.invoker.submit(item, resolved)
        except ProviderError as e:
            report.failed_units += 1
            errors.append(e)
            logger.warning(
                "unit_failed",
                item_id=item.id,
                profile_id=resolved.profile_id,
                provider=e.provider,
                error=e.message,
            )
            return None

        report.succeeded_units += 1
        return result
