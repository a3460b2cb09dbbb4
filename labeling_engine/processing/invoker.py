"""
Model invoker.

Wraps one (work item, model profile) pair into a unit of work submitted to the
dispatcher.
"""

import asyncio
from typing import Protocol

from ..models import ModelProfile, ProviderConnection, ResolvedProfile, UnitResult, WorkItem
from .dispatcher import Dispatcher


class TextGenerator(Protocol):
    """External GenerateText collaborator (ProviderManager in production)."""

    def validate_selection(self, profile_ids: list[str]) -> list[ResolvedProfile]: ...

    async def generate_text(
        self,
        item: WorkItem,
        profile: ModelProfile,
        connection: ProviderConnection,
    ) -> str: ...


class ModelInvoker:
    """Submits generation units through a shared dispatcher."""

    def __init__(self, generator: TextGenerator, dispatcher: Dispatcher):
        self.generator = generator
        self.dispatcher = dispatcher

    def submit(self, item: WorkItem, resolved: ResolvedProfile) -> "asyncio.Task[UnitResult]":
        """Submit one unit; the returned task raises the unit's ProviderError on failure."""

        async def unit() -> UnitResult:
            text = await self.generator.generate_text(item, resolved.profile, resolved.connection)
            return UnitResult(item_id=item.id, profile_id=resolved.profile_id, text=text)

        return self.dispatcher.submit(unit)
