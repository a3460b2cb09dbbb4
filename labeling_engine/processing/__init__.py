"""
Concurrent AI processing: admission control, unit invocation, the shared work
item store and the batch window processor.
"""

from .batch_window import BatchWindowProcessor, chunk
from .dispatcher import Dispatcher
from .invoker import ModelInvoker, TextGenerator
from .selection import needs_profile, profiles_to_run, select_pending
from .store import WorkItemRepository, WorkItemStore

__all__ = [
    "BatchWindowProcessor",
    "Dispatcher",
    "ModelInvoker",
    "TextGenerator",
    "WorkItemRepository",
    "WorkItemStore",
    "chunk",
    "needs_profile",
    "profiles_to_run",
    "select_pending",
]
