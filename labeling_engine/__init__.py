"""
Labeling engine.

Concurrent multi-model suggestion processing, token/cost estimation and
inter-annotator agreement allocation for human-in-the-loop data labeling.
"""

from .api.manager import ProviderManager
from .consensus import AssignmentService, allocate, resolve
from .errors import ConfigurationError, EstimationUnavailable, ProviderError
from .estimation import PricingSession, estimate_cost, estimate_tokens
from .models import (
    Assignment,
    AssignmentStatus,
    CostEstimate,
    IAAConfig,
    ModelProfile,
    ProcessingScope,
    ProviderConnection,
    TokenEstimate,
    WorkItem,
    WorkItemStatus,
)
from .processing import BatchWindowProcessor, Dispatcher, WorkItemStore

__version__ = "0.1.0"

__all__ = [
    "Assignment",
    "AssignmentService",
    "AssignmentStatus",
    "BatchWindowProcessor",
    "ConfigurationError",
    "CostEstimate",
    "Dispatcher",
    "EstimationUnavailable",
    "IAAConfig",
    "ModelProfile",
    "PricingSession",
    "ProcessingScope",
    "ProviderConnection",
    "ProviderError",
    "ProviderManager",
    "TokenEstimate",
    "WorkItem",
    "WorkItemStatus",
    "WorkItemStore",
    "allocate",
    "estimate_cost",
    "estimate_tokens",
    "resolve",
]
