"""
Data models for the labeling engine.

This module defines the work items, assignments, provider configuration and
the ephemeral estimate/report types shared across the engine.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# ===========================================
# Enums
# ===========================================


class ContentType(str, Enum):
    """Kind of content carried by a work item."""

    TEXT = "text"
    IMAGE = "image"


class WorkItemStatus(str, Enum):
    """Work item lifecycle status."""

    PENDING = "pending"
    AI_PROCESSED = "ai_processed"
    ACCEPTED = "accepted"
    EDITED = "edited"
    REJECTED = "rejected"
    PARTIAL = "partial"
    NEEDS_ADJUDICATION = "needs_adjudication"


# Human-finalized items are frozen for AI processing.
FINALIZED_STATUSES = frozenset({WorkItemStatus.ACCEPTED, WorkItemStatus.EDITED})

# Only these statuses advance to ai_processed when suggestions are merged.
ADVANCEABLE_STATUSES = frozenset(
    {WorkItemStatus.PENDING, WorkItemStatus.AI_PROCESSED, WorkItemStatus.REJECTED}
)


class AssignmentStatus(str, Enum):
    """One annotator's progress on one work item."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class UserRole(str, Enum):
    """Roles that determine what a viewer may see of an item."""

    ADMIN = "admin"
    MANAGER = "manager"
    ANNOTATOR = "annotator"


class PriceSource(str, Enum):
    """Where a model's price per million tokens came from."""

    MANUAL = "manual"
    OFFICIAL = "official"
    LIVE = "live"
    UNAVAILABLE = "unavailable"


class TokenizerFamily(str, Enum):
    """Tokenizer encodings used for estimates."""

    O200K = "o200k_base"
    CL100K = "cl100k_base"


class ScopeKind(str, Enum):
    """Which work items a processing run covers."""

    ALL = "all"
    SUBSET = "subset"
    SINGLE = "single"


# ===========================================
# Work Items
# ===========================================


class Assignment(BaseModel):
    """One annotator's relationship to one work item."""

    annotator_id: str
    status: AssignmentStatus = Field(default=AssignmentStatus.PENDING)
    value: Optional[str] = None
    annotated_at: Optional[datetime] = None

    @property
    def has_value(self) -> bool:
        return bool(self.value and self.value.strip())

    @property
    def is_done_with_value(self) -> bool:
        return self.status == AssignmentStatus.DONE and self.has_value


class WorkItem(BaseModel):
    """One annotatable record."""

    id: str = Field(..., description="Stable item identifier")
    content: str = Field(..., description="Text, or image URL / data URL")
    content_type: ContentType = Field(default=ContentType.TEXT)
    status: WorkItemStatus = Field(default=WorkItemStatus.PENDING)
    ai_suggestions: dict[str, str] = Field(default_factory=dict)
    ratings: dict[str, int] = Field(default_factory=dict)
    confidence: Optional[float] = None

    upload_prompt: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)
    original_annotation: Optional[str] = None

    is_iaa: bool = False
    iaa_required_count: int = Field(default=1, ge=1)
    assignments: list[Assignment] = Field(default_factory=list)
    final_annotation: str = ""

    # Legacy single-annotator fields
    annotator_id: Optional[str] = None
    annotator_name: Optional[str] = None
    annotated_at: Optional[datetime] = None
    human_annotation: Optional[str] = None

    @field_validator("ratings")
    @classmethod
    def _check_ratings(cls, value: dict[str, int]) -> dict[str, int]:
        for profile_id, rating in value.items():
            if not 1 <= rating <= 5:
                raise ValueError(f"rating for {profile_id} must be 1-5, got {rating}")
        return value

    @field_validator("assignments")
    @classmethod
    def _unique_annotators(cls, value: list[Assignment]) -> list[Assignment]:
        seen: set[str] = set()
        for assignment in value:
            if assignment.annotator_id in seen:
                raise ValueError(
                    f"duplicate assignment for annotator {assignment.annotator_id}"
                )
            seen.add(assignment.annotator_id)
        return value

    @model_validator(mode="after")
    def _check_iaa_count(self) -> "WorkItem":
        if self.is_iaa and self.iaa_required_count < 2:
            raise ValueError("IAA items require at least 2 annotations")
        return self

    @property
    def uses_assignments(self) -> bool:
        """Whether status is derived from assignments rather than the legacy path."""
        return self.is_iaa or bool(self.assignments)

    def assignment_for(self, annotator_id: str) -> Optional[Assignment]:
        """Return the annotator's assignment, if any."""
        for assignment in self.assignments:
            if assignment.annotator_id == annotator_id:
                return assignment
        return None


# ===========================================
# Provider Configuration
# ===========================================


class ProviderConnection(BaseModel):
    """Credentials and endpoint for one provider account."""

    id: str
    provider_id: str
    name: str = ""
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    is_active: bool = True


class ModelProfile(BaseModel):
    """A named model configuration bound to a provider connection."""

    id: str
    provider_connection_id: str
    model_id: str
    display_name: str = ""
    default_prompt: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    input_price_per_million: Optional[float] = Field(default=None, ge=0.0)
    output_price_per_million: Optional[float] = Field(default=None, ge=0.0)
    is_active: bool = True

    @property
    def label(self) -> str:
        return self.display_name or self.model_id


class ResolvedProfile(BaseModel):
    """A selected profile paired with its validated parent connection."""

    profile: ModelProfile
    connection: ProviderConnection

    @property
    def profile_id(self) -> str:
        return self.profile.id

    @property
    def provider_id(self) -> str:
        return self.connection.provider_id


class ModelPricing(BaseModel):
    """Prices in dollars per million tokens."""

    input: Optional[float] = None
    output: Optional[float] = None


# ===========================================
# IAA Configuration
# ===========================================


class IAAConfig(BaseModel):
    """Project inter-annotator agreement policy."""

    enabled: bool = False
    portion_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    annotators_per_iaa_item: int = Field(default=2, ge=1)
    seed: int = 0

    @property
    def required_count(self) -> int:
        return max(2, self.annotators_per_iaa_item)


class ConsensusResolution(BaseModel):
    """Derived completion state of one work item."""

    status: WorkItemStatus
    final_annotation: str = ""
    done_count: int = 0
    required: int = 1

    @property
    def is_complete(self) -> bool:
        return self.status == WorkItemStatus.ACCEPTED


class AssignmentView(BaseModel):
    """What one viewer sees of an item's annotation state."""

    item_id: str
    viewer_id: str
    role: UserRole
    draft: str = ""
    own_status: AssignmentStatus = AssignmentStatus.PENDING
    is_own_done: bool = False
    consensus: Optional[ConsensusResolution] = None
    assignments: list[Assignment] = Field(default_factory=list)


# ===========================================
# Processing
# ===========================================


class ProcessingScope(BaseModel):
    """Selection of work items for a processing run."""

    kind: ScopeKind = ScopeKind.ALL
    item_ids: list[str] = Field(default_factory=list)

    @classmethod
    def all(cls) -> "ProcessingScope":
        return cls(kind=ScopeKind.ALL)

    @classmethod
    def subset(cls, item_ids: list[str]) -> "ProcessingScope":
        return cls(kind=ScopeKind.SUBSET, item_ids=list(item_ids))

    @classmethod
    def single(cls, item_id: str) -> "ProcessingScope":
        return cls(kind=ScopeKind.SINGLE, item_ids=[item_id])

    def includes(self, item_id: str) -> bool:
        return self.kind == ScopeKind.ALL or item_id in self.item_ids


class ProcessingProgress(BaseModel):
    """Upper-bound progress reported after each window."""

    current: int
    total: int


class UnitResult(BaseModel):
    """Outcome of one (item, model profile) unit of work."""

    item_id: str
    profile_id: str
    text: str


class ProcessingReport(BaseModel):
    """Summary of a processing run."""

    total_items: int = 0
    batches: int = 0
    windows: int = 0
    submitted_units: int = 0
    succeeded_units: int = 0
    failed_units: int = 0
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def partial_success(self) -> bool:
        return self.failed_units > 0 and self.succeeded_units > 0


class GenerationResponse(BaseModel):
    """Response from a provider generation call."""

    content: str
    model: str
    usage: dict[str, int] = Field(default_factory=dict)
    latency_ms: float = Field(default=0.0)


# ===========================================
# Estimation
# ===========================================


class TokenEstimate(BaseModel):
    """Token counts for a prospective run."""

    input_tokens: int = 0
    items: int = 0
    models: int = 0
    per_model_tokens: dict[str, int] = Field(default_factory=dict)


class ModelCostBreakdown(BaseModel):
    """Per-profile share of an estimate."""

    profile_id: str
    model_id: str
    tokens: int = 0
    price_per_million: Optional[float] = None
    cost: Optional[float] = None
    price_source: PriceSource = PriceSource.UNAVAILABLE


class CostEstimate(BaseModel):
    """Upfront token and dollar estimate."""

    tokens: TokenEstimate
    total_cost: float = 0.0
    unresolved_profile_ids: list[str] = Field(default_factory=list)
    breakdown: list[ModelCostBreakdown] = Field(default_factory=list)

    @property
    def summary(self) -> str:
        line = f"~{self.tokens.input_tokens} input tokens, ${self.total_cost:.4f}"
        if self.unresolved_profile_ids:
            line += (
                f" (cost unknown for {len(self.unresolved_profile_ids)}"
                f" of {self.tokens.models} models)"
            )
        return line


# ===========================================
# Statistics
# ===========================================


class AnnotationStats(BaseModel):
    """Snapshot of project annotation progress."""

    total_accepted: int = 0
    total_rejected: int = 0
    total_edited: int = 0
    total_processed: int = 0
    average_confidence: float = 0.0
    session_time: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)


def dump_fields(item: WorkItem, fields: list[str]) -> dict[str, Any]:
    """Serialize a subset of item fields for a persistence update."""
    return item.model_dump(mode="json", include=set(fields))
