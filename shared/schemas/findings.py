"""
Finding Schemas
===============

Candidate evidence as received from an evidence source, and the
validated findings persisted for a profile.

A validated finding is a tagged union over the four categories:

    ValidatedFinding = BreachFinding | ExposureFinding
                     | ImpersonationFinding | MentionFinding

Each variant knows its own severity shape and exposes the same
capability set: ``category``, ``matched_identifiers`` and
``severity_score()``.

Author: idwatch Team
Version: 1.0.0
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class FindingCategory(str, Enum):
    """Finding categories."""
    BREACH = "breach"
    EXPOSURE = "exposure"
    IMPERSONATION = "impersonation"
    MENTION = "mention"


class FindingStatus(str, Enum):
    """Finding lifecycle status."""
    NEW = "new"
    MONITORING = "monitoring"
    IGNORED = "ignored"
    REMOVAL_REQUESTED = "removal_requested"
    COMPLETED = "completed"
    FAILED = "failed"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"


class Severity(str, Enum):
    """Severity levels shared by findings and alerts."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Severity string → 0-100 score, per category
IMPERSONATION_SEVERITY_SCORES: Dict[str, float] = {
    "critical": 100,
    "high": 80,
    "medium": 50,
    "low": 20,
}
IMPERSONATION_DEFAULT_SCORE = 30

EXPOSURE_RISK_LEVEL_SCORES: Dict[str, float] = {
    "critical": 90,
    "high": 70,
    "medium": 40,
    "low": 15,
}
EXPOSURE_DEFAULT_SCORE = 25

# Column widths of the findings table
SOURCE_NAME_MAX_LENGTH = 255
LEVEL_MAX_LENGTH = 20


def _normalize_level(level: Optional[str]) -> Optional[str]:
    if level is None:
        return None
    return level.strip().lower() or None


class IdentifierRef(BaseModel):
    """An identifier the evidence source claims to have matched."""

    type: str = Field(..., description="Identifier type, e.g. email, phone, full_name")
    value: str = Field(default="", description="The matched value")


class CandidateFinding(BaseModel):
    """
    Unvalidated evidence record from an evidence source. Never persisted.

    Accepts both the camelCase wire shape and snake_case field names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    source_name: str = Field(..., min_length=1, max_length=SOURCE_NAME_MAX_LENGTH)
    category: FindingCategory
    matched_identifiers: List[IdentifierRef] = Field(default_factory=list)
    confidence_score: Optional[float] = Field(None, ge=0.0, le=100.0)
    severity: Optional[str] = Field(None, max_length=LEVEL_MAX_LENGTH)
    risk_level: Optional[str] = Field(None, max_length=LEVEL_MAX_LENGTH)
    risk_score: Optional[float] = Field(None, ge=0.0, le=100.0)
    content_verbatim: Optional[str] = None
    source_url: Optional[str] = None


class _FindingBase(BaseModel):
    """Fields common to every validated finding."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: f"f-{uuid4().hex[:12]}")
    profile_id: str = Field(..., min_length=1, frozen=True)
    matched_identifiers: List[IdentifierRef] = Field(..., min_length=1)
    source_name: str = Field(..., min_length=1, max_length=SOURCE_NAME_MAX_LENGTH)
    source_url: Optional[str] = None
    content_verbatim: Optional[str] = None
    confidence_score: Optional[float] = Field(None, ge=0.0, le=100.0)
    status: FindingStatus = FindingStatus.NEW
    version: int = Field(default=1, ge=1, description="Bumped on every status change")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return self.model_dump(mode="json")


class BreachFinding(_FindingBase):
    """Identifier seen in a breach dump; scored by the raw risk score."""

    category: Literal["breach"] = Field(default="breach", frozen=True)
    risk_score: float = Field(default=0.0, ge=0.0, le=100.0)

    def severity_score(self) -> float:
        return self.risk_score


class ExposureFinding(_FindingBase):
    """Listing on a people-search or data-broker site."""

    category: Literal["exposure"] = Field(default="exposure", frozen=True)
    risk_level: Optional[str] = Field(None, max_length=LEVEL_MAX_LENGTH)

    def severity_score(self) -> float:
        level = _normalize_level(self.risk_level)
        return EXPOSURE_RISK_LEVEL_SCORES.get(level, EXPOSURE_DEFAULT_SCORE)


class ImpersonationFinding(_FindingBase):
    """Account on a social platform using the person's identity."""

    category: Literal["impersonation"] = Field(default="impersonation", frozen=True)
    severity: Optional[str] = Field(None, max_length=LEVEL_MAX_LENGTH)

    def severity_score(self) -> float:
        level = _normalize_level(self.severity)
        return IMPERSONATION_SEVERITY_SCORES.get(level, IMPERSONATION_DEFAULT_SCORE)


class MentionFinding(_FindingBase):
    """Public mention of the person; informational, not risk-weighted."""

    category: Literal["mention"] = Field(default="mention", frozen=True)
    severity: Optional[str] = Field(None, max_length=LEVEL_MAX_LENGTH)

    def severity_score(self) -> float:
        return 0.0


ValidatedFinding = Annotated[
    Union[BreachFinding, ExposureFinding, ImpersonationFinding, MentionFinding],
    Field(discriminator="category"),
]

validated_finding_adapter: TypeAdapter = TypeAdapter(ValidatedFinding)

class DeletionRequestStatus(str, Enum):
    """Status of a removal request sent to a source."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class DeletionRequest(BaseModel):
    """Companion record created when a finding moves to removal_requested."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: f"d-{uuid4().hex[:12]}")
    profile_id: str
    finding_id: str
    source_name: Optional[str] = None
    status: DeletionRequestStatus = DeletionRequestStatus.PENDING
    request_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FindingStatistics(BaseModel):
    """Per-profile counts for dashboards."""
    profile_id: str
    total: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_category: Dict[str, int] = Field(default_factory=dict)


class RiskProfile(BaseModel):
    """
    Consolidated risk for one profile.

    Derived on demand from the profile's findings; never stored.
    """

    profile_id: str
    overall: int = Field(..., ge=0, le=100, description="Consolidated 0-100 score")
    level: str = Field(..., description="critical, high, medium, low or minimal")
    critical_count: int = 0
    high_count: int = 0
    total_findings: int = 0
    breach_count: int = 0
    exposure_count: int = 0
    impersonation_count: int = 0
    mention_count: int = 0
