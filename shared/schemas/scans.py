"""
Scan Result Schemas
===================

Summaries returned by a scan and by a validate-and-persist batch.

Author: idwatch Team
Version: 1.0.0
"""

from typing import List

from pydantic import BaseModel, Field

from shared.schemas.findings import RiskProfile


class Rejection(BaseModel):
    """A candidate the acceptance policy turned down."""
    index: int = Field(..., description="Position of the candidate in the batch")
    source_name: str
    reason: str


class PersistBatchResult(BaseModel):
    """Outcome of validating and persisting a batch of candidates."""

    profile_id: str
    received: int = 0
    accepted: int = 0
    rejected: int = 0
    persisted: int = 0
    persistence_failures: int = 0
    alerts_emitted: int = 0
    finding_ids: List[str] = Field(default_factory=list)
    rejections: List[Rejection] = Field(default_factory=list)


class ScanSummary(BaseModel):
    """Outcome of one scan of a profile's vault."""

    profile_id: str
    identifiers_scanned: int = Field(0, description="Monitored identifiers searched")
    sources_failed: int = Field(0, description="Identifier searches that failed or timed out")
    candidates_received: int = 0
    accepted: int = 0
    rejected: int = 0
    persisted: int = 0
    persistence_failures: int = 0
    alerts_emitted: int = 0
    finding_ids: List[str] = Field(default_factory=list)
    risk: RiskProfile
