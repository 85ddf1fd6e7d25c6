"""
idwatch Shared Schemas Package
==============================

Data types shared by the engine, the API and evidence source clients.

This package provides:
    - VaultIdentifier / Profile: monitored identifiers
    - CandidateFinding: untrusted evidence input
    - ValidatedFinding: tagged union of persisted findings
    - DeletionRequest, NotificationAlert, RiskProfile

Author: idwatch Team
Version: 1.0.0
"""

from shared.schemas.vault import (
    Profile,
    VaultDataType,
    VaultIdentifier,
)

from shared.schemas.findings import (
    BreachFinding,
    CandidateFinding,
    DeletionRequest,
    DeletionRequestStatus,
    ExposureFinding,
    FindingCategory,
    FindingStatistics,
    FindingStatus,
    IdentifierRef,
    ImpersonationFinding,
    MentionFinding,
    RiskProfile,
    Severity,
    ValidatedFinding,
    validated_finding_adapter,
)

from shared.schemas.alerts import (
    AlertType,
    NotificationAlert,
)

from shared.schemas.scans import (
    PersistBatchResult,
    Rejection,
    ScanSummary,
)

__all__ = [
    # Vault
    "Profile",
    "VaultDataType",
    "VaultIdentifier",
    # Evidence and findings
    "CandidateFinding",
    "IdentifierRef",
    "ValidatedFinding",
    "BreachFinding",
    "ExposureFinding",
    "ImpersonationFinding",
    "MentionFinding",
    "validated_finding_adapter",
    "FindingCategory",
    "FindingStatus",
    "FindingStatistics",
    "Severity",
    "DeletionRequest",
    "DeletionRequestStatus",
    "RiskProfile",
    # Alerts
    "AlertType",
    "NotificationAlert",
    # Scans
    "PersistBatchResult",
    "Rejection",
    "ScanSummary",
]
