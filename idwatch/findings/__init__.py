"""
idwatch Findings Package
========================

Acceptance policy, lifecycle rules and persistence for findings.

Author: idwatch Team
Version: 1.0.0
"""

from idwatch.findings.lifecycle import LifecycleManager
from idwatch.findings.repository import FindingRepository
from idwatch.findings.validator import (
    NAME_TYPES,
    MatchValidator,
    RejectReason,
    ValidationResult,
)

__all__ = [
    "LifecycleManager",
    "FindingRepository",
    "MatchValidator",
    "NAME_TYPES",
    "RejectReason",
    "ValidationResult",
]
