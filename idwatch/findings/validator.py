"""
Match Validator
===============

Acceptance policy deciding which candidate matches from an evidence
source are trustworthy enough to persist.

Rules, applied in order:
    1. Reject when no identifiers were matched.
    2. Reject when a confidence score is reported and is below the
       minimum (80 by default).
    3. When every matched identifier is a name type (full_name, alias,
       name), require at least two of them.
    4. Otherwise one identifier is enough.

A lone low-specificity identifier such as ``employer`` is accepted by
rule 4. That is intentional parity behavior and is covered by tests.

The validator is pure: no I/O, no shared state. It is safe to run
across any number of candidates in parallel.

Author: idwatch Team
Version: 1.0.0
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from shared.schemas.findings import (
    BreachFinding,
    CandidateFinding,
    ExposureFinding,
    FindingCategory,
    ImpersonationFinding,
    MentionFinding,
    ValidatedFinding,
)


NAME_TYPES: FrozenSet[str] = frozenset({"full_name", "alias", "name"})

DEFAULT_MIN_CONFIDENCE = 80.0


class RejectReason(str, Enum):
    """Why a candidate was not accepted."""
    NO_IDENTIFIERS = "no_identifiers"
    LOW_CONFIDENCE = "low_confidence"
    NAME_ONLY_SINGLE = "name_only_single"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one candidate: a finding or a reason."""

    finding: Optional[ValidatedFinding] = None
    reason: Optional[RejectReason] = None

    @property
    def accepted(self) -> bool:
        return self.finding is not None

    @classmethod
    def accept(cls, finding: ValidatedFinding) -> "ValidationResult":
        return cls(finding=finding)

    @classmethod
    def reject(cls, reason: RejectReason) -> "ValidationResult":
        return cls(reason=reason)


def is_name_type(identifier_type: str) -> bool:
    """True when the identifier type is one of the name types."""
    return identifier_type.strip().lower() in NAME_TYPES


class MatchValidator:
    """
    Deterministic acceptance policy for candidate findings.

    Example:
        validator = MatchValidator()
        result = validator.validate(candidate, profile_id="p-123")
        if result.accepted:
            await repository.create(result.finding)
    """

    def __init__(self, min_confidence: float = DEFAULT_MIN_CONFIDENCE):
        """
        Initialize the validator.

        Args:
            min_confidence: Reported confidence below this is rejected
        """
        self.min_confidence = min_confidence

    def validate(self, candidate: CandidateFinding, profile_id: str) -> ValidationResult:
        """
        Apply the acceptance policy to one candidate.

        Args:
            candidate: Unvalidated evidence record
            profile_id: Profile the scan was run for

        Returns:
            ValidationResult carrying either the ValidatedFinding or a
            RejectReason. Rejection is a normal outcome, never raised.
        """
        identifiers = candidate.matched_identifiers

        if not identifiers:
            return ValidationResult.reject(RejectReason.NO_IDENTIFIERS)

        if (
            candidate.confidence_score is not None
            and candidate.confidence_score < self.min_confidence
        ):
            return ValidationResult.reject(RejectReason.LOW_CONFIDENCE)

        name_only = all(is_name_type(i.type) for i in identifiers)
        if name_only and len(identifiers) < 2:
            return ValidationResult.reject(RejectReason.NAME_ONLY_SINGLE)

        return ValidationResult.accept(self._build_finding(candidate, profile_id))

    def _build_finding(
        self,
        candidate: CandidateFinding,
        profile_id: str,
    ) -> ValidatedFinding:
        """Shape an accepted candidate into its category's finding type."""
        common: Dict[str, Any] = {
            "profile_id": profile_id,
            "matched_identifiers": list(candidate.matched_identifiers),
            "source_name": candidate.source_name,
            "source_url": candidate.source_url,
            "content_verbatim": candidate.content_verbatim,
            "confidence_score": candidate.confidence_score,
        }

        if candidate.category == FindingCategory.BREACH:
            return BreachFinding(risk_score=candidate.risk_score or 0.0, **common)
        if candidate.category == FindingCategory.EXPOSURE:
            return ExposureFinding(risk_level=candidate.risk_level, **common)
        if candidate.category == FindingCategory.IMPERSONATION:
            return ImpersonationFinding(severity=candidate.severity, **common)
        return MentionFinding(severity=candidate.severity, **common)
