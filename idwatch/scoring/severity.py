"""
Finding Severity
================

Per-category severity resolution shared by the risk aggregator, the
alert emitter and the findings list filter.

Breach findings carry a raw 0-100 ``risk_score``; impersonation
findings a ``severity`` string; exposure findings a ``risk_level``
string. Mentions are informational and carry no risk weight.

Author: idwatch Team
Version: 1.0.0
"""

from typing import Dict, Optional

from shared.schemas.findings import (
    BreachFinding,
    ExposureFinding,
    FindingCategory,
    ImpersonationFinding,
    Severity,
    ValidatedFinding,
)


# =============================================================================
# Constants
# =============================================================================

CATEGORY_WEIGHTS: Dict[FindingCategory, float] = {
    FindingCategory.BREACH: 0.4,
    FindingCategory.IMPERSONATION: 0.35,
    FindingCategory.EXPOSURE: 0.25,
    FindingCategory.MENTION: 0.0,
}

# Canonical breach bands
BREACH_CRITICAL_THRESHOLD = 80
BREACH_HIGH_THRESHOLD = 60
BREACH_MEDIUM_THRESHOLD = 40

# Older "high risk" cutoff, still used by the findings list filter
LEGACY_BREACH_HIGH_RISK_CUTOFF = 70

_LEVELS = {s.value: s for s in Severity}


def breach_severity(risk_score: float) -> Severity:
    """Band a breach risk score: critical ≥80, high 60-79, medium 40-59, else low."""
    if risk_score >= BREACH_CRITICAL_THRESHOLD:
        return Severity.CRITICAL
    if risk_score >= BREACH_HIGH_THRESHOLD:
        return Severity.HIGH
    if risk_score >= BREACH_MEDIUM_THRESHOLD:
        return Severity.MEDIUM
    return Severity.LOW


def _declared_level(level: Optional[str]) -> Optional[Severity]:
    if level is None:
        return None
    return _LEVELS.get(level.strip().lower())


def resolve_severity(finding: ValidatedFinding) -> Optional[Severity]:
    """
    Resolve a single finding's own severity.

    Args:
        finding: Any validated finding

    Returns:
        The severity, LOW when an impersonation or exposure finding
        declares an unrecognized level, and None for mentions
    """
    if isinstance(finding, BreachFinding):
        return breach_severity(finding.risk_score)
    if isinstance(finding, ImpersonationFinding):
        return _declared_level(finding.severity) or Severity.LOW
    if isinstance(finding, ExposureFinding):
        return _declared_level(finding.risk_level) or Severity.LOW
    return None


def is_legacy_high_risk(finding: ValidatedFinding) -> bool:
    """Legacy "high risk" check: a breach with risk_score ≥ 70."""
    return (
        isinstance(finding, BreachFinding)
        and finding.risk_score >= LEGACY_BREACH_HIGH_RISK_CUTOFF
    )
