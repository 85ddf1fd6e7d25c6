"""
idwatch Scoring Package
=======================

Severity resolution and consolidated risk scoring.

Author: idwatch Team
Version: 1.0.0
"""

from idwatch.scoring.aggregator import RiskAggregator, risk_level_label, round_half_up
from idwatch.scoring.severity import (
    CATEGORY_WEIGHTS,
    LEGACY_BREACH_HIGH_RISK_CUTOFF,
    breach_severity,
    is_legacy_high_risk,
    resolve_severity,
)

__all__ = [
    "RiskAggregator",
    "risk_level_label",
    "round_half_up",
    "CATEGORY_WEIGHTS",
    "LEGACY_BREACH_HIGH_RISK_CUTOFF",
    "breach_severity",
    "is_legacy_high_risk",
    "resolve_severity",
]
