"""
Risk Aggregator
===============

Fuses a profile's findings into one consolidated 0-100 score.

Formula:
    overall = min(100, round(Σ weight_c · mapped(f) / max(1, N)))

where the sum runs over every breach, impersonation and exposure
finding, and N is the number of those findings (not a per-category
count). Weights: breach 0.4, impersonation 0.35, exposure 0.25.
Rounding is half-up, so 22.5 becomes 23.

Mentions are counted in the category totals but neither weighted nor
included in N.

Author: idwatch Team
Version: 1.0.0
"""

import math
from typing import Iterable, List

from idwatch.scoring.severity import CATEGORY_WEIGHTS, resolve_severity
from shared.schemas.findings import (
    FindingCategory,
    RiskProfile,
    Severity,
    ValidatedFinding,
)


# Summation order; float addition is not associative
_SCORED_CATEGORIES = (
    FindingCategory.BREACH,
    FindingCategory.IMPERSONATION,
    FindingCategory.EXPOSURE,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def risk_level_label(score: int) -> str:
    """Label for a consolidated score."""
    if score >= 80:
        return "critical"
    if score >= 60:
        return "high"
    if score >= 40:
        return "medium"
    if score >= 20:
        return "low"
    return "minimal"


class RiskAggregator:
    """
    Pure, deterministic aggregation over a snapshot of findings.

    Example:
        aggregator = RiskAggregator()
        risk = aggregator.aggregate("p-123", findings)
        print(risk.overall, risk.level, risk.critical_count)
    """

    def aggregate(
        self,
        profile_id: str,
        findings: Iterable[ValidatedFinding],
    ) -> RiskProfile:
        """
        Compute the RiskProfile for a set of findings.

        Args:
            profile_id: Profile the findings belong to
            findings: Point-in-time snapshot of the profile's findings

        Returns:
            RiskProfile with overall score, level and counts
        """
        by_category = {c: [] for c in FindingCategory}
        for finding in findings:
            by_category[FindingCategory(finding.category)].append(finding)

        overall = self.overall_score(by_category)

        critical = high = 0
        for category in _SCORED_CATEGORIES:
            for finding in by_category[category]:
                severity = resolve_severity(finding)
                if severity == Severity.CRITICAL:
                    critical += 1
                elif severity == Severity.HIGH:
                    high += 1

        scored_total = sum(len(by_category[c]) for c in _SCORED_CATEGORIES)

        return RiskProfile(
            profile_id=profile_id,
            overall=overall,
            level=risk_level_label(overall),
            critical_count=critical,
            high_count=high,
            total_findings=scored_total,
            breach_count=len(by_category[FindingCategory.BREACH]),
            exposure_count=len(by_category[FindingCategory.EXPOSURE]),
            impersonation_count=len(by_category[FindingCategory.IMPERSONATION]),
            mention_count=len(by_category[FindingCategory.MENTION]),
        )

    @staticmethod
    def overall_score(by_category: dict) -> int:
        """Weighted average over the scored categories, clamped to 100."""
        total = 0
        score = 0.0
        for category in _SCORED_CATEGORIES:
            weight = CATEGORY_WEIGHTS[category]
            findings: List[ValidatedFinding] = by_category.get(category, [])
            for finding in findings:
                score += finding.severity_score() * weight
            total += len(findings)

        if total == 0:
            return 0
        return min(100, round_half_up(score / max(total, 1)))
