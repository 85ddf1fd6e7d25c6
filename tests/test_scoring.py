"""
Tests for Severity Resolution and Risk Aggregation
==================================================

Author: idwatch Team
Version: 1.0.0
"""

import random

import pytest

from idwatch.scoring.aggregator import RiskAggregator, risk_level_label, round_half_up
from idwatch.scoring.severity import (
    CATEGORY_WEIGHTS,
    breach_severity,
    is_legacy_high_risk,
    resolve_severity,
)
from shared.schemas.findings import FindingCategory, Severity

from fixtures import PROFILE_ID, breach, exposure, impersonation, mention


@pytest.fixture
def aggregator():
    return RiskAggregator()


# =============================================================================
# Per-finding Severity
# =============================================================================


class TestSeverityMapping:
    """Category-specific 0-100 mapping."""

    def test_weights(self):
        assert CATEGORY_WEIGHTS[FindingCategory.BREACH] == 0.4
        assert CATEGORY_WEIGHTS[FindingCategory.IMPERSONATION] == 0.35
        assert CATEGORY_WEIGHTS[FindingCategory.EXPOSURE] == 0.25
        assert CATEGORY_WEIGHTS[FindingCategory.MENTION] == 0.0

    def test_breach_uses_raw_score(self):
        assert breach(63.5).severity_score() == 63.5

    @pytest.mark.parametrize("level,score", [
        ("critical", 100), ("high", 80), ("medium", 50), ("low", 20),
        (None, 30), ("unknown", 30),
    ])
    def test_impersonation_scores(self, level, score):
        assert impersonation(level).severity_score() == score

    @pytest.mark.parametrize("level,score", [
        ("critical", 90), ("high", 70), ("medium", 40), ("low", 15),
        (None, 25), ("severe", 25),
    ])
    def test_exposure_scores(self, level, score):
        assert exposure(level).severity_score() == score

    def test_mention_scores_zero(self):
        assert mention().severity_score() == 0


class TestResolveSeverity:
    @pytest.mark.parametrize("score,expected", [
        (100, Severity.CRITICAL),
        (80, Severity.CRITICAL),
        (79.9, Severity.HIGH),
        (60, Severity.HIGH),
        (59.9, Severity.MEDIUM),
        (40, Severity.MEDIUM),
        (39, Severity.LOW),
        (0, Severity.LOW),
    ])
    def test_breach_bands(self, score, expected):
        assert breach_severity(score) == expected
        assert resolve_severity(breach(score)) == expected

    def test_declared_levels(self):
        assert resolve_severity(impersonation("critical")) == Severity.CRITICAL
        assert resolve_severity(exposure("High")) == Severity.HIGH
        assert resolve_severity(exposure(None)) == Severity.LOW

    def test_mention_has_no_severity(self):
        assert resolve_severity(mention()) is None

    def test_legacy_high_risk_cutoff(self):
        assert is_legacy_high_risk(breach(70))
        assert not is_legacy_high_risk(breach(69.9))
        assert not is_legacy_high_risk(exposure("critical"))


# =============================================================================
# Aggregation
# =============================================================================


class TestAggregate:
    def test_reference_scenario(self, aggregator):
        """breach 80, impersonation high, exposure medium → (32 + 28 + 10) / 3 → 23."""
        risk = aggregator.aggregate(PROFILE_ID, [
            breach(80),
            impersonation("high"),
            exposure("medium"),
        ])

        assert risk.overall == 23
        assert risk.critical_count == 1
        assert risk.high_count == 1
        assert risk.total_findings == 3
        assert risk.level == "low"

    def test_empty_set_scores_zero(self, aggregator):
        risk = aggregator.aggregate(PROFILE_ID, [])
        assert risk.overall == 0
        assert risk.level == "minimal"
        assert risk.total_findings == 0

    def test_divides_by_total_not_per_category(self, aggregator):
        # (100*0.4 + 100*0.4 + 90*0.25) / 3 = 34.17
        risk = aggregator.aggregate(PROFILE_ID, [
            breach(100), breach(100), exposure("critical"),
        ])
        assert risk.overall == 34

    def test_halves_round_up(self, aggregator):
        # 90 * 0.25 = 22.5 exactly
        assert aggregator.aggregate(PROFILE_ID, [exposure("critical")]).overall == 23

    def test_mentions_are_not_weighted(self, aggregator):
        base = aggregator.aggregate(PROFILE_ID, [breach(80)])
        with_mentions = aggregator.aggregate(PROFILE_ID, [breach(80), mention(), mention()])

        assert with_mentions.overall == base.overall == 32
        assert with_mentions.mention_count == 2
        assert with_mentions.total_findings == 1

    def test_counts_per_category(self, aggregator):
        risk = aggregator.aggregate(PROFILE_ID, [
            breach(10), breach(60), impersonation("critical"),
            impersonation("low"), exposure("high"), mention(),
        ])
        assert risk.breach_count == 2
        assert risk.impersonation_count == 2
        assert risk.exposure_count == 1
        assert risk.mention_count == 1
        assert risk.critical_count == 1
        assert risk.high_count == 2

    def test_order_does_not_matter(self, aggregator):
        findings = [
            breach(77), exposure("low"), impersonation("medium"),
            breach(12.5), exposure("critical"), impersonation(None),
        ]
        expected = aggregator.aggregate(PROFILE_ID, findings)
        rng = random.Random(7)
        for _ in range(20):
            shuffled = findings[:]
            rng.shuffle(shuffled)
            assert aggregator.aggregate(PROFILE_ID, shuffled) == expected

    def test_deterministic(self, aggregator):
        findings = [breach(55), impersonation("high"), exposure("medium")]
        results = {aggregator.aggregate(PROFILE_ID, findings).overall for _ in range(50)}
        assert len(results) == 1

    def test_low_finding_can_lower_the_average(self, aggregator):
        """The score is an average: a weak finding pulls it down."""
        before = aggregator.aggregate(PROFILE_ID, [breach(80)]).overall
        after = aggregator.aggregate(PROFILE_ID, [breach(80), exposure("low")]).overall
        assert (before, after) == (32, 18)

    def test_finding_at_or_above_average_never_lowers_score(self, aggregator):
        rng = random.Random(42)
        makers = [
            lambda: breach(rng.uniform(0, 100)),
            lambda: impersonation(rng.choice(["critical", "high", "medium", "low", None])),
            lambda: exposure(rng.choice(["critical", "high", "medium", "low", None])),
        ]

        for _ in range(200):
            findings = [rng.choice(makers)() for _ in range(rng.randint(1, 8))]
            before = aggregator.aggregate(PROFILE_ID, findings).overall
            # a breach at 100 contributes 40, the highest possible average
            after = aggregator.aggregate(PROFILE_ID, findings + [breach(100)]).overall
            assert after >= before

    def test_score_never_exceeds_100(self, aggregator):
        risk = aggregator.aggregate(PROFILE_ID, [breach(100)] * 10)
        assert 0 <= risk.overall <= 100


class TestHelpers:
    @pytest.mark.parametrize("value,expected", [
        (0.0, 0), (0.49, 0), (0.5, 1), (2.5, 3), (22.5, 23), (23.33, 23), (99.5, 100),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("score,label", [
        (100, "critical"), (80, "critical"), (79, "high"), (60, "high"),
        (59, "medium"), (40, "medium"), (39, "low"), (20, "low"), (19, "minimal"), (0, "minimal"),
    ])
    def test_risk_level_label(self, score, label):
        assert risk_level_label(score) == label
