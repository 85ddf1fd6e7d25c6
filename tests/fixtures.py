"""
Test Fixtures
=============

Factories for candidates and findings, plus an in-memory evidence
source with canned responses.

Author: idwatch Team
Version: 1.0.0
"""

from typing import List

from idwatch.integrations.evidence_source import EvidenceSource
from shared.schemas.findings import (
    BreachFinding,
    CandidateFinding,
    ExposureFinding,
    IdentifierRef,
    ImpersonationFinding,
    MentionFinding,
)


PROFILE_ID = "p-test000001"
OWNER_ID = "user-owner"


# =============================================================================
# Findings
# =============================================================================


def ref(identifier_type: str, value: str = "x") -> IdentifierRef:
    return IdentifierRef(type=identifier_type, value=value)


def make_candidate(category: str = "breach", identifiers=None, **fields) -> CandidateFinding:
    """Candidate with an email match unless told otherwise."""
    if identifiers is None:
        identifiers = [{"type": "email", "value": "jane@example.com"}]
    return CandidateFinding(
        source_name=fields.pop("source_name", "ExampleBreach2024"),
        category=category,
        matched_identifiers=identifiers,
        **fields,
    )


def breach(risk_score: float, profile_id: str = PROFILE_ID) -> BreachFinding:
    return BreachFinding(
        profile_id=profile_id,
        matched_identifiers=[ref("email", "jane@example.com")],
        source_name="ExampleBreach2024",
        risk_score=risk_score,
    )


def impersonation(severity, profile_id: str = PROFILE_ID) -> ImpersonationFinding:
    return ImpersonationFinding(
        profile_id=profile_id,
        matched_identifiers=[ref("username", "janedoe"), ref("full_name", "Jane Doe")],
        source_name="instagram",
        severity=severity,
    )


def exposure(risk_level, profile_id: str = PROFILE_ID) -> ExposureFinding:
    return ExposureFinding(
        profile_id=profile_id,
        matched_identifiers=[ref("phone", "+1 555 010 1234")],
        source_name="Spokeo",
        risk_level=risk_level,
        confidence_score=92,
    )


def mention(profile_id: str = PROFILE_ID) -> MentionFinding:
    return MentionFinding(
        profile_id=profile_id,
        matched_identifiers=[ref("full_name", "Jane Doe"), ref("employer", "Acme")],
        source_name="news-site",
    )


# =============================================================================
# Evidence Sources
# =============================================================================


class StaticEvidenceSource(EvidenceSource):
    """Returns canned candidates (or raises) per identifier id."""

    name = "static"

    def __init__(self, responses=None, default=None):
        self.responses = responses or {}
        self.default = default if default is not None else []
        self.calls: List[str] = []

    async def search(self, profile_id, identifier):
        self.calls.append(identifier.id)
        response = self.responses.get(identifier.id, self.default)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return await response()
        return list(response)
