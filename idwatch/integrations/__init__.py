"""
idwatch Integrations
====================

Clients for external collaborators.

Author: idwatch Team
Version: 1.0.0
"""

from idwatch.integrations.evidence_source import (
    CircuitBreaker,
    CircuitBreakerOpen,
    EvidenceSource,
    HttpEvidenceSource,
    parse_candidates,
)

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerOpen",
    "EvidenceSource",
    "HttpEvidenceSource",
    "parse_candidates",
]
