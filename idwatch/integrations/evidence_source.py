"""
Evidence Source Client
======================

Interface to the external, untrusted producer of candidate evidence,
plus the HTTP implementation used in production.

An evidence source may hallucinate or over-match; nothing it returns
is trusted until the MatchValidator accepts it. Malformed records in a
response are skipped, the rest of the response is kept.

Features:
    - Bounded per-call timeout
    - Circuit breaker after repeated failures
    - Failures classified by HTTP status or exception type

Author: idwatch Team
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from idwatch.config import settings
from idwatch.errors import ErrorKind, EvidenceSourceError
from idwatch.logging import get_logger, redact_for_log
from shared.schemas.findings import CandidateFinding
from shared.schemas.vault import VaultIdentifier


logger = get_logger(__name__)


# =============================================================================
# Circuit Breaker
# =============================================================================


class CircuitBreakerOpen(Exception):
    """Raised when the circuit breaker is open and requests are blocked."""


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    Opens after ``failure_threshold`` consecutive failures and stays
    open for ``cooldown_seconds``, then lets one trial call through
    (half-open). A success closes it again.
    """

    def __init__(self, failure_threshold: int = 5, cooldown_seconds: float = 60.0):
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self._failure_count = 0
        self._opened_at: Optional[datetime] = None
        self._state = "closed"

    @property
    def state(self) -> str:
        """closed, open or half-open."""
        if self._state == "open" and self._opened_at:
            elapsed = (datetime.now(timezone.utc) - self._opened_at).total_seconds()
            if elapsed >= self.cooldown_seconds:
                self._state = "half-open"
        return self._state

    def check(self) -> None:
        """Raise CircuitBreakerOpen while the circuit is open."""
        if self.state == "open":
            raise CircuitBreakerOpen(
                f"Circuit open after {self._failure_count} consecutive failures; "
                f"retry after {self.cooldown_seconds}s"
            )

    def record_success(self) -> None:
        self._failure_count = 0
        self._state = "closed"

    def record_failure(self) -> None:
        self._failure_count += 1
        if self._failure_count >= self.failure_threshold or self._state == "half-open":
            self._state = "open"
            self._opened_at = datetime.now(timezone.utc)
            logger.warning(f"Circuit breaker opened after {self._failure_count} failures")


# =============================================================================
# Interface
# =============================================================================


class EvidenceSource(ABC):
    """
    Producer of candidate findings for one identifier at a time.

    Implementations raise EvidenceSourceError on failure. An empty
    list and a harmless failure are treated the same by the scan.
    """

    name: str = "evidence-source"

    @property
    def configured(self) -> bool:
        return True

    @property
    def circuit_state(self) -> str:
        return "closed"

    @abstractmethod
    async def search(
        self,
        profile_id: str,
        identifier: VaultIdentifier,
    ) -> List[CandidateFinding]:
        """
        Look for appearances of one identifier.

        Args:
            profile_id: Profile being scanned
            identifier: The vault identifier to search for

        Returns:
            Candidate findings, possibly empty

        Raises:
            EvidenceSourceError: The call failed
        """

    async def close(self) -> None:
        """Release any held resources."""


def parse_candidates(payload: Any, source: str) -> List[CandidateFinding]:
    """
    Parse an evidence response into candidates.

    Accepts either a bare JSON list or an object with a ``findings``
    list. Records that do not fit the candidate shape are dropped.
    """
    if isinstance(payload, dict):
        payload = payload.get("findings", [])
    if not isinstance(payload, list):
        raise EvidenceSourceError(
            f"Unexpected response shape from {source}",
            ErrorKind.OTHER,
            source_name=source,
        )

    candidates: List[CandidateFinding] = []
    for index, record in enumerate(payload):
        try:
            candidates.append(CandidateFinding.model_validate(record))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed candidate",
                source=source,
                index=index,
                errors=e.error_count(),
            )
    return candidates


# =============================================================================
# HTTP Implementation
# =============================================================================


class HttpEvidenceSource(EvidenceSource):
    """
    Evidence source reached over HTTP.

    Usage:
        async with HttpEvidenceSource() as source:
            candidates = await source.search(profile_id, identifier)
    """

    name = "http-evidence-source"
    SEARCH_PATH = "/v1/evidence/search"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        circuit_failure_threshold: Optional[int] = None,
        circuit_cooldown_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Evidence API URL (defaults to config; empty means
                unconfigured)
            api_key: API key (defaults to config)
            timeout: Per-request timeout in seconds
            circuit_failure_threshold: Failures before circuit opens
            circuit_cooldown_seconds: Seconds before circuit resets
            transport: Optional httpx transport, e.g. for tests
        """
        url = settings.evidence_source_url if base_url is None else base_url
        self.base_url = url.rstrip("/")
        self.api_key = settings.evidence_source_api_key if api_key is None else api_key
        self.timeout = timeout or settings.evidence_source_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._circuit = CircuitBreaker(
            failure_threshold=(
                circuit_failure_threshold or settings.evidence_source_circuit_threshold
            ),
            cooldown_seconds=(
                settings.evidence_source_circuit_cooldown_seconds
                if circuit_cooldown_seconds is None
                else circuit_cooldown_seconds
            ),
        )

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    @property
    def circuit_state(self) -> str:
        return self._circuit.state

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with auth headers."""
        if self._client is None or self._client.is_closed:
            headers = {
                "Content-Type": "application/json",
                "X-Source": "idwatch",
                "X-Idwatch-Version": settings.app_version,
            }
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def search(
        self,
        profile_id: str,
        identifier: VaultIdentifier,
    ) -> List[CandidateFinding]:
        if not self.configured:
            raise EvidenceSourceError(
                "Evidence source URL is not configured",
                ErrorKind.UNCONFIGURED,
                source_name=self.name,
            )

        try:
            self._circuit.check()
        except CircuitBreakerOpen as e:
            raise EvidenceSourceError(str(e), ErrorKind.OTHER, source_name=self.name) from e

        client = await self._get_client()
        payload = {
            "profileId": profile_id,
            "identifier": {
                "type": identifier.data_type.value,
                "value": identifier.search_value,
            },
        }

        try:
            response = await client.post(self.SEARCH_PATH, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            self._circuit.record_failure()
            logger.warning("Evidence source timed out", identifier_id=identifier.id)
            raise EvidenceSourceError(
                f"Evidence source timed out after {self.timeout}s",
                ErrorKind.TIMEOUT,
                source_name=self.name,
            ) from e
        except httpx.HTTPStatusError as e:
            self._circuit.record_failure()
            status = e.response.status_code
            logger.error(
                f"Evidence source returned {status}",
                identifier_id=identifier.id,
                value=redact_for_log(identifier.value),
            )
            raise EvidenceSourceError(
                f"Evidence source returned HTTP {status}",
                _kind_for_status(status),
                source_name=self.name,
            ) from e
        except httpx.HTTPError as e:
            self._circuit.record_failure()
            logger.warning(f"Evidence source unreachable: {type(e).__name__}")
            raise EvidenceSourceError(
                f"Evidence source unreachable: {type(e).__name__}",
                ErrorKind.OTHER,
                source_name=self.name,
            ) from e
        except ValueError as e:
            self._circuit.record_failure()
            raise EvidenceSourceError(
                "Evidence source returned invalid JSON",
                ErrorKind.OTHER,
                source_name=self.name,
            ) from e

        self._circuit.record_success()
        candidates = parse_candidates(body, self.name)
        logger.debug(
            f"Evidence source returned {len(candidates)} candidate(s)",
            identifier_id=identifier.id,
        )
        return candidates


def _kind_for_status(status: int) -> ErrorKind:
    if status in (401, 403):
        return ErrorKind.UNAUTHORIZED
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status in (408, 504):
        return ErrorKind.TIMEOUT
    return ErrorKind.OTHER
