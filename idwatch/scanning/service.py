"""
Scan Service
============

Request-scoped scan workflow:

    VaultStore → EvidenceSource → MatchValidator
        → FindingRepository + NotificationEmitter → RiskAggregator

Evidence calls for different identifiers run concurrently, bounded by
a semaphore, each under its own timeout. A failing or slow identifier
is counted and skipped; only a vault that cannot be read aborts the
scan. Each accepted finding is committed in its own transaction
together with its alert, so one failed write never discards others.

Author: idwatch Team
Version: 1.0.0
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from idwatch.config import settings
from idwatch.errors import (
    ErrorKind,
    EvidenceSourceError,
    NotFoundError,
    PersistenceError,
    ScanInProgressError,
    VaultUnavailableError,
)
from idwatch.findings.repository import FindingRepository
from idwatch.findings.validator import MatchValidator, RejectReason
from idwatch.integrations.evidence_source import EvidenceSource
from idwatch.logging import get_logger
from idwatch.notifications.emitter import NotificationEmitter
from idwatch.scoring.aggregator import RiskAggregator
from idwatch.vault.store import VaultStore
from shared.schemas.findings import SOURCE_NAME_MAX_LENGTH, CandidateFinding, RiskProfile
from shared.schemas.scans import PersistBatchResult, Rejection, ScanSummary
from shared.schemas.vault import VaultIdentifier


logger = get_logger(__name__)


@dataclass
class SourceOutcome:
    """Result of searching one identifier: candidates or an error kind."""

    identifier_id: str
    candidates: List[CandidateFinding] = field(default_factory=list)
    error: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ScanService:
    """
    Runs scans and persists accepted evidence.

    Example:
        service = ScanService(async_session_factory, HttpEvidenceSource())
        summary = await service.run_scan("p-123")
        print(summary.persisted, summary.risk.overall)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        evidence_source: EvidenceSource,
        validator: Optional[MatchValidator] = None,
        aggregator: Optional[RiskAggregator] = None,
        max_concurrency: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        repository_factory: Callable[[AsyncSession], FindingRepository] = FindingRepository,
    ):
        """
        Initialize the scan service.

        Args:
            session_factory: Factory for short-lived database sessions
            evidence_source: Producer of candidate findings
            validator: Acceptance policy (default from settings)
            aggregator: Risk aggregator
            max_concurrency: Parallel evidence calls per scan
            timeout_seconds: Upper bound on one evidence call
            repository_factory: Builds the finding repository for a session
        """
        self.session_factory = session_factory
        self.evidence_source = evidence_source
        self.validator = validator or MatchValidator(settings.min_confidence_score)
        self.aggregator = aggregator or RiskAggregator()
        self.max_concurrency = max_concurrency or settings.evidence_source_max_concurrency
        self.timeout_seconds = timeout_seconds or settings.evidence_source_timeout_seconds
        self.repository_factory = repository_factory
        self._in_flight: Set[str] = set()

    # =========================================================================
    # Scan
    # =========================================================================

    def is_scanning(self, profile_id: str) -> bool:
        return profile_id in self._in_flight

    async def run_scan(self, profile_id: str) -> ScanSummary:
        """
        Scan every monitored identifier of a profile.

        Args:
            profile_id: Profile to scan

        Returns:
            ScanSummary including the post-scan RiskProfile

        Raises:
            ScanInProgressError: A scan for this profile is still running
            NotFoundError: No such profile
            VaultUnavailableError: The vault could not be read
        """
        if profile_id in self._in_flight:
            raise ScanInProgressError(profile_id)

        self._in_flight.add(profile_id)
        try:
            return await self._run_scan(profile_id)
        finally:
            self._in_flight.discard(profile_id)

    async def _run_scan(self, profile_id: str) -> ScanSummary:
        identifiers = await self._load_vault(profile_id)
        monitored = [i for i in identifiers if i.monitoring_enabled]

        logger.info(
            f"Starting scan for profile {profile_id}",
            identifiers=len(monitored),
            skipped=len(identifiers) - len(monitored),
        )

        outcomes = await self._gather_evidence(profile_id, monitored)
        candidates = [c for outcome in outcomes for c in outcome.candidates]
        failed = sum(1 for outcome in outcomes if not outcome.ok)

        batch = await self.validate_and_persist(profile_id, candidates)
        risk = await self.get_risk(profile_id)

        logger.info(
            f"Scan complete for profile {profile_id}",
            sources_failed=failed,
            candidates=len(candidates),
            persisted=batch.persisted,
            overall_risk=risk.overall,
        )

        return ScanSummary(
            profile_id=profile_id,
            identifiers_scanned=len(monitored),
            sources_failed=failed,
            candidates_received=len(candidates),
            accepted=batch.accepted,
            rejected=batch.rejected,
            persisted=batch.persisted,
            persistence_failures=batch.persistence_failures,
            alerts_emitted=batch.alerts_emitted,
            finding_ids=batch.finding_ids,
            risk=risk,
        )

    async def _load_vault(self, profile_id: str) -> List[VaultIdentifier]:
        try:
            async with self.session_factory() as session:
                store = VaultStore(session)
                if await store.get_profile(profile_id) is None:
                    raise NotFoundError(f"Profile not found: {profile_id}")
                return await store.list(profile_id)
        except SQLAlchemyError as e:
            logger.error(f"Vault unavailable for profile {profile_id}: {e}")
            raise VaultUnavailableError(
                f"Could not load vault for profile {profile_id}"
            ) from e

    async def _gather_evidence(
        self,
        profile_id: str,
        identifiers: Iterable[VaultIdentifier],
    ) -> List[SourceOutcome]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def search_one(identifier: VaultIdentifier) -> SourceOutcome:
            async with semaphore:
                return await self._search(profile_id, identifier)

        return await asyncio.gather(*(search_one(i) for i in identifiers))

    async def _search(
        self,
        profile_id: str,
        identifier: VaultIdentifier,
    ) -> SourceOutcome:
        """Search one identifier; any failure becomes an empty outcome."""
        try:
            candidates = await asyncio.wait_for(
                self.evidence_source.search(profile_id, identifier),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Evidence search timed out",
                identifier_id=identifier.id,
                timeout=self.timeout_seconds,
            )
            return SourceOutcome(identifier.id, error=ErrorKind.TIMEOUT)
        except EvidenceSourceError as e:
            logger.warning(
                f"Evidence search failed: {e.message}",
                identifier_id=identifier.id,
                kind=e.kind.value,
            )
            return SourceOutcome(identifier.id, error=e.kind)
        except Exception:
            logger.exception("Evidence search raised", identifier_id=identifier.id)
            return SourceOutcome(identifier.id, error=ErrorKind.OTHER)

        return SourceOutcome(identifier.id, candidates=list(candidates))

    # =========================================================================
    # Validate and Persist
    # =========================================================================

    async def validate_and_persist(
        self,
        profile_id: str,
        candidates: Iterable[Union[CandidateFinding, Mapping[str, Any]]],
    ) -> PersistBatchResult:
        """
        Validate candidates and persist the accepted ones.

        Each accepted finding is written in its own transaction together
        with its alert, if any. A failed write is logged and counted;
        the remaining candidates are still processed. Raw records that do
        not fit the candidate shape are rejected as ``malformed``.

        Args:
            profile_id: Profile the candidates belong to
            candidates: Unvalidated evidence records, parsed or raw

        Returns:
            PersistBatchResult with counts, new finding IDs and rejections
        """
        result = PersistBatchResult(profile_id=profile_id)

        for index, record in enumerate(candidates):
            result.received += 1
            candidate = _parse_candidate(record)
            if candidate is None:
                result.rejected += 1
                result.rejections.append(Rejection(
                    index=index,
                    source_name=_raw_source_name(record),
                    reason=RejectReason.MALFORMED.value,
                ))
                continue

            outcome = self.validator.validate(candidate, profile_id)

            if not outcome.accepted:
                result.rejected += 1
                result.rejections.append(Rejection(
                    index=index,
                    source_name=candidate.source_name,
                    reason=outcome.reason.value,
                ))
                logger.debug(
                    "Candidate rejected",
                    source=candidate.source_name,
                    reason=outcome.reason.value,
                )
                continue

            result.accepted += 1
            finding = outcome.finding

            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        repository = self.repository_factory(session)
                        finding_id = await repository.create(finding)
                        alert = await NotificationEmitter(session).emit_for_finding(finding)
            except (PersistenceError, SQLAlchemyError) as e:
                result.persistence_failures += 1
                logger.error(
                    f"Failed to persist finding from {candidate.source_name}: {e}",
                    profile_id=profile_id,
                )
                continue

            result.persisted += 1
            result.finding_ids.append(finding_id)
            if alert is not None:
                result.alerts_emitted += 1

        return result

    # =========================================================================
    # Risk
    # =========================================================================

    async def get_risk(self, profile_id: str) -> RiskProfile:
        """Aggregate the profile's currently committed findings."""
        async with self.session_factory() as session:
            findings = await self.repository_factory(session).list_for_profile(profile_id)
        return self.aggregator.aggregate(profile_id, findings)


def _parse_candidate(record: Any) -> Optional[CandidateFinding]:
    if isinstance(record, CandidateFinding):
        return record
    try:
        return CandidateFinding.model_validate(record)
    except ValidationError as e:
        logger.warning("Malformed candidate rejected", errors=e.error_count())
        return None


def _raw_source_name(record: Any) -> str:
    if isinstance(record, Mapping):
        name = record.get("sourceName", record.get("source_name"))
        if isinstance(name, str):
            return name[:SOURCE_NAME_MAX_LENGTH]
    return ""
