"""
Finding Repository
==================

Persistence and lifecycle for validated findings.

This repository handles:
    - Creating findings (always in status ``new``)
    - Queries per profile with status, category and legacy high-risk filters
    - Status transitions with an optimistic version check
    - Deletion request side effects of remediation transitions
    - Permanent removal and per-profile statistics

All writes happen on the caller's session; the caller owns the
commit. A transition and its DeletionRequest are flushed together, so
they commit or roll back as one unit.

Author: idwatch Team
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from idwatch.db.base import utc_now
from idwatch.db.models import DeletionRequestDB, FindingDB, NotificationAlertDB
from idwatch.errors import ConflictError, NotFoundError, PersistenceError
from idwatch.findings.lifecycle import LifecycleManager
from idwatch.logging import get_logger
from idwatch.scoring.severity import LEGACY_BREACH_HIGH_RISK_CUTOFF
from shared.schemas.findings import (
    DeletionRequest,
    DeletionRequestStatus,
    FindingCategory,
    FindingStatistics,
    FindingStatus,
    ValidatedFinding,
    validated_finding_adapter,
)


logger = get_logger(__name__)


class FindingRepository:
    """
    Repository for validated findings.

    Example:
        repo = FindingRepository(db_session)

        finding_id = await repo.create(result.finding)
        finding = await repo.transition(
            finding_id,
            FindingStatus.REMOVAL_REQUESTED,
            actor="user-1",
            expected_version=1,
        )
    """

    def __init__(self, db: AsyncSession, lifecycle: Optional[LifecycleManager] = None):
        """
        Initialize the repository.

        Args:
            db: Async database session
            lifecycle: Transition rules (default LifecycleManager)
        """
        self.db = db
        self.lifecycle = lifecycle or LifecycleManager()

    # =========================================================================
    # Create Operations
    # =========================================================================

    async def create(self, finding: ValidatedFinding) -> str:
        """
        Persist a validated finding with status ``new``.

        Args:
            finding: Accepted finding from the MatchValidator

        Returns:
            The new finding's ID

        Raises:
            PersistenceError: The finding does not fit its category
                schema or the write failed
        """
        try:
            checked = validated_finding_adapter.validate_python(
                finding.model_dump()
            )
        except ValidationError as e:
            raise PersistenceError(f"Finding rejected by category schema: {e}") from e

        row = FindingDB(
            id=checked.id,
            profile_id=checked.profile_id,
            category=checked.category,
            source_name=checked.source_name,
            source_url=checked.source_url,
            matched_identifiers=[i.model_dump() for i in checked.matched_identifiers],
            risk_score=getattr(checked, "risk_score", None),
            risk_level=getattr(checked, "risk_level", None),
            severity=getattr(checked, "severity", None),
            confidence_score=checked.confidence_score,
            content_verbatim=checked.content_verbatim,
            status=FindingStatus.NEW.value,
            version=1,
            created_at=checked.created_at,
            updated_at=checked.created_at,
        )

        try:
            self.db.add(row)
            await self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to persist finding {checked.id}: {e}") from e

        logger.info(
            f"Created finding: {checked.id}",
            profile_id=checked.profile_id,
            category=checked.category,
            source=checked.source_name,
        )
        return checked.id

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def get(self, finding_id: str) -> Optional[ValidatedFinding]:
        """Get a finding by ID, or None."""
        row = await self._load(finding_id)
        if row is None:
            return None
        return self._to_pydantic(row)

    async def list_for_profile(
        self,
        profile_id: str,
        status: Optional[FindingStatus] = None,
        category: Optional[FindingCategory] = None,
        high_risk: bool = False,
    ) -> List[ValidatedFinding]:
        """
        List a profile's findings, oldest first.

        Args:
            profile_id: Profile to list
            status: Only findings in this status
            category: Only findings of this category
            high_risk: Only breach findings at or above the legacy
                high-risk cutoff (risk_score ≥ 70)

        Returns:
            Matching findings
        """
        stmt = select(FindingDB).where(FindingDB.profile_id == profile_id)

        if status is not None:
            stmt = stmt.where(FindingDB.status == FindingStatus(status).value)
        if category is not None:
            stmt = stmt.where(FindingDB.category == FindingCategory(category).value)
        if high_risk:
            stmt = stmt.where(
                FindingDB.category == FindingCategory.BREACH.value,
                FindingDB.risk_score >= LEGACY_BREACH_HIGH_RISK_CUTOFF,
            )

        stmt = stmt.order_by(FindingDB.created_at.asc(), FindingDB.id.asc())
        stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return [self._to_pydantic(row) for row in result.scalars().all()]

    async def list_deletion_requests(self, profile_id: str) -> List[DeletionRequest]:
        """List a profile's deletion requests, newest first."""
        stmt = (
            select(DeletionRequestDB)
            .where(DeletionRequestDB.profile_id == profile_id)
            .order_by(DeletionRequestDB.request_date.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return [DeletionRequest.model_validate(row) for row in result.scalars().all()]

    async def statistics(self, profile_id: str) -> FindingStatistics:
        """
        Count a profile's findings by status and by category.

        Returns:
            FindingStatistics for dashboards
        """
        status_stmt = (
            select(FindingDB.status, func.count(FindingDB.id))
            .where(FindingDB.profile_id == profile_id)
            .group_by(FindingDB.status)
        )
        by_status = dict((await self.db.execute(status_stmt)).all())

        category_stmt = (
            select(FindingDB.category, func.count(FindingDB.id))
            .where(FindingDB.profile_id == profile_id)
            .group_by(FindingDB.category)
        )
        by_category = dict((await self.db.execute(category_stmt)).all())

        return FindingStatistics(
            profile_id=profile_id,
            total=sum(by_status.values()),
            by_status=by_status,
            by_category=by_category,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def transition(
        self,
        finding_id: str,
        new_status: FindingStatus,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> ValidatedFinding:
        """
        Move a finding along an allowed lifecycle edge.

        Entering ``removal_requested`` creates a pending DeletionRequest;
        entering ``completed`` or ``failed`` settles it. Either both the
        status change and its side effect are written, or neither is.

        Args:
            finding_id: Finding to move
            new_status: Requested status
            actor: Who requested the change
            expected_version: Version the caller last read; when given,
                a mismatch fails instead of overwriting

        Returns:
            The finding after the transition

        Raises:
            NotFoundError: No such finding
            InvalidTransition: Not an allowed edge; nothing was changed
            ConflictError: The finding changed since ``expected_version``
                or concurrently with this call
            PersistenceError: The status change or its DeletionRequest
                could not be written; the caller must roll back
        """
        new_status = FindingStatus(new_status)
        row = await self._load(finding_id)
        if row is None:
            raise NotFoundError(f"Finding not found: {finding_id}")

        if expected_version is not None and expected_version != row.version:
            raise ConflictError(
                f"Finding {finding_id} is at version {row.version}, "
                f"not {expected_version}"
            )

        current = FindingStatus(row.status)
        self.lifecycle.check(finding_id, FindingCategory(row.category), current, new_status)

        read_version = row.version
        result = await self.db.execute(
            update(FindingDB)
            .where(FindingDB.id == finding_id, FindingDB.version == read_version)
            .values(
                status=new_status.value,
                version=read_version + 1,
                status_changed_by=actor,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError(f"Finding {finding_id} was modified concurrently")

        if self.lifecycle.spawns_deletion_request(new_status):
            self.db.add(DeletionRequestDB(
                profile_id=row.profile_id,
                finding_id=finding_id,
                source_name=row.source_name,
                status=DeletionRequestStatus.PENDING.value,
            ))
        elif self.lifecycle.settles_deletion_request(new_status):
            await self.db.execute(
                update(DeletionRequestDB)
                .where(
                    DeletionRequestDB.finding_id == finding_id,
                    DeletionRequestDB.status == DeletionRequestStatus.PENDING.value,
                )
                .values(status=new_status.value, updated_at=utc_now())
                .execution_options(synchronize_session=False)
            )

        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Transition of finding {finding_id} to {new_status.value} failed: {e}"
            ) from e

        logger.info(
            f"Finding {finding_id}: {current.value} -> {new_status.value}",
            actor=actor,
            version=read_version + 1,
        )

        row = await self._load(finding_id)
        return self._to_pydantic(row)

    # =========================================================================
    # Delete Operations
    # =========================================================================

    async def delete(self, finding_id: str) -> bool:
        """
        Permanently remove a finding and its deletion requests.

        Alerts raised for the finding stay in the inbox, detached.

        Returns:
            True if the finding existed
        """
        await self.db.execute(
            delete(DeletionRequestDB).where(DeletionRequestDB.finding_id == finding_id)
        )
        await self.db.execute(
            update(NotificationAlertDB)
            .where(NotificationAlertDB.finding_id == finding_id)
            .values(finding_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(
            delete(FindingDB).where(FindingDB.id == finding_id)
        )

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted finding: {finding_id}")
        return deleted

    # =========================================================================
    # Helper Methods
    # =========================================================================

    async def _load(self, finding_id: str) -> Optional[FindingDB]:
        stmt = (
            select(FindingDB)
            .where(FindingDB.id == finding_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _to_pydantic(row: FindingDB) -> ValidatedFinding:
        """Convert a database row to its category's finding model."""
        data: Dict[str, Any] = {
            key: value for key, value in row.to_dict().items() if value is not None
        }
        return validated_finding_adapter.validate_python(data)
