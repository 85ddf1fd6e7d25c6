"""
idwatch API Dependencies
========================

FastAPI dependency injection for shared resources.

The ServiceContainer owns the long-lived pieces (evidence source
client, scan service with its in-flight guard). Request-scoped stores
are built per request on the request's database session.

Author: idwatch Team
Version: 1.0.0
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from idwatch.api.auth import CurrentUser, get_current_user
from idwatch.config import settings
from idwatch.db import async_session_factory, get_db
from idwatch.errors import NotFoundError
from idwatch.findings.repository import FindingRepository
from idwatch.findings.validator import MatchValidator
from idwatch.integrations.evidence_source import EvidenceSource, HttpEvidenceSource
from idwatch.logging import get_logger
from idwatch.notifications.emitter import NotificationEmitter
from idwatch.scanning.service import ScanService
from idwatch.vault.store import VaultStore
from shared.schemas.vault import Profile


logger = get_logger(__name__)


class ServiceContainer:
    """
    Singleton container for shared services.

    Starts in degraded mode when no evidence source is configured:
    scans still run, but every identifier search fails as unconfigured.
    """

    _instance: Optional["ServiceContainer"] = None

    def __init__(self):
        self._evidence_source: Optional[EvidenceSource] = None
        self._scan_service: Optional[ScanService] = None
        self._initialized = False

    @classmethod
    def get_instance(cls) -> "ServiceContainer":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = ServiceContainer()
        return cls._instance

    async def initialize(self) -> None:
        """Build the evidence source client and scan service."""
        if self._initialized:
            return

        logger.info("Initializing service container...")

        source = HttpEvidenceSource()
        if not source.configured:
            logger.warning(
                "Evidence source URL not set; scans will report every "
                "identifier as unconfigured"
            )
        self._evidence_source = source
        self._scan_service = ScanService(
            async_session_factory,
            source,
            validator=MatchValidator(settings.min_confidence_score),
        )
        self._initialized = True

        logger.info("Service container initialized")

    async def shutdown(self) -> None:
        """Close the evidence source client."""
        logger.info("Shutting down service container...")

        if self._evidence_source is not None:
            await self._evidence_source.close()

        self._evidence_source = None
        self._scan_service = None
        self._initialized = False

        logger.info("Service container shutdown complete")

    @property
    def evidence_source(self) -> Optional[EvidenceSource]:
        return self._evidence_source

    @property
    def scan_service(self) -> Optional[ScanService]:
        return self._scan_service


# =============================================================================
# Dependency Functions
# =============================================================================


async def get_scan_service() -> ScanService:
    """Scan service; 503 before the container has started."""
    service = ServiceContainer.get_instance().scan_service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scan service not initialized",
        )
    return service


async def get_vault_store(db: AsyncSession = Depends(get_db)) -> VaultStore:
    return VaultStore(db)


async def get_finding_repository(db: AsyncSession = Depends(get_db)) -> FindingRepository:
    return FindingRepository(db)


async def get_notification_emitter(db: AsyncSession = Depends(get_db)) -> NotificationEmitter:
    return NotificationEmitter(db)


async def authorize_profile(
    profile_id: str,
    user: CurrentUser,
    store: VaultStore,
) -> Profile:
    """
    Load a profile and check the caller may act on it.

    Raises:
        NotFoundError: No such profile
        HTTPException 403: Caller neither owns the profile nor is admin
    """
    profile = await store.get_profile(profile_id)
    if profile is None:
        raise NotFoundError(f"Profile not found: {profile_id}")

    if not user.can_access(profile.owner_id):
        logger.warning(
            f"Profile access denied: user={user.user_id} profile={profile_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not permitted to access this profile",
        )
    return profile


async def get_authorized_profile(
    profile_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: VaultStore = Depends(get_vault_store),
) -> Profile:
    """Path dependency: the ``{profile_id}`` profile, if the caller may use it."""
    return await authorize_profile(profile_id, user, store)
