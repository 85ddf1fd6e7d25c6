"""
Vault Store
===========

Storage for profiles and the identifiers in each profile's vault.

The store holds no business logic beyond storage and filtering: the
scan workflow asks for ``list(profile_id)`` and applies the
``monitoring_enabled`` filter itself.

Author: idwatch Team
Version: 1.0.0
"""

from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from idwatch.db.models import ProfileDB, VaultIdentifierDB
from idwatch.errors import ErrorKind, IdWatchError, NotFoundError
from idwatch.logging import get_logger
from shared.schemas.vault import Profile, VaultDataType, VaultIdentifier


logger = get_logger(__name__)


class VaultStore:
    """
    Async store for profiles and vault identifiers.

    Example:
        store = VaultStore(db_session)
        profile = await store.create_profile(owner_id="user-1", name="Jane")
        await store.add(VaultIdentifier(
            profile_id=profile.id,
            data_type=VaultDataType.EMAIL,
            value="jane@example.com",
        ))
        identifiers = await store.list(profile.id)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Profiles
    # =========================================================================

    async def create_profile(self, owner_id: str, name: str) -> Profile:
        """Create a profile owned by ``owner_id``."""
        profile = Profile(owner_id=owner_id, name=name)
        self.db.add(ProfileDB(
            id=profile.id,
            owner_id=profile.owner_id,
            name=profile.name,
            created_at=profile.created_at,
        ))
        await self.db.flush()

        logger.info(f"Created profile: {profile.id}", owner_id=owner_id)
        return profile

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        """Get a profile by ID, or None."""
        row = await self.db.get(ProfileDB, profile_id)
        if row is None:
            return None
        return Profile.model_validate(row)

    # =========================================================================
    # Identifiers
    # =========================================================================

    async def list(self, profile_id: str) -> List[VaultIdentifier]:
        """
        List every identifier in a profile's vault.

        Args:
            profile_id: Profile whose vault to read

        Returns:
            All identifiers, monitored or not, oldest first
        """
        stmt = (
            select(VaultIdentifierDB)
            .where(VaultIdentifierDB.profile_id == profile_id)
            .order_by(VaultIdentifierDB.created_at.asc(), VaultIdentifierDB.id.asc())
        )
        result = await self.db.execute(stmt)
        return [VaultIdentifier.model_validate(row) for row in result.scalars().all()]

    async def get(self, identifier_id: str) -> Optional[VaultIdentifier]:
        """Get a single identifier by ID, or None."""
        row = await self.db.get(VaultIdentifierDB, identifier_id)
        if row is None:
            return None
        return VaultIdentifier.model_validate(row)

    async def add(self, identifier: VaultIdentifier) -> VaultIdentifier:
        """
        Store a new identifier.

        Raises:
            NotFoundError: If the identifier's profile does not exist
        """
        if await self.db.get(ProfileDB, identifier.profile_id) is None:
            raise NotFoundError(f"Profile not found: {identifier.profile_id}")

        self.db.add(VaultIdentifierDB(
            id=identifier.id,
            profile_id=identifier.profile_id,
            data_type=identifier.data_type.value,
            value=identifier.value,
            label=identifier.label,
            monitoring_enabled=identifier.monitoring_enabled,
        ))
        await self.db.flush()

        logger.info(
            f"Added vault identifier: {identifier.id}",
            profile_id=identifier.profile_id,
            data_type=identifier.data_type.value,
        )
        return identifier

    async def update(
        self,
        identifier_id: str,
        value: Optional[str] = None,
        label: Optional[str] = None,
        monitoring_enabled: Optional[bool] = None,
        data_type: Optional[VaultDataType] = None,
    ) -> VaultIdentifier:
        """
        Update the mutable fields of an identifier.

        Raises:
            NotFoundError: If the identifier does not exist
            IdWatchError(INVALID): On an attempt to change data_type or
                blank the value
        """
        row = await self.db.get(VaultIdentifierDB, identifier_id)
        if row is None:
            raise NotFoundError(f"Vault identifier not found: {identifier_id}")

        if data_type is not None and data_type.value != row.data_type:
            raise IdWatchError(
                "data_type cannot be changed after creation",
                ErrorKind.INVALID,
            )
        if value is not None:
            if not value.strip():
                raise IdWatchError("value must not be blank", ErrorKind.INVALID)
            row.value = value
        if label is not None:
            row.label = label
        if monitoring_enabled is not None:
            row.monitoring_enabled = monitoring_enabled

        await self.db.flush()
        await self.db.refresh(row)
        return VaultIdentifier.model_validate(row)

    async def remove(self, identifier_id: str) -> bool:
        """Remove an identifier. Returns False if it did not exist."""
        result = await self.db.execute(
            delete(VaultIdentifierDB).where(VaultIdentifierDB.id == identifier_id)
        )
        removed = result.rowcount > 0
        if removed:
            logger.info(f"Removed vault identifier: {identifier_id}")
        return removed
