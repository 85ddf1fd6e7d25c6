"""
Profile & Vault Routes
======================

Create profiles and manage the identifiers in their vaults.

Author: idwatch Team
Version: 1.0.0
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from idwatch.api.auth import CurrentUser, get_current_user
from idwatch.api.dependencies import get_authorized_profile, get_vault_store
from idwatch.errors import NotFoundError
from idwatch.vault.store import VaultStore
from shared.schemas.vault import Profile, VaultDataType, VaultIdentifier


router = APIRouter(
    prefix="/api/v1/profiles",
    tags=["Profiles"],
    responses={401: {"description": "Unauthorized"}},
)


# =============================================================================
# Request Models
# =============================================================================


class ProfileCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Display name of the person")
    owner_id: Optional[str] = Field(
        None,
        description="Owning account (admins only; defaults to the caller)",
    )


class IdentifierCreateRequest(BaseModel):
    data_type: VaultDataType
    value: str = Field(..., min_length=1)
    label: Optional[str] = None
    monitoring_enabled: bool = True


class IdentifierUpdateRequest(BaseModel):
    value: Optional[str] = Field(None, min_length=1)
    label: Optional[str] = None
    monitoring_enabled: Optional[bool] = None
    data_type: Optional[VaultDataType] = Field(
        None,
        description="Must equal the current type; types are fixed at creation",
    )


# =============================================================================
# Profiles
# =============================================================================


@router.post("", response_model=Profile, status_code=status.HTTP_201_CREATED)
async def create_profile(
    request: ProfileCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    store: VaultStore = Depends(get_vault_store),
) -> Profile:
    """Create a monitored profile."""
    owner_id = request.owner_id or user.user_id
    if not user.can_access(owner_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins may create profiles for other accounts",
        )
    return await store.create_profile(owner_id=owner_id, name=request.name)


# =============================================================================
# Vault
# =============================================================================


@router.get("/{profile_id}/vault", response_model=List[VaultIdentifier])
async def list_identifiers(
    profile: Profile = Depends(get_authorized_profile),
    store: VaultStore = Depends(get_vault_store),
) -> List[VaultIdentifier]:
    return await store.list(profile.id)


@router.post(
    "/{profile_id}/vault",
    response_model=VaultIdentifier,
    status_code=status.HTTP_201_CREATED,
)
async def add_identifier(
    request: IdentifierCreateRequest,
    profile: Profile = Depends(get_authorized_profile),
    store: VaultStore = Depends(get_vault_store),
) -> VaultIdentifier:
    """Add an identifier to the profile's vault."""
    identifier = VaultIdentifier(
        profile_id=profile.id,
        data_type=request.data_type,
        value=request.value,
        label=request.label,
        monitoring_enabled=request.monitoring_enabled,
    )
    return await store.add(identifier)


@router.patch("/{profile_id}/vault/{identifier_id}", response_model=VaultIdentifier)
async def update_identifier(
    identifier_id: str,
    request: IdentifierUpdateRequest,
    profile: Profile = Depends(get_authorized_profile),
    store: VaultStore = Depends(get_vault_store),
) -> VaultIdentifier:
    """Update value, label or monitoring flag of an identifier."""
    await _get_owned_identifier(store, profile.id, identifier_id)
    return await store.update(
        identifier_id,
        value=request.value,
        label=request.label,
        monitoring_enabled=request.monitoring_enabled,
        data_type=request.data_type,
    )


@router.delete(
    "/{profile_id}/vault/{identifier_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_identifier(
    identifier_id: str,
    profile: Profile = Depends(get_authorized_profile),
    store: VaultStore = Depends(get_vault_store),
) -> Response:
    await _get_owned_identifier(store, profile.id, identifier_id)
    await store.remove(identifier_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _get_owned_identifier(
    store: VaultStore,
    profile_id: str,
    identifier_id: str,
) -> VaultIdentifier:
    identifier = await store.get(identifier_id)
    if identifier is None or identifier.profile_id != profile_id:
        raise NotFoundError(f"Vault identifier not found: {identifier_id}")
    return identifier
