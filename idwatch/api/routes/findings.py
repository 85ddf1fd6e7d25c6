"""
Findings API Routes
===================

List findings, move them through their lifecycle, remove them.

Author: idwatch Team
Version: 1.0.0
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from idwatch.api.auth import CurrentUser, get_current_user
from idwatch.api.dependencies import (
    authorize_profile,
    get_authorized_profile,
    get_finding_repository,
    get_vault_store,
)
from idwatch.errors import NotFoundError
from idwatch.findings.repository import FindingRepository
from idwatch.logging import get_logger
from idwatch.vault.store import VaultStore
from shared.schemas.findings import (
    DeletionRequest,
    FindingCategory,
    FindingStatistics,
    FindingStatus,
    ValidatedFinding,
)
from shared.schemas.vault import Profile


logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["Findings"],
    responses={401: {"description": "Unauthorized"}},
)


class TransitionRequest(BaseModel):
    """Request model for a status change."""

    status: FindingStatus = Field(..., description="Requested status")
    expected_version: Optional[int] = Field(
        None,
        ge=1,
        description="Version last read; a mismatch returns 409",
    )


# =============================================================================
# Per-profile Queries
# =============================================================================


@router.get("/profiles/{profile_id}/findings", response_model=List[ValidatedFinding])
async def list_findings(
    status_filter: Optional[FindingStatus] = Query(None, alias="status"),
    category: Optional[FindingCategory] = Query(None),
    high_risk: bool = Query(
        False,
        description="Only breaches with risk score 70 or more",
    ),
    profile: Profile = Depends(get_authorized_profile),
    repository: FindingRepository = Depends(get_finding_repository),
) -> List[ValidatedFinding]:
    return await repository.list_for_profile(
        profile.id,
        status=status_filter,
        category=category,
        high_risk=high_risk,
    )


@router.get("/profiles/{profile_id}/statistics", response_model=FindingStatistics)
async def finding_statistics(
    profile: Profile = Depends(get_authorized_profile),
    repository: FindingRepository = Depends(get_finding_repository),
) -> FindingStatistics:
    return await repository.statistics(profile.id)


@router.get(
    "/profiles/{profile_id}/deletion-requests",
    response_model=List[DeletionRequest],
)
async def list_deletion_requests(
    profile: Profile = Depends(get_authorized_profile),
    repository: FindingRepository = Depends(get_finding_repository),
) -> List[DeletionRequest]:
    return await repository.list_deletion_requests(profile.id)


# =============================================================================
# Lifecycle
# =============================================================================


@router.post("/findings/{finding_id}/status", response_model=ValidatedFinding)
async def transition_status(
    finding_id: str,
    request: TransitionRequest,
    user: CurrentUser = Depends(get_current_user),
    store: VaultStore = Depends(get_vault_store),
    repository: FindingRepository = Depends(get_finding_repository),
) -> ValidatedFinding:
    """
    Move a finding to a new status.

    Returns 409 when the edge is not allowed or the finding changed
    since ``expected_version``.
    """
    finding = await _get_accessible_finding(finding_id, user, store, repository)
    return await repository.transition(
        finding.id,
        request.status,
        actor=user.user_id,
        expected_version=request.expected_version,
    )


@router.delete("/findings/{finding_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_finding(
    finding_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: VaultStore = Depends(get_vault_store),
    repository: FindingRepository = Depends(get_finding_repository),
) -> Response:
    """Permanently remove a finding."""
    finding = await _get_accessible_finding(finding_id, user, store, repository)
    await repository.delete(finding.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _get_accessible_finding(
    finding_id: str,
    user: CurrentUser,
    store: VaultStore,
    repository: FindingRepository,
) -> ValidatedFinding:
    finding = await repository.get(finding_id)
    if finding is None:
        raise NotFoundError(f"Finding not found: {finding_id}")
    await authorize_profile(finding.profile_id, user, store)
    return finding
