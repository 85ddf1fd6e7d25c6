"""
Scan & Risk Routes
==================

Run scans, push candidate evidence, read the consolidated risk.

Author: idwatch Team
Version: 1.0.0
"""

from typing import Any, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from idwatch.api.dependencies import get_authorized_profile, get_scan_service
from idwatch.scanning.service import ScanService
from shared.schemas.findings import RiskProfile
from shared.schemas.scans import PersistBatchResult, ScanSummary
from shared.schemas.vault import Profile


router = APIRouter(
    prefix="/api/v1/profiles",
    tags=["Scans"],
    responses={401: {"description": "Unauthorized"}},
)


class ValidateRequest(BaseModel):
    # Records are checked one by one; a malformed record is rejected alone.
    candidates: List[Any] = Field(
        ...,
        description="Candidate findings from an evidence source",
    )


@router.post(
    "/{profile_id}/scans",
    response_model=ScanSummary,
    summary="Run a scan",
    description="Search every monitored identifier and persist accepted findings.",
)
async def run_scan(
    profile: Profile = Depends(get_authorized_profile),
    service: ScanService = Depends(get_scan_service),
) -> ScanSummary:
    return await service.run_scan(profile.id)


@router.post(
    "/{profile_id}/findings/validate",
    response_model=PersistBatchResult,
    summary="Validate and persist candidates",
)
async def validate_candidates(
    request: ValidateRequest,
    profile: Profile = Depends(get_authorized_profile),
    service: ScanService = Depends(get_scan_service),
) -> PersistBatchResult:
    """Apply the acceptance policy to pushed candidates and store the accepted ones."""
    return await service.validate_and_persist(profile.id, request.candidates)


@router.get(
    "/{profile_id}/risk",
    response_model=RiskProfile,
    summary="Consolidated risk",
)
async def get_risk(
    profile: Profile = Depends(get_authorized_profile),
    service: ScanService = Depends(get_scan_service),
) -> RiskProfile:
    return await service.get_risk(profile.id)
