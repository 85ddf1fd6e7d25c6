"""
Alert Routes
============

A profile's alert inbox.

Author: idwatch Team
Version: 1.0.0
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from idwatch.api.auth import CurrentUser, get_current_user
from idwatch.api.dependencies import (
    authorize_profile,
    get_authorized_profile,
    get_notification_emitter,
    get_vault_store,
)
from idwatch.errors import NotFoundError
from idwatch.notifications.emitter import NotificationEmitter
from idwatch.vault.store import VaultStore
from shared.schemas.alerts import NotificationAlert
from shared.schemas.vault import Profile


router = APIRouter(
    prefix="/api/v1",
    tags=["Alerts"],
    responses={401: {"description": "Unauthorized"}},
)


@router.get("/profiles/{profile_id}/alerts", response_model=List[NotificationAlert])
async def list_alerts(
    unread_only: bool = Query(False),
    profile: Profile = Depends(get_authorized_profile),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> List[NotificationAlert]:
    return await emitter.list_for_profile(profile.id, unread_only=unread_only)


@router.post("/alerts/{alert_id}/read", response_model=NotificationAlert)
async def mark_alert_read(
    alert_id: str,
    user: CurrentUser = Depends(get_current_user),
    store: VaultStore = Depends(get_vault_store),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> NotificationAlert:
    alert = await emitter.get(alert_id)
    if alert is None:
        raise NotFoundError(f"Alert not found: {alert_id}")
    await authorize_profile(alert.profile_id, user, store)
    return await emitter.mark_read(alert_id)
