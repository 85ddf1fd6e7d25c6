"""
Notification Emitter
====================

Turns newly created high and critical findings into inbox alerts.

Exactly one alert is raised per qualifying finding, at creation time,
from that finding's own severity. The consolidated score plays no part.

Author: idwatch Team
Version: 1.0.0
"""

from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from idwatch.db.models import NotificationAlertDB
from idwatch.errors import NotFoundError
from idwatch.logging import get_logger
from idwatch.scoring.severity import resolve_severity
from shared.schemas.alerts import ALERT_TITLE_MAX_LENGTH, AlertType, NotificationAlert
from shared.schemas.findings import (
    BreachFinding,
    ExposureFinding,
    ImpersonationFinding,
    Severity,
    ValidatedFinding,
)


logger = get_logger(__name__)

ALERTING_SEVERITIES = frozenset({Severity.HIGH, Severity.CRITICAL})

FINDINGS_ACTION_URL = "/findings"


def _fit_title(title: str) -> str:
    if len(title) <= ALERT_TITLE_MAX_LENGTH:
        return title
    return f"{title[:ALERT_TITLE_MAX_LENGTH - 3]}..."


def build_alert(finding: ValidatedFinding) -> Optional[NotificationAlert]:
    """
    Build the alert for a finding, if it warrants one.

    Args:
        finding: A finding that has just been persisted

    Returns:
        NotificationAlert when the finding resolves to high or
        critical, otherwise None
    """
    severity = resolve_severity(finding)
    if severity not in ALERTING_SEVERITIES:
        return None

    indicators = sorted({i.type for i in finding.matched_identifiers})

    if isinstance(finding, BreachFinding):
        alert_type = AlertType.NEW_BREACH_DETECTED
        title = f"New Breach: {finding.source_name}"
        message = (
            f"Your data was found in the {finding.source_name} breach "
            f"(risk score {finding.risk_score:.0f}). "
            f"Data exposed: {', '.join(indicators[:3])}."
        )
    elif isinstance(finding, ImpersonationFinding):
        alert_type = AlertType.HIGH_RISK_ALERT
        title = f"{severity.value.upper()}: Impersonation Detected"
        message = f"Potential impersonation found on {finding.source_name}."
    elif isinstance(finding, ExposureFinding):
        alert_type = AlertType.HIGH_RISK_ALERT
        title = f"Data Found on {finding.source_name}"
        message = f"Your personal data appears on {finding.source_name}."
    else:
        return None

    return NotificationAlert(
        profile_id=finding.profile_id,
        finding_id=finding.id,
        alert_type=alert_type,
        title=_fit_title(title),
        message=message,
        severity=severity,
        action_url=finding.source_url or FINDINGS_ACTION_URL,
        threat_indicators=indicators,
    )


class NotificationEmitter:
    """
    Persists alerts to a profile's inbox.

    Example:
        emitter = NotificationEmitter(db_session)
        alert = await emitter.emit_for_finding(finding)
        unread = await emitter.list_for_profile("p-123", unread_only=True)
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def emit(self, alert: NotificationAlert) -> NotificationAlert:
        """Store an alert; it is unread until marked otherwise."""
        self.db.add(NotificationAlertDB(
            id=alert.id,
            profile_id=alert.profile_id,
            finding_id=alert.finding_id,
            alert_type=alert.alert_type.value,
            title=alert.title,
            message=alert.message,
            severity=alert.severity.value,
            is_read=alert.is_read,
            action_url=alert.action_url,
            threat_indicators=list(alert.threat_indicators),
            created_at=alert.created_at,
        ))
        await self.db.flush()

        logger.info(
            f"Emitted {alert.severity.value} alert: {alert.id}",
            profile_id=alert.profile_id,
            finding_id=alert.finding_id,
            alert_type=alert.alert_type.value,
        )
        return alert

    async def emit_for_finding(
        self,
        finding: ValidatedFinding,
    ) -> Optional[NotificationAlert]:
        """Emit the finding's alert if it warrants one."""
        alert = build_alert(finding)
        if alert is None:
            return None
        return await self.emit(alert)

    async def list_for_profile(
        self,
        profile_id: str,
        unread_only: bool = False,
    ) -> List[NotificationAlert]:
        """List a profile's alerts, newest first."""
        stmt = select(NotificationAlertDB).where(
            NotificationAlertDB.profile_id == profile_id
        )
        if unread_only:
            stmt = stmt.where(NotificationAlertDB.is_read.is_(False))
        stmt = stmt.order_by(NotificationAlertDB.created_at.desc())
        stmt = stmt.execution_options(populate_existing=True)

        result = await self.db.execute(stmt)
        return [NotificationAlert.model_validate(row) for row in result.scalars().all()]

    async def get(self, alert_id: str) -> Optional[NotificationAlert]:
        row = await self.db.get(NotificationAlertDB, alert_id)
        if row is None:
            return None
        return NotificationAlert.model_validate(row)

    async def mark_read(self, alert_id: str) -> NotificationAlert:
        """
        Mark an alert read.

        Raises:
            NotFoundError: No such alert
        """
        result = await self.db.execute(
            update(NotificationAlertDB)
            .where(NotificationAlertDB.id == alert_id)
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Alert not found: {alert_id}")

        row = await self.db.get(NotificationAlertDB, alert_id, populate_existing=True)
        return NotificationAlert.model_validate(row)
