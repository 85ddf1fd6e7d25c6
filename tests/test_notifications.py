"""
Tests for Alert Emission
========================

Author: idwatch Team
Version: 1.0.0
"""

import pytest

from idwatch.errors import NotFoundError
from idwatch.notifications.emitter import NotificationEmitter, build_alert
from shared.schemas.alerts import ALERT_TITLE_MAX_LENGTH, AlertType
from shared.schemas.findings import Severity

from fixtures import PROFILE_ID, breach, exposure, impersonation, mention


class TestBuildAlert:
    """Alerts are derived from the finding's own severity."""

    @pytest.mark.parametrize("finding", [
        breach(59.9), exposure("medium"), exposure(None), impersonation("low"), mention(),
    ])
    def test_no_alert_below_high(self, finding):
        assert build_alert(finding) is None

    def test_critical_breach(self):
        finding = breach(92)
        alert = build_alert(finding)

        assert alert.severity == Severity.CRITICAL
        assert alert.alert_type == AlertType.NEW_BREACH_DETECTED
        assert alert.finding_id == finding.id
        assert alert.profile_id == PROFILE_ID
        assert alert.is_read is False
        assert alert.threat_indicators == ["email"]
        assert "ExampleBreach2024" in alert.title

    def test_high_breach_band(self):
        assert build_alert(breach(60)).severity == Severity.HIGH

    def test_impersonation_and_exposure(self):
        imp = build_alert(impersonation("critical"))
        exp = build_alert(exposure("high"))

        assert imp.alert_type == AlertType.HIGH_RISK_ALERT
        assert imp.severity == Severity.CRITICAL
        assert imp.title.startswith("CRITICAL")
        assert exp.alert_type == AlertType.HIGH_RISK_ALERT
        assert exp.severity == Severity.HIGH
        assert "Spokeo" in exp.title

    def test_action_url_defaults_to_findings(self):
        assert build_alert(breach(90)).action_url == "/findings"
        finding = breach(90).model_copy(update={"source_url": "https://leak.example"})
        assert build_alert(finding).action_url == "https://leak.example"

    def test_title_fits_column_for_long_source_name(self):
        finding = breach(95).model_copy(update={"source_name": "S" * 255})
        alert = build_alert(finding)

        assert len(alert.title) == ALERT_TITLE_MAX_LENGTH
        assert alert.title.startswith("New Breach: SSS")
        assert alert.title.endswith("...")


class TestNotificationEmitter:
    @pytest.mark.asyncio
    async def test_emit_and_list(self, session_factory, profile_id):
        async with session_factory() as session:
            emitter = NotificationEmitter(session)
            alert = await emitter.emit_for_finding(impersonation("high"))
            skipped = await emitter.emit_for_finding(impersonation("medium"))
            await session.commit()

        assert alert is not None
        assert skipped is None

        async with session_factory() as session:
            alerts = await NotificationEmitter(session).list_for_profile(PROFILE_ID)

        assert [a.id for a in alerts] == [alert.id]
        assert alerts[0].severity == Severity.HIGH

    @pytest.mark.asyncio
    async def test_mark_read_and_unread_filter(self, session_factory, profile_id):
        async with session_factory() as session:
            emitter = NotificationEmitter(session)
            first = await emitter.emit_for_finding(breach(95))
            second = await emitter.emit_for_finding(breach(85))
            await session.commit()

            read = await emitter.mark_read(first.id)
            await session.commit()
            unread = await emitter.list_for_profile(PROFILE_ID, unread_only=True)

        assert read.is_read is True
        assert [a.id for a in unread] == [second.id]

    @pytest.mark.asyncio
    async def test_mark_read_missing(self, db_session):
        with pytest.raises(NotFoundError):
            await NotificationEmitter(db_session).mark_read("a-missing")
