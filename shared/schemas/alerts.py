"""
Notification Alert Schema
=========================

Alerts raised for the user when a high or critical finding lands.

Author: idwatch Team
Version: 1.0.0
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from shared.schemas.findings import Severity


ALERT_TITLE_MAX_LENGTH = 255


class AlertType(str, Enum):
    """Alert types."""
    HIGH_RISK_ALERT = "high_risk_alert"
    NEW_BREACH_DETECTED = "new_breach_detected"


class NotificationAlert(BaseModel):
    """An alert delivered to a profile's inbox."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: f"a-{uuid4().hex[:12]}")
    profile_id: str
    finding_id: Optional[str] = None
    alert_type: AlertType
    title: str = Field(..., max_length=ALERT_TITLE_MAX_LENGTH)
    message: str
    severity: Severity
    is_read: bool = False
    action_url: Optional[str] = None
    threat_indicators: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
