"""
Database Models
===============

ORM tables for profiles, vault identifiers, findings, deletion
requests and notification alerts.

JSON columns use the portable ``JSON`` type so the same schema runs on
PostgreSQL in production and SQLite under test.

Author: idwatch Team
Version: 1.0.0
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from idwatch.db.base import Base, TimestampMixin, generate_id, utc_now


class ProfileDB(Base):
    """A monitored person and the account that owns it."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: generate_id("p")
    )
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class VaultIdentifierDB(Base, TimestampMixin):
    """A protected identifier stored in a profile's vault."""

    __tablename__ = "vault_identifiers"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: generate_id("v")
    )
    profile_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    data_type: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    monitoring_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )


class FindingDB(Base, TimestampMixin):
    """
    A validated finding.

    Category-specific severity lives in one of three nullable columns:
    ``risk_score`` (breach), ``risk_level`` (exposure) or ``severity``
    (impersonation, mention).
    """

    __tablename__ = "findings"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: generate_id("f")
    )
    profile_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    source_name: Mapped[str] = mapped_column(String(255), nullable=False)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    matched_identifiers: Mapped[List[Any]] = mapped_column(JSON, nullable=False)

    risk_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    risk_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    severity: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    confidence_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    content_verbatim: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(30), default="new", nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    status_changed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class DeletionRequestDB(Base, TimestampMixin):
    """Removal request spawned when a finding moves to removal_requested."""

    __tablename__ = "deletion_requests"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: generate_id("d")
    )
    profile_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    finding_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("findings.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    source_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    request_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class NotificationAlertDB(Base):
    """An alert in a profile's inbox."""

    __tablename__ = "notification_alerts"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: generate_id("a")
    )
    profile_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    finding_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("findings.id", ondelete="SET NULL"), nullable=True
    )
    alert_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    action_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    threat_indicators: Mapped[List[Any]] = mapped_column(JSON, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
