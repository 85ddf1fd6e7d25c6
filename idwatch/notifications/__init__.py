"""Inbox alerts for high and critical findings."""

from idwatch.notifications.emitter import NotificationEmitter, build_alert

__all__ = ["NotificationEmitter", "build_alert"]
