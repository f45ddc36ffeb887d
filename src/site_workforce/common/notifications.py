from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Outbound notification hook (push/email dispatch lives outside the core)."""

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotificationSink:
    """Default sink: records the event in the application log."""

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        logger.info("notification %s %s", event, payload)


def notify_safely(sink: NotificationSink | None, event: str, payload: dict[str, Any]) -> None:
    """Fire-and-forget delivery. A failing sink never fails the calling operation."""
    if sink is None:
        return
    try:
        sink.notify(event, payload)
    except Exception:
        logger.exception("notification %s could not be delivered", event)
