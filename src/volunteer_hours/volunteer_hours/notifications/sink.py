from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from ..core.enums import NotificationKind

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Receives lifecycle outcomes and delivers them (email, push, ...).

    Delivery is best-effort; callers never depend on the outcome.
    """

    def notify(self, kind: NotificationKind, recipient_id: int, context: Mapping[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotificationSink(NotificationSink):
    """Default sink: records the notification in the application log."""

    def notify(self, kind: NotificationKind, recipient_id: int, context: Mapping[str, Any]) -> None:
        logger.info("Notification %s -> user %s %s", kind.value, recipient_id, dict(context))
