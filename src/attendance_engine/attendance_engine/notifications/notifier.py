from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, user_id: int, title: str, body: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default notifier: writes notifications to the log instead of a push/e-mail transport."""

    def send(self, user_id: int, title: str, body: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        logger.info("notify user=%s title=%r body=%r metadata=%s", user_id, title, body, dict(metadata or {}))
