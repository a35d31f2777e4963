from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from logging_utils import log_event

from .utils import mask_recipient

logger = logging.getLogger("mvtintel.notifier")


class Notifier:
    """Reply channel back to the message sender."""

    async def __aenter__(self) -> "Notifier":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def send(self, recipient_id: str, text: str) -> Optional[str]:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Writes replies to the log instead of delivering them."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []

    async def send(self, recipient_id: str, text: str) -> Optional[str]:
        self.sent.append((recipient_id, text))
        log_event(
            logger,
            "reply_logged",
            recipient=mask_recipient(recipient_id),
            reply=text,
        )
        return None
