from __future__ import annotations

import logging
from typing import Any

from app.application.ports.message_platform import MessagePlatformPort


class MockSlackPlatform(MessagePlatformPort):
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self._logger = logging.getLogger(__name__)

    def send_reply(self, response_url: str, message: dict[str, Any]) -> None:
        self.sent.append((response_url, message))
        self._logger.info(
            "Mock reply to Slack", extra={"response_url": response_url, "text": message.get("text")}
        )
