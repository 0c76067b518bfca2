from __future__ import annotations

from typing import Any

from app.application.ports.message_platform import MessagePlatformPort
from app.infrastructure.slack.slack_client import SlackClient


class SlackPlatform(MessagePlatformPort):
    def __init__(self, client: SlackClient) -> None:
        self._client = client

    def send_reply(self, response_url: str, message: dict[str, Any]) -> None:
        self._client.post_response(response_url=response_url, message=message)
