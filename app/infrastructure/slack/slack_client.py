from __future__ import annotations

import logging
from typing import Any

import httpx


class SlackClient:
    def __init__(self, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def post_response(self, response_url: str, message: dict[str, Any]) -> None:
        resp = self._client.post(response_url, json=message)
        if resp.status_code >= 400:
            self._logger.error(
                "Slack reply failed",
                extra={
                    "status": resp.status_code,
                    "error": resp.text[:200],
                    "attachment_count": len(message.get("attachments") or []),
                },
            )
            resp.raise_for_status()
