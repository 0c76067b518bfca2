from __future__ import annotations

import logging
import threading
import time

import httpx

from app.application.exceptions import AuthenticationFailure, ProviderUnavailable

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
REFRESH_MARGIN_SECONDS = 300


class GraphTokenProvider:
    """
    Client-credentials bearer token for a single-tenant Graph application.

    The token is reused until five minutes before it expires. Shared across
    the snapshot worker threads, hence the lock.
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        token_url: str,
        client: httpx.Client | None = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url.format(tenant=tenant_id)
        self._client = client or httpx.Client(timeout=10.0)
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def get_token(self) -> str:
        with self._lock:
            if self._token and time.monotonic() < self._expires_at - REFRESH_MARGIN_SECONDS:
                return self._token
            self._token = None
            self._request_token()
            return self._token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0

    def _request_token(self) -> None:
        data = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "scope": GRAPH_SCOPE,
        }
        try:
            resp = self._client.post(self._token_url, data=data)
        except httpx.RequestError as e:
            self._logger.error("Token request failed", extra={"error": str(e)})
            raise ProviderUnavailable(f"token endpoint unreachable: {e}") from e

        if resp.status_code >= 500:
            raise ProviderUnavailable(f"token endpoint returned {resp.status_code}")
        if resp.status_code >= 400:
            self._logger.error("Token request rejected", extra={"status": resp.status_code})
            raise AuthenticationFailure(f"token request rejected with {resp.status_code}")

        try:
            payload = resp.json()
            token = payload["access_token"]
            expires_in = int(payload.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationFailure("no access token returned from token endpoint") from e

        self._token = token
        self._expires_at = time.monotonic() + expires_in
        self._logger.info("Graph access token acquired", extra={"expires_in": expires_in})
