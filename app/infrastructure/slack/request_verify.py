from __future__ import annotations

import hmac
import logging
import time


logger = logging.getLogger(__name__)

MAX_REQUEST_AGE_SECONDS = 300


def verify_slash_token(token: str | None, expected_token: str | None) -> bool:
    if not token or not expected_token:
        return False
    return hmac.compare_digest(token, expected_token)


def verify_request_signature(
    body: bytes,
    timestamp: str | None,
    signature_header: str | None,
    signing_secret: str | None,
    now: float | None = None,
) -> bool:
    if not signing_secret:
        logger.error("Missing signing secret for signature verification")
        return False
    if not timestamp or not signature_header:
        return False

    try:
        sent_at = int(timestamp)
    except ValueError:
        return False
    now = time.time() if now is None else now
    if abs(now - sent_at) > MAX_REQUEST_AGE_SECONDS:
        logger.warning("Stale Slack request rejected", extra={"reason": "timestamp outside window"})
        return False

    try:
        version, signature = signature_header.split("=", 1)
    except ValueError:
        return False
    if version != "v0":
        return False

    basestring = b"v0:" + timestamp.encode("utf-8") + b":" + body
    expected = hmac.new(signing_secret.encode("utf-8"), basestring, "sha256").hexdigest()
    return hmac.compare_digest(expected, signature)


def verify_slack_request(
    body: bytes,
    token: str | None,
    timestamp: str | None,
    signature_header: str | None,
    expected_token: str | None,
    signing_secret: str | None,
    env: str,
) -> bool:
    """Signing secret wins when configured; otherwise fall back to the legacy slash token."""
    if signing_secret:
        return verify_request_signature(body, timestamp, signature_header, signing_secret)
    if expected_token:
        return verify_slash_token(token, expected_token)
    if env.lower() in {"dev", "local"}:
        logger.warning("No Slack credentials configured; accepting in dev mode")
        return True
    return False
