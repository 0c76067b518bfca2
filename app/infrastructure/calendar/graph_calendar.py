from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from app.application.exceptions import (
    AuthenticationFailure,
    InvalidRoom,
    MalformedEvent,
    ProviderUnavailable,
)
from app.application.ports.calendar import CalendarProviderPort
from app.core.config import settings
from app.domain.entities.calendar_event import CalendarEvent, ShowAs
from app.infrastructure.calendar.graph_auth import GraphTokenProvider

RECURRING_TYPES = {"occurrence", "exception", "seriesMaster"}


def _format_utc(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def parse_graph_datetime(block: Any) -> datetime:
    """Parse a Graph dateTimeTimeZone block into an aware UTC datetime."""
    if not isinstance(block, dict) or not block.get("dateTime"):
        raise MalformedEvent("missing dateTime")
    raw = str(block["dateTime"]).replace("Z", "")
    # Graph sends seven fractional digits; datetime accepts at most six.
    if "." in raw:
        head, frac = raw.split(".", 1)
        raw = f"{head}.{frac[:6]}"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as e:
        raise MalformedEvent(f"bad dateTime {block['dateTime']!r}") from e

    tz_name = str(block.get("timeZone") or "UTC")
    if parsed.tzinfo is None:
        if tz_name.upper() in {"UTC", "ETC/UTC"}:
            parsed = parsed.replace(tzinfo=timezone.utc)
        else:
            try:
                parsed = parsed.replace(tzinfo=ZoneInfo(tz_name))
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise MalformedEvent(f"unknown timeZone {tz_name!r}") from e
    return parsed.astimezone(timezone.utc)


def map_graph_event(item: Any) -> CalendarEvent:
    if not isinstance(item, dict):
        raise MalformedEvent(f"event is not an object: {type(item).__name__}")
    organizer_block = item.get("organizer") or {}
    if not isinstance(organizer_block, dict):
        raise MalformedEvent("organizer is not an object")
    organizer = organizer_block.get("emailAddress") or {}
    if not isinstance(organizer, dict):
        raise MalformedEvent("organizer emailAddress is not an object")
    return CalendarEvent(
        organizer_name=str(organizer.get("name") or ""),
        organizer_email=str(organizer.get("address") or ""),
        subject=str(item.get("subject") or ""),
        start=parse_graph_datetime(item.get("start")),
        end=parse_graph_datetime(item.get("end")),
        recurring=item.get("recurrence") is not None or item.get("type") in RECURRING_TYPES,
        show_as=ShowAs.parse(item.get("showAs")),
    )


class GraphCalendar(CalendarProviderPort):
    """Room calendars backed by Microsoft Graph ``calendarView``."""

    def __init__(
        self,
        token_provider: GraphTokenProvider,
        base_url: str | None = None,
        mail_domain: str | None = None,
        subject: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._tokens = token_provider
        self._base_url = (base_url or settings.GRAPH_BASE_URL).rstrip("/")
        self._mail_domain = mail_domain or settings.GRAPH_MAIL_DOMAIN
        self._subject = subject or settings.RESERVATION_SUBJECT
        self._client = client or httpx.Client(timeout=settings.GRAPH_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    def _mailbox(self, name: str) -> str:
        return name if "@" in name else f"{name}@{self._mail_domain}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._tokens.get_token()}",
            "Prefer": 'outlook.timezone="UTC"',
        }

    def _request(self, method: str, url: str, room_id: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.RequestError as e:
            self._logger.error("Graph request failed", extra={"room": room_id, "error": str(e)})
            raise ProviderUnavailable(f"graph unreachable: {e}") from e

        if resp.status_code < 400:
            return resp

        try:
            error_code = resp.json().get("error", {}).get("code")
        except (ValueError, AttributeError):
            error_code = None

        self._logger.error(
            "Graph request rejected",
            extra={"room": room_id, "status": resp.status_code, "error": error_code},
        )
        if resp.status_code in (401, 403):
            self._tokens.invalidate()
            raise AuthenticationFailure(f"graph rejected credentials ({resp.status_code})")
        if resp.status_code == 404 or error_code in {"ErrorInvalidUser", "ResourceNotFound"}:
            raise InvalidRoom(f"unknown mailbox for {room_id!r}")
        raise ProviderUnavailable(f"graph returned {resp.status_code}")

    def _json(self, resp: httpx.Response, room_id: str) -> dict[str, Any]:
        try:
            payload = resp.json()
        except ValueError as e:
            self._logger.error("Graph returned a non-JSON body", extra={"room": room_id, "status": resp.status_code})
            raise ProviderUnavailable("graph returned a non-JSON body") from e
        if not isinstance(payload, dict):
            raise ProviderUnavailable("graph response is not an object")
        return payload

    def fetch_events(
        self,
        room_id: str,
        window_start: datetime,
        window_end: datetime,
        limit: int = 30,
    ) -> list[CalendarEvent]:
        url = f"{self._base_url}/users/{self._mailbox(room_id)}/calendarView"
        params = {
            "startDateTime": _format_utc(window_start),
            "endDateTime": _format_utc(window_end),
            "$top": limit,
            "$orderby": "start/dateTime",
        }
        resp = self._request("GET", url, room_id, params=params)

        payload = self._json(resp, room_id)
        items = payload.get("value") or []
        if not isinstance(items, list):
            raise MalformedEvent("calendarView value is not a list")

        events: list[CalendarEvent] = []
        for item in items:
            try:
                events.append(map_graph_event(item))
            except MalformedEvent as e:
                self._logger.warning("Skipping malformed Graph event", extra={"room": room_id, "reason": str(e)})
        self._logger.info("Fetched room events", extra={"room": room_id, "event_count": len(events)})
        return events

    def create_event(self, room_id: str, requester_id: str, start: datetime, end: datetime) -> str:
        room_email = self._mailbox(room_id)
        url = f"{self._base_url}/users/{self._mailbox(requester_id)}/calendar/events"
        payload = {
            "subject": self._subject,
            "start": {"dateTime": _format_utc(start), "timeZone": "UTC"},
            "end": {"dateTime": _format_utc(end), "timeZone": "UTC"},
            "location": {"displayName": room_id},
            "attendees": [
                {"emailAddress": {"address": room_email, "name": room_id}, "type": "resource"},
            ],
        }
        resp = self._request("POST", url, room_id, json=payload)
        event_id = self._json(resp, room_id).get("id")
        if not event_id:
            raise ProviderUnavailable("no event id returned from Graph")

        self._logger.info("Room reserved", extra={"room": room_id, "requester": requester_id})
        return str(event_id)
