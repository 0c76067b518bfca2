"""
Tests for the HTTP surface, with the calendar replaced by an in-memory mock.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from app.api import slack as slack_api
from app.application.exceptions import AuthenticationFailure, ProviderUnavailable
from app.application.use_cases.handle_slash_command import HandleSlashCommandUseCase
from app.application.use_cases.reserve_room import ReserveRoomUseCase
from app.application.use_cases.room_schedule import RoomScheduleUseCase
from app.application.use_cases.room_snapshot import RoomSnapshotUseCase
from app.core.config import settings
from app.domain.entities.calendar_event import CalendarEvent
from app.infrastructure.calendar.mock_calendar import MockCalendar
from app.infrastructure.slack.mock_platform import MockSlackPlatform
from app.main import app
from app.wiring import dependencies

NY = ZoneInfo("America/New_York")
ROOMS = ["huron", "erie", "superior"]


@pytest.fixture
def calendar():
    now = datetime.now(timezone.utc)
    return MockCalendar(
        rooms=ROOMS,
        events={
            "huron": [
                CalendarEvent(
                    organizer_name="Alice",
                    organizer_email="alice@example.com",
                    subject="Standup",
                    start=now - timedelta(minutes=10),
                    end=now + timedelta(minutes=20),
                )
            ]
        },
    )


@pytest.fixture
def client(calendar, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "secret-key")
    monkeypatch.setattr(settings, "ROOM_TIMEZONE", "America/New_York")
    app.dependency_overrides[dependencies.get_schedule_use_case] = lambda: RoomScheduleUseCase(
        calendar=calendar, rooms=ROOMS, timezone=NY
    )
    app.dependency_overrides[dependencies.get_snapshot_use_case] = lambda: RoomSnapshotUseCase(
        calendar=calendar, timezone=NY
    )
    app.dependency_overrides[dependencies.get_reserve_use_case] = lambda: ReserveRoomUseCase(calendar=calendar)
    yield TestClient(app)
    app.dependency_overrides.clear()


HEADERS = {"APIKey": "secret-key"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_missing_api_key_is_forbidden(client):
    assert client.get("/api/calendars").status_code == 403
    assert client.get("/api/calendars", headers={"APIKey": "wrong"}).status_code == 403


def test_list_rooms(client):
    resp = client.get("/api/calendars", headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json() == ROOMS


def test_status_is_sorted(client):
    resp = client.get("/api/calendars/status", headers=HEADERS)

    assert resp.status_code == 200
    data = resp.json()
    assert [s["room_name"] for s in data["statuses"]] == ["erie", "huron", "superior"]
    huron = data["statuses"][1]
    assert huron["is_in_use"] is True
    assert huron["organizer_name"] == "Alice"
    assert data["failures"] == {}


def test_unknown_room_is_404(client):
    assert client.get("/api/calendars/ontario", headers=HEADERS).status_code == 404


class OutageCalendar(MockCalendar):
    def __init__(self, error: Exception) -> None:
        super().__init__(rooms=ROOMS)
        self._error = error

    def fetch_events(self, room_id, window_start, window_end, limit=30):
        raise self._error


def test_provider_outage_is_502_and_logged(client, caplog):
    app.dependency_overrides[dependencies.get_schedule_use_case] = lambda: RoomScheduleUseCase(
        calendar=OutageCalendar(ProviderUnavailable("graph returned 503")), rooms=ROOMS, timezone=NY
    )

    with caplog.at_level(logging.INFO, logger="app.api.calendars"):
        resp = client.get("/api/calendars/huron", headers=HEADERS)

    assert resp.status_code == 502
    records = [r for r in caplog.records if r.name == "app.api.calendars"]
    assert [r.getMessage() for r in records] == ["Room events unavailable"]
    assert records[0].levelno == logging.WARNING
    assert records[0].room == "huron"
    assert records[0].error == "graph returned 503"


def test_unknown_room_is_logged(client, caplog):
    with caplog.at_level(logging.INFO, logger="app.api.calendars"):
        client.get("/api/calendars/ontario", headers=HEADERS)

    assert any(r.getMessage() == "Unknown room requested" and r.room == "ontario" for r in caplog.records)


def test_snapshot_authentication_failure_is_502_and_logged(client, caplog):
    app.dependency_overrides[dependencies.get_snapshot_use_case] = lambda: RoomSnapshotUseCase(
        calendar=OutageCalendar(AuthenticationFailure("graph rejected credentials (401)")), timezone=NY
    )

    with caplog.at_level(logging.INFO, logger="app.api.calendars"):
        resp = client.get("/api/calendars/status", headers=HEADERS)

    assert resp.status_code == 502
    assert any(
        r.getMessage() == "Room status snapshot failed" and r.levelno == logging.ERROR for r in caplog.records
    )


def test_range_validation(client):
    assert client.get("/api/calendars/huron/2024-01-15/20240116T0000", headers=HEADERS).status_code == 400
    assert client.get("/api/calendars/huron/20240116T0000/20240115T0000", headers=HEADERS).status_code == 400


def test_range_returns_events(client):
    now = datetime.now(NY)
    start = (now - timedelta(hours=1)).strftime("%Y%m%dT%H%M")
    end = (now + timedelta(hours=1)).strftime("%Y%m%dT%H%M")

    resp = client.get(f"/api/calendars/huron/{start}/{end}", headers=HEADERS)

    assert resp.status_code == 200
    assert [e["subject"] for e in resp.json()] == ["Standup"]


def test_reserve_created_then_conflict(client):
    start = datetime(2031, 3, 4, 14, 0, tzinfo=timezone.utc)
    body = {
        "room_name": "Erie",
        "username": "jdoe",
        "start": start.isoformat(),
        "end": (start + timedelta(hours=1)).isoformat(),
    }

    first = client.post("/api/calendars/reserve", json=body, headers=HEADERS)
    second = client.post("/api/calendars/reserve", json=body, headers=HEADERS)

    assert first.status_code == 201
    assert first.json()["status"] == "accepted"
    assert second.status_code == 409
    assert second.json()["status"] == "conflict"
    assert len(second.json()["conflicts"]) == 1


def test_reserve_back_to_back_is_accepted(client):
    start = datetime(2031, 3, 4, 16, 0, tzinfo=timezone.utc)
    first = {"room_name": "erie", "username": "jdoe", "start": start.isoformat(), "end": (start + timedelta(hours=1)).isoformat()}
    second = {
        "room_name": "erie",
        "username": "asmith",
        "start": (start + timedelta(hours=1)).isoformat(),
        "end": (start + timedelta(hours=2)).isoformat(),
    }

    assert client.post("/api/calendars/reserve", json=first, headers=HEADERS).status_code == 201
    assert client.post("/api/calendars/reserve", json=second, headers=HEADERS).status_code == 201


def test_reserve_unknown_room_is_provider_failure(client, caplog):
    body = {"room_name": "ontario", "username": "jdoe", "start": "2031-03-04T09:00:00", "end": "2031-03-04T10:00:00"}

    with caplog.at_level(logging.INFO, logger="app.api.calendars"):
        resp = client.post("/api/calendars/reserve", json=body, headers=HEADERS)

    assert resp.status_code == 502
    assert resp.json()["status"] == "failed"
    assert any(r.getMessage() == "Reservation not made" and r.status == 502 for r in caplog.records)


def test_reserve_rejects_inverted_window(client):
    body = {"room_name": "erie", "username": "jdoe", "start": "2031-03-04T10:00:00", "end": "2031-03-04T09:00:00"}
    assert client.post("/api/calendars/reserve", json=body, headers=HEADERS).status_code == 422


def test_slash_command_acknowledges_and_replies(client, calendar, monkeypatch):
    platform = MockSlackPlatform()
    use_case = HandleSlashCommandUseCase(
        snapshot=RoomSnapshotUseCase(calendar=calendar, timezone=NY),
        schedule=RoomScheduleUseCase(calendar=calendar, rooms=ROOMS, timezone=NY),
        platform=platform,
        timezone=NY,
    )
    monkeypatch.setattr(slack_api, "get_slash_command_use_case", lambda: use_case)
    monkeypatch.setattr(settings, "SLACK_SIGNING_SECRET", None)
    monkeypatch.setattr(settings, "SLACK_SLASH_TOKEN", "slash-token")

    resp = client.post(
        "/api/slack/commands",
        content="token=slash-token&user_name=jdoe&text=status&response_url=https%3A%2F%2Fhooks.example.test%2Fr%2F1",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert resp.status_code == 200
    assert resp.json()["text"] == "I'm on it! Give me a sec..."
    url, message = platform.sent[0]
    assert url == "https://hooks.example.test/r/1"
    assert [a["title"] for a in message["attachments"]] == ["ERIE", "HURON", "SUPERIOR"]


def test_slash_command_bad_token_is_forbidden(client, monkeypatch):
    monkeypatch.setattr(settings, "SLACK_SIGNING_SECRET", None)
    monkeypatch.setattr(settings, "SLACK_SLASH_TOKEN", "slash-token")

    resp = client.post(
        "/api/slack/commands",
        content="token=nope&text=status&response_url=https%3A%2F%2Fhooks.example.test%2Fr%2F1",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert resp.status_code == 403
