"""
Tests for the multi-room availability snapshot.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx
import pytest

from app.application.exceptions import AuthenticationFailure, InvalidRoom, MalformedEvent, ProviderUnavailable
from app.application.ports.calendar import CalendarProviderPort
from app.application.use_cases.room_snapshot import RoomSnapshotUseCase
from app.domain.entities.calendar_event import CalendarEvent
from app.infrastructure.calendar.graph_auth import GraphTokenProvider
from app.infrastructure.calendar.graph_calendar import GraphCalendar


class FakeCalendar(CalendarProviderPort):
    def __init__(
        self,
        events: dict[str, list[CalendarEvent]] | None = None,
        errors: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
        blockers: dict[str, threading.Event] | None = None,
    ) -> None:
        self.events = events or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.blockers = blockers or {}
        self.calls: list[tuple[str, datetime, datetime, int]] = []
        self._lock = threading.Lock()

    def fetch_events(self, room_id, window_start, window_end, limit=30):
        with self._lock:
            self.calls.append((room_id, window_start, window_end, limit))
        if room_id in self.delays:
            time.sleep(self.delays[room_id])
        if room_id in self.blockers:
            self.blockers[room_id].wait(5)
        if room_id in self.errors:
            raise self.errors[room_id]
        return list(self.events.get(room_id, []))

    def create_event(self, room_id, requester_id, start, end):
        raise NotImplementedError


def _use_case(calendar: CalendarProviderPort, **kwargs) -> RoomSnapshotUseCase:
    return RoomSnapshotUseCase(calendar=calendar, timezone=ZoneInfo("America/New_York"), **kwargs)


def test_snapshot_sorted_regardless_of_completion_order(at, make_event):
    calendar = FakeCalendar(
        events={"a": [make_event(at(9), at(11))], "c": [make_event(at(14), at(15))]},
        delays={"a": 0.15, "b": 0.05},
    )

    snapshot = _use_case(calendar).snapshot({"b", "a", "c"}, reference=at(10))

    assert [s.room_name for s in snapshot.statuses] == ["a", "b", "c"]
    assert snapshot.statuses[0].is_in_use is True
    assert snapshot.statuses[0].end_time == at(11)
    assert snapshot.statuses[1].end_time is None
    assert snapshot.statuses[2].end_time == at(14)
    assert snapshot.failures == {}


def test_failed_room_is_omitted_and_reported(at, make_event):
    calendar = FakeCalendar(
        events={"a": [make_event(at(9), at(11))]},
        errors={"b": ProviderUnavailable("graph returned 503")},
    )

    snapshot = _use_case(calendar).snapshot(["a", "b", "c"], reference=at(10))

    assert [s.room_name for s in snapshot.statuses] == ["a", "c"]
    assert snapshot.failures == {"b": "graph returned 503"}
    assert snapshot.is_partial


def test_invalid_room_is_a_partial_failure(at):
    calendar = FakeCalendar(errors={"ghost": InvalidRoom("unknown mailbox")})

    snapshot = _use_case(calendar).snapshot(["ghost", "huron"], reference=at(10))

    assert [s.room_name for s in snapshot.statuses] == ["huron"]
    assert "ghost" in snapshot.failures


def test_authentication_failure_propagates(at):
    calendar = FakeCalendar(errors={"b": AuthenticationFailure("graph rejected credentials (401)")})

    with pytest.raises(AuthenticationFailure):
        _use_case(calendar).snapshot(["a", "b"], reference=at(10))


def test_timeout_returns_partial_result(at):
    release = threading.Event()
    calendar = FakeCalendar(blockers={"slow": release})

    try:
        snapshot = _use_case(calendar).snapshot(["fast", "slow"], reference=at(10), timeout=0.2)
    finally:
        release.set()

    assert [s.room_name for s in snapshot.statuses] == ["fast"]
    assert snapshot.failures == {"slow": "timeout"}


def test_default_window_runs_to_local_midnight(at):
    calendar = FakeCalendar()

    _use_case(calendar, event_limit=20).snapshot(["a"], reference=at(15))

    room, start, end, limit = calendar.calls[0]
    assert start == at(15)
    # 2024-01-16 00:00 in New York is 05:00 UTC.
    assert end == at(5, day=16)
    assert limit == 20


def test_empty_room_set(at):
    snapshot = _use_case(FakeCalendar()).snapshot([], reference=at(10))
    assert snapshot.statuses == []
    assert snapshot.failures == {}


def test_malformed_room_payload_is_a_partial_failure(at):
    calendar = FakeCalendar(errors={"b": MalformedEvent("calendarView value is not a list")})

    snapshot = _use_case(calendar).snapshot(["a", "b", "c"], reference=at(10))

    assert [s.room_name for s in snapshot.statuses] == ["a", "c"]
    assert snapshot.failures == {"b": "calendarView value is not a list"}


def test_unexpected_error_is_a_partial_failure(at):
    calendar = FakeCalendar(errors={"b": KeyError("organizer")})

    snapshot = _use_case(calendar).snapshot(["a", "b", "c"], reference=at(10))

    assert [s.room_name for s in snapshot.statuses] == ["a", "c"]
    assert "b" in snapshot.failures
    assert snapshot.failures["b"]


def _graph_backed(room_payloads: dict[str, httpx.Response]) -> GraphCalendar:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "login.example.test":
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        room = request.url.path.split("/")[3].split("@")[0]
        if room in room_payloads:
            return room_payloads[room]
        return httpx.Response(200, json={"value": []})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    tokens = GraphTokenProvider("tenant", "client", "secret", "https://login.example.test/{tenant}/token", client=client)
    return GraphCalendar(
        token_provider=tokens,
        base_url="https://graph.example.test/v1.0",
        mail_domain="example.com",
        client=client,
    )


@pytest.mark.parametrize(
    "bad_response",
    [
        httpx.Response(200, text="<html>proxy error</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"value": "oops"}),
    ],
)
def test_bad_graph_payload_for_one_room_keeps_the_others(at, bad_response):
    calendar = _graph_backed({"b": bad_response})

    snapshot = _use_case(calendar).snapshot(["a", "b", "c"], reference=at(10))

    assert [s.room_name for s in snapshot.statuses] == ["a", "c"]
    assert list(snapshot.failures) == ["b"]


def test_null_graph_item_does_not_fail_the_room(at):
    calendar = _graph_backed({"b": httpx.Response(200, json={"value": [None]})})

    snapshot = _use_case(calendar).snapshot(["a", "b", "c"], reference=at(10))

    assert [s.room_name for s in snapshot.statuses] == ["a", "b", "c"]
    assert snapshot.statuses[1].is_in_use is False
    assert snapshot.failures == {}
