from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from app.domain.entities.calendar_event import CalendarEvent, to_utc


@dataclass(frozen=True)
class ReservationRequest:
    room_name: str
    requester_id: str
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", to_utc(self.start))
        object.__setattr__(self, "end", to_utc(self.end))
        if not self.start < self.end:
            raise ValueError("reservation start must be before end")

    def overlaps(self, event: CalendarEvent) -> bool:
        """Half-open overlap; touching endpoints do not overlap."""
        return self.start < event.end and self.end > event.start


class ReservationStatus(str, Enum):
    accepted = "accepted"
    conflict = "conflict"
    failed = "failed"


@dataclass(frozen=True)
class ReservationResult:
    status: ReservationStatus
    reason: str | None = None
    conflicts: tuple[CalendarEvent, ...] = ()
    event_id: str | None = None

    @staticmethod
    def accepted(event_id: str | None = None) -> "ReservationResult":
        return ReservationResult(status=ReservationStatus.accepted, event_id=event_id)

    @staticmethod
    def conflict(conflicts: tuple[CalendarEvent, ...]) -> "ReservationResult":
        return ReservationResult(
            status=ReservationStatus.conflict,
            reason="room is already booked during the requested time",
            conflicts=conflicts,
        )

    @staticmethod
    def failed(reason: str) -> "ReservationResult":
        return ReservationResult(status=ReservationStatus.failed, reason=reason)
