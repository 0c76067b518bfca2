from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

logger = logging.getLogger(__name__)


class ShowAs(str, Enum):
    free = "free"
    tentative = "tentative"
    busy = "busy"
    oof = "oof"
    working_elsewhere = "workingElsewhere"
    unknown = "unknown"

    @staticmethod
    def parse(value: str | None) -> "ShowAs | None":
        if value is None:
            return None
        for member in ShowAs:
            if member.value.lower() == str(value).strip().lower():
                return member
        return ShowAs.unknown


def to_utc(value: datetime) -> datetime:
    """Normalise an aware datetime to UTC. Naive values are rejected."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("naive datetime; calendar instants must be timezone-aware")
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CalendarEvent:
    organizer_name: str
    organizer_email: str
    subject: str
    start: datetime
    end: datetime
    recurring: bool = False
    show_as: ShowAs | None = None

    @property
    def is_well_formed(self) -> bool:
        return self.start <= self.end


@dataclass(frozen=True)
class EventSet:
    """Events governing one room's calendar within one query window.

    Events are kept sorted by start (stable, so ties keep provider order).
    Events with ``start > end`` are dropped at construction and logged.
    Events outside the window are tolerated; the reducer does not rely on
    provider-side filtering.
    """

    room_id: str
    window_start: datetime
    window_end: datetime
    events: tuple[CalendarEvent, ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        room_id: str,
        window_start: datetime,
        window_end: datetime,
        events: Iterable[CalendarEvent],
    ) -> "EventSet":
        kept: list[CalendarEvent] = []
        for event in events:
            if not event.is_well_formed:
                logger.warning(
                    "Malformed event excluded",
                    extra={"room": room_id, "reason": "start after end", "subject": event.subject},
                )
                continue
            kept.append(event)
        kept.sort(key=lambda e: e.start)
        return cls(
            room_id=room_id,
            window_start=to_utc(window_start),
            window_end=to_utc(window_end),
            events=tuple(kept),
        )

    def __iter__(self):
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)
