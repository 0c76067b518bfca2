from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class OccupiedSpan:
    start: datetime
    end: datetime
    last_organizer: str


@dataclass(frozen=True)
class RoomStatus:
    room_name: str
    is_in_use: bool
    end_time: datetime | None = None  # None: free for the rest of the window
    organizer_name: str | None = None


@dataclass(frozen=True)
class RoomSnapshot:
    statuses: list[RoomStatus] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)
