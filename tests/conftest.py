from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.domain.entities.calendar_event import CalendarEvent


def _at(hour: int, minute: int = 0, day: int = 15) -> datetime:
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def at():
    """UTC instant on 2024-01-15 (a Monday) at the given time."""
    return _at


@pytest.fixture
def make_event():
    def _make(start: datetime, end: datetime, organizer: str = "Alice", subject: str = "Sync") -> CalendarEvent:
        return CalendarEvent(
            organizer_name=organizer,
            organizer_email=f"{organizer.lower()}@example.com",
            subject=subject,
            start=start,
            end=end,
        )

    return _make
