from __future__ import annotations

from typing import Any
from zoneinfo import ZoneInfo

from app.application.utils.date_parser import format_clock
from app.domain.entities.calendar_event import EventSet
from app.domain.entities.room_status import RoomSnapshot, RoomStatus

SCHEDULE_COLOR = "#007fe0"
ACK_TEXT = "I'm on it! Give me a sec..."
UNKNOWN_COMMAND_TEXT = "I didn't understand that, could you try again?"


def text_message(text: str) -> dict[str, Any]:
    return {"text": text, "mrkdwn": True}


def status_attachment(status: RoomStatus, tz: ZoneInfo) -> dict[str, Any]:
    organizer = f" ({status.organizer_name})" if status.organizer_name else ""
    if status.is_in_use:
        until = format_clock(status.end_time, tz) if status.end_time else "EOD"
        color, text = "danger", f"Busy until {until}{organizer}"
    elif status.end_time is None:
        color, text = "good", "Open until EOD"
    else:
        color, text = "good", f"Open until {format_clock(status.end_time, tz)}{organizer}"
    return {
        "title": status.room_name.upper(),
        "color": color,
        "text": text,
        "mrkdwn_in": ["text"],
    }


def status_message(snapshot: RoomSnapshot, tz: ZoneInfo) -> dict[str, Any]:
    attachments = [status_attachment(s, tz) for s in snapshot.statuses]
    for room in snapshot.failures:
        attachments.append(
            {
                "title": room.upper(),
                "color": "warning",
                "text": "Status unavailable",
                "mrkdwn_in": ["text"],
            }
        )
    attachments.sort(key=lambda a: a["title"])
    return {"mrkdwn": True, "attachments": attachments}


def schedule_message(event_set: EventSet, header: str, empty_text: str, tz: ZoneInfo) -> dict[str, Any]:
    if not len(event_set):
        return text_message(empty_text)

    attachments = []
    for event in event_set:
        attachments.append(
            {
                "color": SCHEDULE_COLOR,
                "fields": [
                    {
                        "title": "Reserved",
                        "value": f"{format_clock(event.start, tz)} - {format_clock(event.end, tz)}",
                        "short": True,
                    },
                    {"title": "Organizer", "value": event.organizer_name, "short": True},
                ],
            }
        )
    return {"text": header, "mrkdwn": True, "attachments": attachments}
