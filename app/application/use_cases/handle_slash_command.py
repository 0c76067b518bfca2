from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from app.application.exceptions import CalendarProviderError, MalformedEvent
from app.application.ports.message_platform import MessagePlatformPort
from app.application.use_cases.room_schedule import RoomScheduleUseCase
from app.application.use_cases.room_snapshot import RoomSnapshotUseCase
from app.application.utils.date_parser import resolve_weekday
from app.application.utils.slack_messages import (
    UNKNOWN_COMMAND_TEXT,
    schedule_message,
    status_message,
    text_message,
)


class HandleSlashCommandUseCase:
    """
    Answers the room slash command.

    ``status`` reports every room, ``<room>`` lists the rest of today and
    ``<room> <weekday>`` lists the next such day. The reply is posted to the
    command's ``response_url``.
    """

    def __init__(
        self,
        snapshot: RoomSnapshotUseCase,
        schedule: RoomScheduleUseCase,
        platform: MessagePlatformPort,
        timezone: ZoneInfo,
        event_limit: int = 10,
    ) -> None:
        self._snapshot = snapshot
        self._schedule = schedule
        self._platform = platform
        self._timezone = timezone
        self._event_limit = event_limit
        self._logger = logging.getLogger(__name__)

    def respond(self, text: str, response_url: str, now: datetime | None = None) -> None:
        now = now or datetime.now(timezone.utc)
        try:
            message = self.build_reply(text, now)
        except (CalendarProviderError, MalformedEvent) as e:
            self._logger.error("Slash command failed", extra={"reason": str(e), "text": text})
            message = text_message("Sorry, I couldn't reach the room calendars right now.")
        self._platform.send_reply(response_url, message)

    def build_reply(self, text: str, now: datetime) -> dict[str, Any]:
        args = (text or "").split()
        if len(args) == 1:
            if args[0].lower() == "status":
                snapshot = self._snapshot.snapshot(self._schedule.list_rooms(), reference=now)
                return status_message(snapshot, self._timezone)
            return self._room_schedule(args[0].lower(), None, now)
        if len(args) == 2:
            return self._room_schedule(args[0].lower(), args[1], now)
        return text_message(UNKNOWN_COMMAND_TEXT)

    def _room_schedule(self, room: str, day: str | None, now: datetime) -> dict[str, Any]:
        local_now = now.astimezone(self._timezone)
        today = local_now.date()
        day = day or local_now.strftime("%A")

        target = resolve_weekday(day, today)
        if target is None or not self._schedule.is_known(room):
            return text_message(f"Could not find a schedule for *{room}* on *{day}*")

        if target == today:
            header = f"Here's *{room}'s* schedule for the rest of today:"
            empty = f"There's nothing on *{room}'s* schedule today."
            event_set = self._schedule.list_day(room, target, from_time=now, limit=self._event_limit)
        else:
            label = f"{target.strftime('%A')} ({target.month}/{target.day})"
            header = f"Here's *{room}'s* schedule for this coming *{label}*:"
            empty = f"There's nothing on *{room}'s* schedule for this coming *{label}*."
            event_set = self._schedule.list_day(room, target, limit=self._event_limit)

        return schedule_message(event_set, header, empty, self._timezone)
