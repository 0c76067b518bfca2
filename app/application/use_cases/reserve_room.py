from __future__ import annotations

import logging

from app.application.exceptions import AuthenticationFailure, CalendarProviderError, MalformedEvent
from app.application.ports.calendar import CalendarProviderPort
from app.application.utils.interval_reducer import conflicting_events
from app.domain.entities.calendar_event import EventSet
from app.domain.entities.reservation import ReservationRequest, ReservationResult


class ReserveRoomUseCase:
    """
    Book a room if nothing on its calendar overlaps the requested time.

    The read and the write are two separate provider calls. Graph offers no
    conditional create, so a booking made elsewhere between them still
    double-books the room.
    """

    def __init__(self, calendar: CalendarProviderPort, event_limit: int = 30) -> None:
        self._calendar = calendar
        self._event_limit = event_limit
        self._logger = logging.getLogger(__name__)

    def check_and_reserve(self, request: ReservationRequest) -> ReservationResult:
        try:
            events = self._calendar.fetch_events(request.room_name, request.start, request.end, self._event_limit)
        except (CalendarProviderError, MalformedEvent) as e:
            return self._failed(request, e)

        event_set = EventSet.build(request.room_name, request.start, request.end, events)
        conflicts = conflicting_events(event_set, request.start, request.end)
        if conflicts:
            self._logger.info(
                "Reservation conflict",
                extra={"room": request.room_name, "requester": request.requester_id, "event_count": len(conflicts)},
            )
            return ReservationResult.conflict(tuple(conflicts))

        try:
            event_id = self._calendar.create_event(
                request.room_name, request.requester_id, request.start, request.end
            )
        except CalendarProviderError as e:
            return self._failed(request, e)

        self._logger.info(
            "Reservation accepted",
            extra={"room": request.room_name, "requester": request.requester_id, "event_id": event_id},
        )
        return ReservationResult.accepted(event_id)

    def _failed(self, request: ReservationRequest, error: Exception) -> ReservationResult:
        log = self._logger.error if isinstance(error, AuthenticationFailure) else self._logger.warning
        log("Reservation failed", extra={"room": request.room_name, "reason": str(error)})
        return ReservationResult.failed(str(error) or type(error).__name__)
