from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Iterable
from zoneinfo import ZoneInfo

from app.application.exceptions import CalendarProviderError, AuthenticationFailure, MalformedEvent
from app.application.ports.calendar import CalendarProviderPort
from app.application.utils.availability import resolve_room_status
from app.application.utils.date_parser import end_of_local_day
from app.domain.entities.calendar_event import EventSet, to_utc
from app.domain.entities.room_status import RoomSnapshot, RoomStatus


class RoomSnapshotUseCase:
    """
    Point-in-time availability across a set of rooms.

    One fetch per room runs on a thread pool; each room's events are resolved
    independently and collected under a lock. The report is best-effort:
    rooms whose fetch or resolution fails for any reason, or is still in flight
    at the timeout, are listed in ``failures`` and left out of ``statuses``.
    AuthenticationFailure is raised instead, since no room can succeed without
    new credentials.
    """

    def __init__(
        self,
        calendar: CalendarProviderPort,
        timezone: ZoneInfo,
        max_workers: int = 8,
        timeout_seconds: float = 15.0,
        event_limit: int = 20,
    ) -> None:
        self._calendar = calendar
        self._timezone = timezone
        self._max_workers = max_workers
        self._timeout_seconds = timeout_seconds
        self._event_limit = event_limit
        self._logger = logging.getLogger(__name__)

    def snapshot(
        self,
        rooms: Iterable[str],
        window_start: datetime | None = None,
        window_end: datetime | None = None,
        reference: datetime | None = None,
        timeout: float | None = None,
    ) -> RoomSnapshot:
        reference = to_utc(reference) if reference else datetime.now(timezone.utc)
        window_start = to_utc(window_start) if window_start else reference
        window_end = to_utc(window_end) if window_end else end_of_local_day(reference, self._timezone)
        timeout = self._timeout_seconds if timeout is None else timeout

        room_names = sorted(set(rooms))
        if not room_names:
            return RoomSnapshot()

        results: dict[str, RoomStatus] = {}
        failures: dict[str, str] = {}
        lock = threading.Lock()

        def fetch_and_resolve(room: str) -> None:
            try:
                events = self._calendar.fetch_events(room, window_start, window_end, self._event_limit)
            except AuthenticationFailure:
                raise
            except (CalendarProviderError, MalformedEvent) as e:
                self._logger.warning("Room fetch failed", extra={"room": room, "error": str(e)})
                with lock:
                    failures[room] = str(e) or type(e).__name__
                return
            event_set = EventSet.build(room, window_start, window_end, events)
            status = resolve_room_status(room, event_set, reference)
            with lock:
                results[room] = status

        executor = ThreadPoolExecutor(max_workers=max(1, min(self._max_workers, len(room_names))))
        try:
            futures = {executor.submit(fetch_and_resolve, room): room for room in room_names}
            done, pending = wait(futures, timeout=timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        auth_error: AuthenticationFailure | None = None
        for future in done:
            error = future.exception()
            if error is None:
                continue
            if isinstance(error, AuthenticationFailure):
                auth_error = error
                continue
            room = futures[future]
            self._logger.error(
                "Room status failed",
                exc_info=error,
                extra={"room": room, "error": type(error).__name__},
            )
            with lock:
                results.pop(room, None)
                failures[room] = str(error) or type(error).__name__

        if auth_error is not None:
            self._logger.error("Snapshot aborted", extra={"reason": "authentication failure"})
            raise auth_error

        timed_out = {futures[f] for f in pending}
        with lock:
            for room in timed_out:
                results.pop(room, None)
                failures[room] = "timeout"
            statuses = [results[room] for room in room_names if room in results]
            failure_report = {room: failures[room] for room in sorted(failures)}

        if failure_report:
            self._logger.warning(
                "Partial snapshot",
                extra={"status": f"{len(statuses)}/{len(room_names)}", "reason": ",".join(failure_report)},
            )
        return RoomSnapshot(statuses=statuses, failures=failure_report)
