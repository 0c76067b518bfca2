from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse

from app.api.schemas import (
    CalendarEventSchema,
    ReservationRequestSchema,
    ReservationResponseSchema,
    RoomStatusSchema,
    SnapshotResponseSchema,
)
from app.application.exceptions import CalendarProviderError, InvalidRoom, MalformedEvent
from app.application.use_cases.reserve_room import ReserveRoomUseCase
from app.application.use_cases.room_schedule import RoomScheduleUseCase
from app.application.use_cases.room_snapshot import RoomSnapshotUseCase
from app.application.utils.date_parser import parse_compact_datetime
from app.core.config import settings
from app.domain.entities.reservation import ReservationRequest, ReservationStatus
from app.wiring.dependencies import (
    get_reserve_use_case,
    get_schedule_use_case,
    get_snapshot_use_case,
    get_timezone,
)

logger = logging.getLogger(__name__)


def require_api_key(api_key: str | None = Header(None, alias="APIKey")) -> None:
    if not settings.API_KEY:
        if settings.ENV.lower() in {"dev", "local"}:
            return
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    if api_key != settings.API_KEY:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)


router = APIRouter(prefix="/api/calendars", dependencies=[Depends(require_api_key)])


def _parse_range(start: str, end: str) -> tuple[datetime, datetime]:
    tz = get_timezone()
    start_dt = parse_compact_datetime(start, tz)
    end_dt = parse_compact_datetime(end, tz)
    if start_dt is None or end_dt is None or start_dt > end_dt:
        raise HTTPException(status_code=400, detail="Expected yyyyMMddTHHmm with start <= end")
    return start_dt, end_dt


def _list_events(
    uc: RoomScheduleUseCase,
    room: str,
    start: datetime | None = None,
    end: datetime | None = None,
    require_known: bool = True,
) -> list[CalendarEventSchema]:
    try:
        event_set = uc.list_events(room, start, end, require_known=require_known)
    except InvalidRoom as e:
        logger.info("Unknown room requested", extra={"room": room, "reason": str(e)})
        raise HTTPException(status_code=404, detail=str(e))
    except (CalendarProviderError, MalformedEvent) as e:
        logger.warning("Room events unavailable", extra={"room": room, "error": str(e)})
        raise HTTPException(status_code=502, detail=str(e))
    return [CalendarEventSchema.from_event(e) for e in event_set]


@router.get("", response_model=list[str])
def list_rooms(uc: RoomScheduleUseCase = Depends(get_schedule_use_case)):
    return uc.list_rooms()


@router.get("/status", response_model=SnapshotResponseSchema)
def room_statuses(
    uc: RoomSnapshotUseCase = Depends(get_snapshot_use_case),
    schedule: RoomScheduleUseCase = Depends(get_schedule_use_case),
):
    try:
        snapshot = uc.snapshot(schedule.list_rooms())
    except CalendarProviderError as e:
        logger.error("Room status snapshot failed", extra={"error": str(e)})
        raise HTTPException(status_code=502, detail=str(e))
    return SnapshotResponseSchema(
        statuses=[RoomStatusSchema.from_status(s) for s in snapshot.statuses],
        failures=snapshot.failures,
    )


@router.post("/reserve", response_model=ReservationResponseSchema, status_code=201)
def reserve(
    req: ReservationRequestSchema,
    uc: ReserveRoomUseCase = Depends(get_reserve_use_case),
):
    tz = get_timezone()
    # Offset-less times are taken as room-local.
    start = req.start if req.start.tzinfo else req.start.replace(tzinfo=tz)
    end = req.end if req.end.tzinfo else req.end.replace(tzinfo=tz)
    try:
        request = ReservationRequest(room_name=req.room_name.lower(), requester_id=req.username, start=start, end=end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = uc.check_and_reserve(request)
    body = ReservationResponseSchema(
        status=result.status.value,
        reason=result.reason,
        event_id=result.event_id,
        conflicts=[CalendarEventSchema.from_event(e) for e in result.conflicts],
    )
    if result.status == ReservationStatus.accepted:
        return body
    code = 409 if result.status == ReservationStatus.conflict else 502
    logger.info(
        "Reservation not made",
        extra={"room": request.room_name, "requester": request.requester_id, "status": code, "reason": result.reason},
    )
    return JSONResponse(status_code=code, content=body.model_dump(mode="json"))


@router.get("/all/{room_name}", response_model=list[CalendarEventSchema])
def any_mailbox_events(room_name: str, uc: RoomScheduleUseCase = Depends(get_schedule_use_case)):
    return _list_events(uc, room_name, require_known=False)


@router.get("/all/{room_name}/{start}/{end}", response_model=list[CalendarEventSchema])
def any_mailbox_events_in_range(
    room_name: str,
    start: str,
    end: str,
    uc: RoomScheduleUseCase = Depends(get_schedule_use_case),
):
    start_dt, end_dt = _parse_range(start, end)
    return _list_events(uc, room_name, start_dt, end_dt, require_known=False)


@router.get("/{room_name}", response_model=list[CalendarEventSchema])
def room_events(room_name: str, uc: RoomScheduleUseCase = Depends(get_schedule_use_case)):
    return _list_events(uc, room_name)


@router.get("/{room_name}/{start}/{end}", response_model=list[CalendarEventSchema])
def room_events_in_range(
    room_name: str,
    start: str,
    end: str,
    uc: RoomScheduleUseCase = Depends(get_schedule_use_case),
):
    start_dt, end_dt = _parse_range(start, end)
    return _list_events(uc, room_name, start_dt, end_dt)
