from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from app.domain.entities.calendar_event import CalendarEvent
from app.domain.entities.room_status import RoomStatus


class CalendarEventSchema(BaseModel):
    organizer_name: str
    organizer_email: str
    subject: str
    start: datetime
    end: datetime
    recurring: bool = False
    show_as: str | None = None

    @staticmethod
    def from_event(event: CalendarEvent) -> "CalendarEventSchema":
        return CalendarEventSchema(
            organizer_name=event.organizer_name,
            organizer_email=event.organizer_email,
            subject=event.subject,
            start=event.start,
            end=event.end,
            recurring=event.recurring,
            show_as=event.show_as.value if event.show_as else None,
        )


class RoomStatusSchema(BaseModel):
    room_name: str
    is_in_use: bool
    end_time: datetime | None = None
    organizer_name: str | None = None

    @staticmethod
    def from_status(status: RoomStatus) -> "RoomStatusSchema":
        return RoomStatusSchema(
            room_name=status.room_name,
            is_in_use=status.is_in_use,
            end_time=status.end_time,
            organizer_name=status.organizer_name,
        )


class SnapshotResponseSchema(BaseModel):
    statuses: list[RoomStatusSchema]
    failures: dict[str, str] = Field(default_factory=dict)


class ReservationRequestSchema(BaseModel):
    room_name: str = Field(min_length=1)
    username: str = Field(min_length=1)
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_window(self) -> "ReservationRequestSchema":
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise ValueError("start and end must both carry a UTC offset or neither")
        if self.start >= self.end:
            raise ValueError("start must be before end")
        return self


class ReservationResponseSchema(BaseModel):
    status: str
    reason: str | None = None
    event_id: str | None = None
    conflicts: list[CalendarEventSchema] = Field(default_factory=list)
