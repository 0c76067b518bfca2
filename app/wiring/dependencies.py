from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.application.ports.calendar import CalendarProviderPort
from app.application.ports.message_platform import MessagePlatformPort
from app.application.use_cases.handle_slash_command import HandleSlashCommandUseCase
from app.application.use_cases.reserve_room import ReserveRoomUseCase
from app.application.use_cases.room_schedule import RoomScheduleUseCase
from app.application.use_cases.room_snapshot import RoomSnapshotUseCase
from app.infrastructure.calendar.graph_auth import GraphTokenProvider
from app.infrastructure.calendar.graph_calendar import GraphCalendar
from app.infrastructure.calendar.mock_calendar import MockCalendar
from app.infrastructure.slack.mock_platform import MockSlackPlatform
from app.infrastructure.slack.slack_client import SlackClient
from app.infrastructure.slack.slack_platform import SlackPlatform


def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.ROOM_TIMEZONE)


@lru_cache
def get_calendar() -> CalendarProviderPort:
    logger = logging.getLogger(__name__)
    if not settings.graph_configured or settings.ENV.lower() in {"dev", "local"}:
        logger.info("Using MockCalendar (Graph credentials missing or ENV=dev/local)")
        return MockCalendar(rooms=settings.room_list or None)

    logger.info("Using GraphCalendar")
    tokens = GraphTokenProvider(
        tenant_id=settings.GRAPH_TENANT_ID,
        client_id=settings.GRAPH_CLIENT_ID,
        client_secret=settings.GRAPH_CLIENT_SECRET,
        token_url=settings.GRAPH_TOKEN_URL,
    )
    return GraphCalendar(token_provider=tokens)


@lru_cache
def get_message_platform() -> MessagePlatformPort:
    if settings.ENV.lower() in {"dev", "local"}:
        return MockSlackPlatform()
    return SlackPlatform(client=SlackClient())


def get_snapshot_use_case() -> RoomSnapshotUseCase:
    return RoomSnapshotUseCase(
        calendar=get_calendar(),
        timezone=get_timezone(),
        max_workers=settings.SNAPSHOT_MAX_WORKERS,
        timeout_seconds=settings.SNAPSHOT_TIMEOUT_SECONDS,
        event_limit=settings.SNAPSHOT_EVENT_LIMIT,
    )


def get_schedule_use_case() -> RoomScheduleUseCase:
    return RoomScheduleUseCase(
        calendar=get_calendar(),
        rooms=settings.room_list,
        timezone=get_timezone(),
        event_limit=settings.SCHEDULE_EVENT_LIMIT,
    )


def get_reserve_use_case() -> ReserveRoomUseCase:
    return ReserveRoomUseCase(calendar=get_calendar(), event_limit=settings.SCHEDULE_EVENT_LIMIT)


def get_slash_command_use_case() -> HandleSlashCommandUseCase:
    return HandleSlashCommandUseCase(
        snapshot=get_snapshot_use_case(),
        schedule=get_schedule_use_case(),
        platform=get_message_platform(),
        timezone=get_timezone(),
    )
