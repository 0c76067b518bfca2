from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Request, Response
from fastapi.responses import JSONResponse

from app.application.dto.slash_command import SlashCommandDTO
from app.application.utils.slack_messages import ACK_TEXT, text_message
from app.core.config import settings
from app.infrastructure.slack.request_verify import verify_slack_request
from app.wiring.dependencies import get_slash_command_use_case


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/slack/commands")
async def slash_command(
    request: Request,
    background_tasks: BackgroundTasks,
) -> Response:
    body = await request.body()

    try:
        command = SlashCommandDTO.from_form(body)
    except ValueError:
        logger.exception("Failed to parse slash command body")
        return Response(status_code=400)

    verified = verify_slack_request(
        body,
        token=command.token,
        timestamp=request.headers.get("X-Slack-Request-Timestamp"),
        signature_header=request.headers.get("X-Slack-Signature"),
        expected_token=settings.SLACK_SLASH_TOKEN,
        signing_secret=settings.SLACK_SIGNING_SECRET,
        env=settings.ENV,
    )
    if not verified:
        return Response(status_code=403)

    if not command.response_url:
        return Response(status_code=400)

    try:
        use_case = get_slash_command_use_case()
    except Exception as e:
        logger.exception("Failed to initialize use case", extra={"error": str(e)})
        return Response(status_code=500)

    logger.info("Slash command received", extra={"text": command.text, "requester": command.user_name})
    background_tasks.add_task(use_case.respond, command.text, command.response_url)
    return JSONResponse(text_message(ACK_TEXT))
