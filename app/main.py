import logging

from fastapi import FastAPI

from app.api.calendars import router as calendars_router
from app.api.slack import router as slack_router
from app.core.config import settings

CONTEXT_KEYS = (
    "room",
    "requester",
    "status",
    "event_count",
    "event_id",
    "subject",
    "start",
    "end",
    "text",
    "response_url",
    "attachment_count",
    "expires_in",
    "reason",
    "error",
)


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Squattr Room Availability", version="1.0.0")

app.include_router(calendars_router, tags=["calendars"])
app.include_router(slack_router, tags=["slack"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
