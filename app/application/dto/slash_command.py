from __future__ import annotations

from urllib.parse import parse_qs

from pydantic import BaseModel


class SlashCommandDTO(BaseModel):
    token: str | None = None
    team_id: str | None = None
    team_domain: str | None = None
    channel_id: str | None = None
    channel_name: str | None = None
    user_id: str | None = None
    user_name: str | None = None
    command: str | None = None
    text: str = ""
    response_url: str | None = None

    @classmethod
    def from_form(cls, body: bytes) -> "SlashCommandDTO":
        """Parse Slack's form-encoded slash command payload."""
        fields = parse_qs(body.decode("utf-8"), keep_blank_values=True)
        return cls.model_validate({key: values[0] for key, values in fields.items() if values})
