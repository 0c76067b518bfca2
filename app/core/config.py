from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    ROOMS: str = ""
    ROOM_TIMEZONE: str = "America/New_York"

    API_KEY: str | None = None

    GRAPH_TENANT_ID: str | None = None
    GRAPH_CLIENT_ID: str | None = None
    GRAPH_CLIENT_SECRET: str | None = None
    GRAPH_BASE_URL: str = "https://graph.microsoft.com/v1.0"
    GRAPH_TOKEN_URL: str = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
    GRAPH_MAIL_DOMAIN: str = "example.com"
    GRAPH_TIMEOUT_SECONDS: float = 10.0

    SLACK_SLASH_TOKEN: str | None = None
    SLACK_SIGNING_SECRET: str | None = None

    SNAPSHOT_TIMEOUT_SECONDS: float = 15.0
    SNAPSHOT_MAX_WORKERS: int = 8
    SNAPSHOT_EVENT_LIMIT: int = 20
    SCHEDULE_EVENT_LIMIT: int = 30

    RESERVATION_SUBJECT: str = "Squattr Meeting Reservation"

    @property
    def room_list(self) -> list[str]:
        return [r.strip().lower() for r in self.ROOMS.split(",") if r.strip()]

    @property
    def graph_configured(self) -> bool:
        return bool(self.GRAPH_TENANT_ID and self.GRAPH_CLIENT_ID and self.GRAPH_CLIENT_SECRET)


settings = Settings()
