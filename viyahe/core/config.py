from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DATA_DIR: str = "./data"
    DRAFTS_FILE_NAME: str = "draft_bookings.json"
    BOOKINGS_FILE_NAME: str = "submitted_bookings.json"

    # "json", "memory" or "http"; empty means pick by ENV
    BOOKING_BACKEND: str = ""
    BOOKINGS_API_URL: str | None = None
    BOOKINGS_API_TIMEOUT: float = 10.0

    DEFAULT_MARKUP_PERCENT: float = 10.0

    POLL_INTERVAL_SECONDS: float = 5.0

    AGENT_ID: str = "agent-001"
    ORGANIZATION_ID: str = "org-001"
    USER_ID: str = "user-001"


settings = Settings()
