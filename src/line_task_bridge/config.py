"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    environment: str = "development"
    debug: bool = False
    service_name: str = "line-task-bridge"

    # CORS
    cors_origins: list[str] = ["*"]

    # LINE Messaging API
    line_channel_secret: str = ""
    line_channel_access_token: str = ""
    line_api_base_url: str = "https://api.line.me"

    # Focalboard
    focalboard_api_url: str = ""  # e.g. http://localhost:8000/api/v2
    focalboard_token: str = ""
    focalboard_team_id: str = "0"
    focalboard_default_board_id: str = ""
    focalboard_timeout: float = 10.0

    # Replies
    reply_locale: str = "zh-TW"

    # Unsigned /webhook/test endpoint for local debugging
    enable_test_webhook: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
