"""Client configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_WEEK_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


class ClientConfig(BaseSettings):
    """Client configuration loaded from environment variables.

    Settings are loaded from CAMPUS_-prefixed environment variables with
    sensible defaults. For local development, create a .env file in the
    project root.
    """

    # Backend
    api_base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the campus reservation backend",
    )
    api_token: str = Field(
        default="",
        description="Bearer token issued by the auth layer (empty = anonymous)",
    )
    user_id: str = Field(
        default="",
        description="Current user id, used for timetable and export paths",
    )

    # Network behaviour
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied independently to every network attempt",
    )
    attempts_per_strategy: int = Field(
        default=1,
        ge=1,
        description="Attempts per fallback strategy for transient failures (1 = no retry)",
    )

    # Paths
    cache_dir: str = Field(
        default="data/cache",
        description="Directory for local cache snapshots",
    )

    # Timetable / export
    week_days: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WEEK_DAYS),
        description="Recognised weekday names, in display order",
    )
    uid_domain: str = Field(
        default="campusroom.edu",
        description="Domain part of generated calendar event UIDs",
    )
    calendar_prodid: str = Field(
        default="-//CampusRoom//Timetable//EN",
        description="PRODID line of generated calendars",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "CAMPUS_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: ClientConfig | None = None


def get_config() -> ClientConfig:
    """Get the client configuration singleton.

    Returns:
        ClientConfig: Client configuration instance
    """
    global _config
    if _config is None:
        _config = ClientConfig()
    return _config
