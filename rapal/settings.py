from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingAPIKeyError(RuntimeError):
    """Raised when the Gemini client is built without GEMINI_API_KEY."""


class Settings(BaseSettings):
    # Read from OS env and optional .env file in project root.
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Gemini credentials / model
    gemini_api_key: Optional[str] = Field(
        default=None,
        alias="GEMINI_API_KEY",
        description="API key for Google Gemini; the server refuses to start without it",
    )
    gemini_model: str = Field(
        "gemini-2.5-flash",
        alias="GEMINI_MODEL",
        description="Gemini model id used for every conversation",
    )

    # Generation parameters passed to every new conversation.
    temperature: float = Field(0.7, alias="MODEL_TEMPERATURE", ge=0.0, le=2.0)
    top_p: float = Field(0.95, alias="MODEL_TOP_P", ge=0.0, le=1.0)
    top_k: int = Field(40, alias="MODEL_TOP_K", ge=1)
    max_output_tokens: int = Field(2048, alias="MODEL_MAX_OUTPUT_TOKENS", ge=1)

    # HTTP server
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(4000, alias="PORT")
    frontend_url: str = Field(
        "*",
        alias="FRONTEND_URL",
        description="Allowed CORS origin(s), comma separated; '*' allows any origin",
    )
    static_dir: str = Field(
        "public",
        alias="STATIC_DIR",
        description="Directory served at '/' when it exists",
    )

    # Environment / mode
    environment: str = Field(
        "production",
        alias="APP_ENV",
        description="Runtime environment, e.g. development / production",
    )

    # Session lifecycle and limits
    default_session_id: str = Field("default", alias="DEFAULT_SESSION_ID")
    session_idle_timeout_seconds: float = Field(
        1800,
        alias="SESSION_IDLE_TIMEOUT_SECONDS",
        description="Sessions idle longer than this are evicted by the sweeper",
        gt=0,
    )
    session_sweep_interval_seconds: float = Field(
        1800,
        alias="SESSION_SWEEP_INTERVAL_SECONDS",
        description="How often the idle sweep runs",
        gt=0,
    )
    max_messages_per_session: int = Field(
        100,
        alias="MAX_MESSAGES_PER_SESSION",
        description="Messages accepted per session before further chats are refused",
        ge=1,
    )
    max_message_length: int = Field(5000, alias="MAX_MESSAGE_LENGTH", ge=1)

    # Logging
    log_level: str = Field(
        "INFO",
        alias="LOG_LEVEL",
        description="Application log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_timezone: Optional[str] = Field(
        default=None,
        alias="LOG_TIMEZONE",
        description="Timezone name for log timestamps, e.g. 'Asia/Jakarta'. Defaults to system local time.",
    )
    log_dir: str = Field("logs", alias="LOG_DIR")
    log_to_file: bool = Field(
        True,
        alias="LOG_TO_FILE",
        description="Disable on read-only filesystems such as serverless runtimes",
    )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    def get_cors_origins(self) -> List[str]:
        """
        Return allowed CORS origins from FRONTEND_URL.
        Whitespace is stripped and empty entries are ignored.
        """
        if not self.frontend_url or self.frontend_url.strip() == "*":
            return ["*"]
        return [
            item.strip()
            for item in self.frontend_url.split(",")
            if item.strip()
        ]

    def require_api_key(self) -> str:
        if not self.gemini_api_key:
            raise MissingAPIKeyError("GEMINI_API_KEY tidak ditemukan di environment atau file .env")
        return self.gemini_api_key


settings = Settings()  # Reads from environment if available
