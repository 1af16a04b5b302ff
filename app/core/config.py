from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationError


CHATBOT_HELLO = "Hello! The chatbot service is running."
OPENAI_BETA_HEADER = "assistants=v2"

REQUIRED_FIELDS = (
    "openai_api_key",
    "openai_response_model",
    "openai_response_endpoint",
    "openai_thread_endpoint",
    "openai_assistant_id",
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    openai_api_key: str | None = Field(default=None)
    openai_response_model: str | None = Field(default=None)
    openai_response_endpoint: str | None = Field(default=None)
    openai_thread_endpoint: str | None = Field(default=None)
    openai_assistant_id: str | None = Field(default=None)
    run_max_seconds: float = Field(default=15.0, gt=0)
    run_interval_seconds: float = Field(default=1.0, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    host: str = Field(default="0.0.0.0")
    default_port: int = Field(default=5050)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def missing_fields(self) -> list[str]:
        """Names of required settings that are unset or blank."""

        return [name for name in REQUIRED_FIELDS if not (getattr(self, name) or "").strip()]

    def verify(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError([name.upper() for name in missing])


settings = Settings()
