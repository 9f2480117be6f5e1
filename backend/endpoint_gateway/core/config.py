from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Endpoint Gateway"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: HttpUrl | None = None

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Endpoints feature: JSON file with a top-level "endpoints" section.
    # Unset means the feature is disabled.
    ENDPOINTS_CONFIG_FILE: str | None = None
    ENDPOINTS_MAX_BODY_BYTES: int = 1024 * 1024

    # Outbound callback POST (async endpoints)
    CALLBACK_TIMEOUT_SECONDS: float = 30.0

    # External agent-turn runner
    AGENT_RUNNER_URL: HttpUrl | None = None
    AGENT_RUNNER_TOKEN: str | None = None
    AGENT_RUNNER_TIMEOUT_SECONDS: float | None = None
    MAIN_SESSION_KEY: str = "main"


settings = Settings()  # type: ignore
