"""Application configuration contract."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    anthropic_api_key: str = Field(alias="ANTHROPIC_API_KEY", default="")
    anthropic_base_url: str = Field(
        alias="ANTHROPIC_BASE_URL", default="https://api.anthropic.com/v1"
    )
    anthropic_version: str = Field(alias="ANTHROPIC_VERSION", default="2023-06-01")
    anthropic_timeout_seconds: int = Field(alias="ANTHROPIC_TIMEOUT_SECONDS", default=60)

    diagram_model: str = Field(alias="DIAGRAM_MODEL", default="claude-3-5-sonnet-20241022")
    diagram_max_tokens: int = Field(alias="DIAGRAM_MAX_TOKENS", default=1000)

    render_work_dir: str = Field(alias="RENDER_WORK_DIR", default="temp")
    render_url_prefix: str = Field(alias="RENDER_URL_PREFIX", default="/temp")
    render_command: str = Field(alias="RENDER_COMMAND", default="plantuml")
    render_format: str = Field(alias="RENDER_FORMAT", default="png")
    render_timeout_seconds: int = Field(alias="RENDER_TIMEOUT_SECONDS", default=60)
    render_verify_output: int = Field(alias="RENDER_VERIFY_OUTPUT", default=0)

    # Security: bind host defaults to loopback
    bind_host: str = Field(alias="BIND_HOST", default="127.0.0.1")
    bind_port: int = Field(alias="BIND_PORT", default=8080)

    # Rate limiting
    rate_limit_generations_per_minute: int = Field(
        alias="RATE_LIMIT_GENERATIONS_PER_MINUTE", default=30
    )


def validate_settings_for_env(settings: Settings) -> None:
    import logging as _logging
    import warnings

    _logger = _logging.getLogger(__name__)

    # Warn if binding to 0.0.0.0 in production
    if settings.app_env == "prod" and settings.bind_host == "0.0.0.0":
        msg = (
            "SECURITY WARNING: BIND_HOST=0.0.0.0 in production. "
            "This exposes the service to all network interfaces. "
            "Set BIND_HOST=127.0.0.1 and use a reverse proxy."
        )
        _logger.warning(msg)
        warnings.warn(msg, stacklevel=2)

    if settings.app_env != "prod":
        return

    missing: list[str] = []
    required_non_empty = {
        "ANTHROPIC_API_KEY": settings.anthropic_api_key,
        "ANTHROPIC_BASE_URL": settings.anthropic_base_url,
        "DIAGRAM_MODEL": settings.diagram_model,
        "RENDER_WORK_DIR": settings.render_work_dir,
        "RENDER_COMMAND": settings.render_command,
        "RENDER_FORMAT": settings.render_format,
    }
    for key, value in required_non_empty.items():
        if not value.strip():
            missing.append(key)

    positive = {
        "DIAGRAM_MAX_TOKENS": settings.diagram_max_tokens,
        "ANTHROPIC_TIMEOUT_SECONDS": settings.anthropic_timeout_seconds,
        "RENDER_TIMEOUT_SECONDS": settings.render_timeout_seconds,
    }
    for key, value in positive.items():
        if int(value) <= 0:
            missing.append(f"{key}(positive value required)")

    if missing:
        keys = ", ".join(sorted(set(missing)))
        raise ValueError(f"invalid production configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
