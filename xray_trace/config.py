"""Server settings read from environment variables."""

import os
from dataclasses import dataclass

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _env(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    return val if val not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    v = os.getenv(name)
    if not v:
        return default
    items = tuple(item.strip() for item in v.split(",") if item.strip())
    return items or default


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    v = (os.getenv(name) or "").strip().upper()
    return v if v in choices else default


@dataclass(frozen=True)
class Settings:
    """Settings for ``xray-trace serve``; command-line flags take precedence."""

    host: str = "127.0.0.1"
    port: int = 3001
    service_name: str | None = None  # becomes the "service" default metadata key
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @staticmethod
    def load() -> "Settings":
        return Settings(
            host=_env("XRAY_HOST", "127.0.0.1") or "127.0.0.1",
            port=_env_int("XRAY_PORT", 3001),
            service_name=_env("XRAY_SERVICE_NAME"),
            cors_origins=_env_list("XRAY_CORS_ORIGINS", ("*",)),
            log_level=_env_choice("XRAY_LOG_LEVEL", LOG_LEVELS, "INFO"),
        )
