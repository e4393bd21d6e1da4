"""Environment-driven settings for the report intake core."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEZONE = "Asia/Tehran"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(name)
    return value if value not in (None, "") else default


def _env_bool(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class IntakeSettings:
    """Settings shared by the API client, the registry and the CLI."""

    api_url: str = DEFAULT_API_URL
    api_token: Optional[str] = None
    timeout_seconds: float = 60.0
    timezone: str = DEFAULT_TIMEZONE
    log_level: str = "INFO"
    log_json: bool = False
    catalog_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "IntakeSettings":
        """Build settings from ``REPORT_INTAKE_*`` environment variables."""
        return cls(
            api_url=_env("REPORT_INTAKE_API_URL", DEFAULT_API_URL),
            api_token=_env("REPORT_INTAKE_API_TOKEN"),
            timeout_seconds=float(_env("REPORT_INTAKE_TIMEOUT_SECONDS", "60")),
            timezone=_env("REPORT_INTAKE_TIMEZONE", DEFAULT_TIMEZONE),
            log_level=_env("REPORT_INTAKE_LOG_LEVEL", "INFO"),
            log_json=_env_bool("REPORT_INTAKE_LOG_JSON"),
            catalog_path=_env("REPORT_INTAKE_CATALOG_PATH"),
        )
