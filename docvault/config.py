"""Configuration loading for docvault."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()


class ConfigError(ValueError):
    """Raised for setup problems that must stop a run before any work is queued."""


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    integration_key: str = os.getenv("DOCUSIGN_INTEGRATION_KEY", "")
    user_id: str = os.getenv("DOCUSIGN_USER_ID", "")
    account_id: str = os.getenv("DOCUSIGN_ACCOUNT_ID", "")
    base_path: str = os.getenv("DOCUSIGN_BASE_PATH", "https://demo.docusign.net/restapi")
    private_key_path: str = os.getenv("DOCUSIGN_RSA_PRIVATE_KEY_PATH", "./private.key")
    access_token: str = os.getenv("DOCUSIGN_ACCESS_TOKEN", "")

    download_folder: str = os.getenv("DOWNLOAD_FOLDER", "./downloads")
    max_concurrent_downloads: int = _env_int("MAX_CONCURRENT_DOWNLOADS", 5)
    language: str = os.getenv("LANGUAGE", "pt_BR")

    requests_per_minute: int = _env_int("RATE_LIMIT_REQUESTS_PER_MINUTE", 300)
    request_spacing_ms: int = _env_int("RATE_LIMIT_DELAY_MS", 200)
    request_timeout: float = _env_float("REQUEST_TIMEOUT_SECONDS", 30.0)
    unit_pause: float = _env_float("UNIT_PAUSE_SECONDS", 1.0)

    @property
    def request_spacing(self) -> float:
        return self.request_spacing_ms / 1000.0

    def uses_static_token(self) -> bool:
        return bool(self.access_token)

    def missing_credentials(self) -> List[str]:
        required = {"DOCUSIGN_ACCOUNT_ID": self.account_id}
        if not self.uses_static_token():
            required["DOCUSIGN_INTEGRATION_KEY"] = self.integration_key
            required["DOCUSIGN_USER_ID"] = self.user_id
        return sorted(name for name, value in required.items() if not value.strip())

    def validate(self) -> None:
        missing = self.missing_credentials()
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
        if self.requests_per_minute <= 0:
            raise ConfigError("RATE_LIMIT_REQUESTS_PER_MINUTE must be positive; a zero ceiling would stall forever.")
        if self.max_concurrent_downloads < 1:
            raise ConfigError("MAX_CONCURRENT_DOWNLOADS must be at least 1.")
        if self.request_spacing_ms < 0:
            raise ConfigError("RATE_LIMIT_DELAY_MS cannot be negative.")
        if self.unit_pause < 0:
            raise ConfigError("UNIT_PAUSE_SECONDS cannot be negative.")
        if self.request_timeout <= 0:
            raise ConfigError("REQUEST_TIMEOUT_SECONDS must be positive.")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
