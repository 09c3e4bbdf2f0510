"""
Runtime settings, read from environment variables.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_API_URL = "https://larek-api.nomoreparties.co/api/weblarek"
DEFAULT_CDN_URL = "https://larek-api.nomoreparties.co/content/weblarek"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    cdn_url: str = DEFAULT_CDN_URL
    timeout: float = 30.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not self.api_url.startswith(("http://", "https://")):
            raise ValueError(f"API URL must be http(s): {self.api_url!r}")
        if self.timeout <= 0:
            raise ValueError("Timeout must be > 0.")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level '{self.log_level}'.")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    raw_timeout = env.get("STOREFRONT_TIMEOUT", "30")
    try:
        timeout = float(raw_timeout)
    except ValueError:
        raise ValueError(f"STOREFRONT_TIMEOUT must be a number, got {raw_timeout!r}") from None

    return Settings(
        api_url=env.get("STOREFRONT_API_URL", DEFAULT_API_URL),
        cdn_url=env.get("STOREFRONT_CDN_URL", DEFAULT_CDN_URL),
        timeout=timeout,
        log_level=env.get("STOREFRONT_LOG_LEVEL", "WARNING").upper(),
    )
