"""
Configuration management for the Messenger relay.

Loads environment variables from .env file and builds a single immutable
RelayConfig at startup. Nothing else in the project reads os.environ.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


DEFAULT_BASE_URL = "https://graph.facebook.com/v18.0"
DEFAULT_RESPONSE_TEXT_PREFIX = "▄︻デ══━一💥 :  "
DEFAULT_IMAGE_PLACEHOLDER_URL = "https://i.gifer.com/Ifph.gif"


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""
    pass


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigurationError(
            f"Missing required environment variable: {name}. "
            f"Set it in your .env or shell before running."
        )
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def _log_level_env(name: str, default: str) -> str:
    level = os.getenv(name, default).strip().upper() or default
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"{name} is not a logging level: {level!r}")
    return level


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class RelayConfig:
    """Relay configuration, constructed once per process."""

    # Send API
    base_url: str
    access_token: str

    # Inbound webhook
    verify_token: str
    app_secret: str

    # Reply policy
    response_text_prefix: str = DEFAULT_RESPONSE_TEXT_PREFIX
    image_placeholder_url: Optional[str] = DEFAULT_IMAGE_PLACEHOLDER_URL

    # Deadlines
    send_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 20.0

    # Server
    port: int = 8080
    log_level: str = "INFO"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """
        Load configuration from environment variables.

        Required:
        - ACCESS_TOKEN: page access token for the Send API
        - VERIFY_TOKEN: token echoed during the subscription handshake
        - FACEBOOK_APP_SECRET: HMAC key for X-Hub-Signature

        IMAGE_PLACEHOLDER_URL set to an empty string forwards the sender's
        own image URL instead of the placeholder.

        Raises:
            ConfigurationError: Required value missing or malformed
        """
        placeholder = os.getenv("IMAGE_PLACEHOLDER_URL", DEFAULT_IMAGE_PLACEHOLDER_URL).strip()

        return cls(
            base_url=os.getenv("GRAPHQL_URL", DEFAULT_BASE_URL).strip().rstrip("/"),
            access_token=_require_env("ACCESS_TOKEN"),
            verify_token=_require_env("VERIFY_TOKEN"),
            app_secret=_require_env("FACEBOOK_APP_SECRET"),
            response_text_prefix=os.getenv("RESPONSE_TEXT_PREFIX", DEFAULT_RESPONSE_TEXT_PREFIX),
            image_placeholder_url=placeholder or None,
            send_timeout_seconds=_float_env("SEND_TIMEOUT_SECONDS", 10.0),
            request_timeout_seconds=_float_env("REQUEST_TIMEOUT_SECONDS", 20.0),
            port=_int_env("PORT", 8080),
            log_level=_log_level_env("LOG_LEVEL", "INFO"),
            environment=os.getenv("ENVIRONMENT", "development"),
        )

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/me/messages"

    def summary(self) -> dict:
        """Non-sensitive settings, safe to log."""
        return {
            "base_url": self.base_url,
            "image_placeholder_url": self.image_placeholder_url,
            "send_timeout_seconds": self.send_timeout_seconds,
            "request_timeout_seconds": self.request_timeout_seconds,
            "port": self.port,
            "environment": self.environment,
        }
