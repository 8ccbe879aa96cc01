"""
resp-client Configuration Settings

This module contains the configuration constants for the client. Values
that make sense to change per deployment are read from the environment.
"""

import os
from dataclasses import dataclass
from typing import Optional


def _optional_float(name: str) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else None


@dataclass
class Settings:
    """Client configuration settings."""

    # Network settings (used by the CLI, the core never opens sockets)
    HOST: str = os.environ.get("RESP_CLIENT_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("RESP_CLIENT_PORT", "6379"))
    SOCKET_TIMEOUT: Optional[float] = _optional_float("RESP_CLIENT_TIMEOUT")

    # Connection settings
    READ_BUFFER_SIZE: int = 4096

    # Protocol settings
    MAX_BULK_LENGTH: int = 512 * 1024 * 1024  # proto-max-bulk-len on the server
    ENCODING: str = "utf-8"

    # Logging settings
    DEBUG: bool = os.environ.get("RESP_CLIENT_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("RESP_CLIENT_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
