"""
Settings - Configuration for the linux-sim API.

Class-level defaults, overridden by environment variables, overridden by
explicit keyword arguments.

Environment Variables:
    LINUX_SIM_LOG_LEVEL - Root log level (DEBUG, INFO, WARNING, ...)
    LINUX_SIM_MAX_SESSIONS - Max concurrent filesystem sessions
    LINUX_SIM_CORS_ORIGINS - Comma-separated list of allowed browser origins
"""

import os
from typing import Any


class Settings:
    """Configuration for the linux-sim API."""

    log_level: str = "INFO"
    """Root log level"""

    max_sessions: int = 100
    """Max filesystem sessions held in memory at once"""

    cors_origins: list[str] = ["*"]
    """Origins allowed to call the API from a browser"""

    def __init__(self, **kwargs: Any) -> None:
        self.cors_origins = list(self.cors_origins)
        self._load_from_env()

        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        if level := os.getenv("LINUX_SIM_LOG_LEVEL"):
            self.log_level = level.upper()
        if max_sessions := os.getenv("LINUX_SIM_MAX_SESSIONS"):
            self.max_sessions = int(max_sessions)
        if origins := os.getenv("LINUX_SIM_CORS_ORIGINS"):
            self.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]


settings = Settings()
