"""
Runtime configuration.

Read once at startup from environment variables:

    CLIPQUEUE_DATA_DIR    settings/history directory   (default ~/.clipqueue)
    CLIPQUEUE_HOST        HTTP bind host               (default 127.0.0.1)
    CLIPQUEUE_PORT        HTTP port                    (default 8085)
    CLIPQUEUE_LOG_LEVEL   logging level name           (default INFO)
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8085
DEFAULT_LOG_LEVEL = "INFO"


def default_data_dir() -> Path:
    return Path.home() / ".clipqueue"


class RuntimeConfig(BaseModel):
    """Process-level configuration for the clipqueue service."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    data_dir: Path = Field(default_factory=default_data_dir)
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    log_level: str = DEFAULT_LOG_LEVEL

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RuntimeConfig":
        """
        Build configuration from environment variables.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        data_dir = env.get("CLIPQUEUE_DATA_DIR")
        return cls(
            data_dir=Path(data_dir).expanduser() if data_dir else default_data_dir(),
            host=env.get("CLIPQUEUE_HOST", DEFAULT_HOST),
            port=env.get("CLIPQUEUE_PORT", DEFAULT_PORT),
            log_level=env.get("CLIPQUEUE_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
