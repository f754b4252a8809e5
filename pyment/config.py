from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict


DEFAULT_ENVIRONMENT = "development"
DEFAULT_ENDPOINT = "http://0.0.0.0"
DEFAULT_PORT = "8080"


class Configuration(BaseModel):
    """Runtime settings, read once at process start."""

    model_config = ConfigDict(frozen=True)

    environment: str = DEFAULT_ENVIRONMENT
    endpoint: str = DEFAULT_ENDPOINT
    port: str = DEFAULT_PORT

    @property
    def address(self) -> str:
        # Plain join, no URL normalisation.
        return f"{self.endpoint}:{self.port}"


def get_env_or(key: str, default: str, environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    value = env.get(key, "")
    if value == "":
        return default
    return value


def load(environ: Optional[Mapping[str, str]] = None) -> Configuration:
    """Build a Configuration from APP_ENV, ENDPOINT and PORT.

    Unset or empty variables fall back to their defaults; nothing is validated.
    """
    return Configuration(
        environment=get_env_or("APP_ENV", DEFAULT_ENVIRONMENT, environ),
        endpoint=get_env_or("ENDPOINT", DEFAULT_ENDPOINT, environ),
        port=get_env_or("PORT", DEFAULT_PORT, environ),
    )
