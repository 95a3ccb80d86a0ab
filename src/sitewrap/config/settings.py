"""
Environment settings loading helpers.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_CONFIG_FILENAME = "sitewrap.toml"


def _load_dotenv() -> None:
    """
    Load ``.env`` and then ``.env.<SITEWRAP_ENV>`` from the working directory.

    The environment-specific file wins over the shared one, and both win over
    variables already exported in the shell.
    """
    cwd = Path.cwd()
    shared_env = cwd / ".env"
    if shared_env.exists():
        load_dotenv(dotenv_path=shared_env, override=True)
    env_name = os.getenv("SITEWRAP_ENV")
    if env_name:
        scoped_env = cwd / f".env.{env_name}"
        if scoped_env.exists():
            load_dotenv(dotenv_path=scoped_env, override=True)


_load_dotenv()


class Settings(BaseModel):
    """
    Runtime settings read from environment variables.

    Attributes:
        env: Environment name selecting an extra ``.env.<name>`` file.
        log_level: Overrides the CLI ``--log-level`` option.
        config_path: Project file used when ``--config`` is omitted.
    """
    env: Optional[str] = Field(default=None, alias="SITEWRAP_ENV")
    log_level: Optional[str] = Field(default=None, alias="SITEWRAP_LOG_LEVEL")
    config_path: Path = Field(default=Path(DEFAULT_CONFIG_FILENAME), alias="SITEWRAP_CONFIG")

    model_config = {
        "populate_by_name": True,
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load settings from environment/.env exactly once.

    Returns:
        A Settings object populated from environment variables.
    """
    values = {
        field.alias: os.getenv(field.alias)
        for field in Settings.model_fields.values()
        if os.getenv(field.alias) is not None
    }
    return Settings(**values)
