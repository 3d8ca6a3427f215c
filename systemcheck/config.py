"""
Runtime configuration for systemcheck.

Settings come from environment variables, optionally seeded from a .env file.
They exist mostly so the tool (and its tests) can be pointed at a fake
cgroup or proc tree instead of the live one.
"""
import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

from systemcheck.constants import (
    DEFAULT_CGROUP_ROOT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PROC_ROOT,
    ENV_CGROUP_ROOT,
    ENV_LOG_LEVEL,
    ENV_PROC_ROOT,
)

# Load environment variables from .env file
load_dotenv()


def normalize_log_level(level: str) -> str:
    """
    Validate a log level name and return it upper-cased.

    Raises:
        ValueError: If the name is not a standard logging level
    """
    name = level.strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"Unknown log level: {level}")
    return name


@dataclass(frozen=True)
class Settings:
    cgroup_root: str = DEFAULT_CGROUP_ROOT
    proc_root: str = DEFAULT_PROC_ROOT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from SYSTEMCHECK_* environment variables.

        Returns:
            Settings with defaults for anything unset or empty

        Raises:
            ValueError: If SYSTEMCHECK_LOG_LEVEL is not a valid level name
        """
        return cls(
            cgroup_root=(os.getenv(ENV_CGROUP_ROOT) or DEFAULT_CGROUP_ROOT).rstrip("/") or "/",
            proc_root=(os.getenv(ENV_PROC_ROOT) or DEFAULT_PROC_ROOT).rstrip("/") or "/",
            log_level=normalize_log_level(os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL),
        )

    def with_log_level(self, log_level: Optional[str]) -> "Settings":
        if log_level is None:
            return self
        return replace(self, log_level=normalize_log_level(log_level))
