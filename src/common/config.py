"""Configuration helpers for the drain simulation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from dotenv import dotenv_values


DEFAULT_ENVIRONMENT = "development"
DEFAULT_RETRY_POLICY = "halt"
DEFAULT_TRANSCRIPTS_DIR = "transcripts"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class Settings:
    """Container for environment-derived configuration for the simulator."""

    environment: str = DEFAULT_ENVIRONMENT
    max_iterations: Optional[int] = None
    retry_policy: str = DEFAULT_RETRY_POLICY
    transcripts_dir: Path = Path(DEFAULT_TRANSCRIPTS_DIR)
    scenario_path: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, *, env_files: Iterable[str] | None = None) -> "Settings":
        """Build settings from environment variables, optionally loading dotenv files."""

        env_overrides: dict[str, str] = {}
        if env_files:
            for candidate in env_files:
                candidate_path = os.path.abspath(candidate)
                if os.path.isfile(candidate_path):
                    values = {
                        key: value
                        for key, value in dotenv_values(candidate_path).items()
                        if value is not None
                    }
                    env_overrides.update(values)

        def get_override(key: str) -> str | None:
            if key in os.environ:
                return os.environ[key]
            return env_overrides.get(key)

        def lookup(key: str, default: str) -> str:
            value = get_override(key)
            return value if value is not None else default

        def lookup_optional(key: str) -> Optional[str]:
            value = get_override(key)
            if value is None:
                return None
            stripped = value.strip()
            return stripped or None

        def lookup_int(key: str) -> Optional[int]:
            value = lookup_optional(key)
            if value is None:
                return None
            try:
                return int(value)
            except ValueError:
                raise ValueError(f"{key} must be an integer, got {value!r}.") from None

        return cls(
            environment=lookup("DRAINSIM_ENV", DEFAULT_ENVIRONMENT),
            max_iterations=lookup_int("DRAINSIM_MAX_ITERATIONS"),
            retry_policy=lookup("DRAINSIM_RETRY_POLICY", DEFAULT_RETRY_POLICY).strip().lower(),
            transcripts_dir=Path(lookup("DRAINSIM_TRANSCRIPTS_DIR", DEFAULT_TRANSCRIPTS_DIR)),
            scenario_path=lookup_optional("DRAINSIM_SCENARIO"),
            log_level=lookup("DRAINSIM_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper(),
        )
