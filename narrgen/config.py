"""
Engine settings read from the environment.

    NARRGEN_LOG_LEVEL        Root log level (default WARNING)
    NARRGEN_LOG_JSON         "1"/"true" renders log events as JSON lines
    NARRGEN_ALLOW_CIRCULAR   Default for the CLI validator option (default true)

Library callers never read these implicitly; they pass ValidatorOptions and
call configure_logging themselves.
"""

from __future__ import annotations
from dataclasses import dataclass
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EngineSettings:
    log_level: str = "WARNING"
    log_json: bool = False
    allow_circular_references: bool = True

    @classmethod
    def from_env(cls) -> EngineSettings:
        return cls(
            log_level=os.getenv("NARRGEN_LOG_LEVEL", "WARNING").upper(),
            log_json=_env_bool("NARRGEN_LOG_JSON", False),
            allow_circular_references=_env_bool("NARRGEN_ALLOW_CIRCULAR", True),
        )
