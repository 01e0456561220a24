"""Encoder settings read from the environment (and a local .env file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .result import Err, Ok, Result

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class EncoderConfig:
    log_level: str = "WARNING"
    hide_uuids: bool = False
    """Normalize specification ids in rendered output."""

    print_desugared_specs: bool = False
    """Log every encoded record at INFO."""

    table_shards: int = 16

    @classmethod
    def from_env(cls) -> Result[EncoderConfig, Exception]:
        """Read ``CONTRACTIR_*`` variables, loading ``.env`` first."""
        load_dotenv()
        try:
            level = os.getenv("CONTRACTIR_LOG_LEVEL", cls.log_level).strip().upper()
            if not isinstance(logging.getLevelName(level), int):
                raise ValueError(f"CONTRACTIR_LOG_LEVEL: unknown level {level!r}")
            shards = int(os.getenv("CONTRACTIR_TABLE_SHARDS", str(cls.table_shards)))
            if shards < 1:
                raise ValueError("CONTRACTIR_TABLE_SHARDS must be at least 1")
            return Ok(
                cls(
                    log_level=level,
                    hide_uuids=_flag("CONTRACTIR_HIDE_UUIDS", cls.hide_uuids),
                    print_desugared_specs=_flag(
                        "CONTRACTIR_PRINT_DESUGARED_SPECS", cls.print_desugared_specs
                    ),
                    table_shards=shards,
                )
            )
        except ValueError as e:
            return Err(e)


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name}: expected a boolean, got {raw!r}")
