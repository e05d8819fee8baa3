import logging
import os
from dataclasses import dataclass

from .integrations import DEFAULT_DISABLED_INTEGRATIONS

LOG_FORMATS = ("json", "text")


@dataclass(frozen=True)
class Config:
    disabled_by_default: tuple[str, ...] = DEFAULT_DISABLED_INTEGRATIONS
    log_format: str = "json"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {self.log_format!r}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"log_level is not a logging level: {self.log_level!r}")

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls) -> "Config":
        raw_disabled = os.environ.get("FACADE_DISABLED_INTEGRATIONS")
        if raw_disabled is None:
            disabled_by_default = DEFAULT_DISABLED_INTEGRATIONS
        else:
            disabled_by_default = tuple(
                name.strip() for name in raw_disabled.split(",") if name.strip()
            )

        log_format = os.environ.get("FACADE_LOG_FORMAT", "json").strip().lower()
        if log_format not in LOG_FORMATS:
            raise RuntimeError(f"FACADE_LOG_FORMAT must be one of {LOG_FORMATS}, got {log_format!r}")

        log_level = os.environ.get("FACADE_LOG_LEVEL", "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise RuntimeError(f"FACADE_LOG_LEVEL is not a logging level: {log_level!r}")

        return cls(
            disabled_by_default=disabled_by_default,
            log_format=log_format,
            log_level=log_level,
        )
