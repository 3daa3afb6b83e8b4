from __future__ import annotations
import os
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
from .types import RuntimeEnvironment

ValidationMode = Literal["first", "all"]

_ENV_PREFIX = "M3S_"


class Settings(BaseModel):
    # Injected by the host process; the core never sniffs its runtime.
    runtime_environment: RuntimeEnvironment = RuntimeEnvironment.SERVER

    # Requirement reporting: stop at the first violation or collect all of them
    validation_mode: ValidationMode = "all"

    # Outcome watcher defaults
    default_poll_interval_s: float = Field(default=1.0, gt=0, le=60)
    default_timeout_s: Optional[float] = Field(default=180.0)

    log_level: str = "INFO"

    @field_validator("default_timeout_s")
    @classmethod
    def _positive_or_unbounded(cls, v):
        if v is not None and v <= 0:
            raise ValueError("default_timeout_s must be > 0, or None for no timeout")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Builds settings from M3S_* variables; 'none' disables the default timeout."""
        env = os.environ if environ is None else environ
        raw = {}
        for field in cls.model_fields:
            val = env.get(_ENV_PREFIX + field.upper())
            if val is None:
                continue
            raw[field] = None if (field == "default_timeout_s" and val.lower() == "none") else val
        return cls(**raw)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings(settings: Optional[Settings] = None) -> None:
    global _settings
    _settings = settings
