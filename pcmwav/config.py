"""Configuration helpers for the WAV encoder and its HTTP service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

from pcmwav.services.wav import NAN_POLICIES, ROUNDING_MODES

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer); using %d", name, raw, default)
        return default


def _env_choice(name: str, default: str, choices: frozenset[str]) -> str:
    value = (os.getenv(name) or "").strip().lower() or default
    if value not in choices:
        logger.warning("Ignoring %s=%r (expected one of %s); using %r", name, value, sorted(choices), default)
        return default
    return value


@dataclass
class Settings:
    """Centralized environment-driven configuration.

    Fields are read from the environment when an instance is created, so
    `Settings()` always reflects the current process environment while
    `get_settings()` returns the cached one. Unparseable values fall back to
    their defaults with a warning; scripts/preflight.py reports them as failures.
    """

    # Used when a caller does not pass a sample rate explicitly.
    default_sample_rate: int = field(
        default_factory=lambda: _env_int("PCMWAV_DEFAULT_SAMPLE_RATE", 44_100)
    )
    # "truncate" matches typed-array integer writes; "nearest" rounds half away from zero.
    rounding: str = field(
        default_factory=lambda: _env_choice("PCMWAV_ROUNDING", "truncate", ROUNDING_MODES)
    )
    # "zero" writes NaN samples as silence; "error" rejects them.
    nan_policy: str = field(
        default_factory=lambda: _env_choice("PCMWAV_NAN_POLICY", "zero", NAN_POLICIES)
    )
    # Upper bound on samples accepted per HTTP request (10 minutes at 48 kHz).
    max_samples: int = field(default_factory=lambda: _env_int("PCMWAV_MAX_SAMPLES", 10 * 60 * 48_000))
    # Base URL probed by scripts/preflight.py --check-http.
    server_url: str = field(
        default_factory=lambda: os.getenv("PCMWAV_SERVER_URL", "http://127.0.0.1:8000")
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def problems(self) -> list[str]:
        """Return human-readable problems for values set directly on the instance."""
        found = []
        if self.rounding not in ROUNDING_MODES:
            found.append(f"rounding must be one of {sorted(ROUNDING_MODES)}, got {self.rounding!r}")
        if self.nan_policy not in NAN_POLICIES:
            found.append(f"nan_policy must be one of {sorted(NAN_POLICIES)}, got {self.nan_policy!r}")
        if self.default_sample_rate < 1:
            found.append(f"default_sample_rate must be >= 1, got {self.default_sample_rate}")
        if self.max_samples < 1:
            found.append(f"max_samples must be >= 1, got {self.max_samples}")
        return found


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance to avoid repeated environment reads."""

    return Settings()


settings = get_settings()
