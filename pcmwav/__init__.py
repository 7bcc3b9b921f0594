"""Package bootstrap hooks and public API."""
from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_REPO_ROOT = Path(__file__).resolve().parent.parent

# Load repo root .env first, then .env.local overrides.
load_dotenv(_REPO_ROOT / ".env")
load_dotenv(_REPO_ROOT / ".env.local", override=True)

from pcmwav.services.payload import WavPayload, encode_payload  # noqa: E402
from pcmwav.services.wav import (  # noqa: E402
    DEFAULT_SAMPLE_RATE,
    WAV_CONTENT_TYPE,
    AudioParameters,
    SampleValueError,
    WavEncodeError,
    clamp,
    encode,
)

__all__ = [
    "DEFAULT_SAMPLE_RATE",
    "WAV_CONTENT_TYPE",
    "AudioParameters",
    "SampleValueError",
    "WavEncodeError",
    "WavPayload",
    "clamp",
    "encode",
    "encode_payload",
]
