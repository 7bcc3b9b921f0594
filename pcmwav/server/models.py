from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class EncodeRequest(BaseModel):
  samples: list[float] = Field(default_factory=list)
  # None falls back to PCMWAV_DEFAULT_SAMPLE_RATE.
  sample_rate: Optional[int] = Field(None, ge=1)
  rounding: Optional[Literal["truncate", "nearest"]] = None
  nan_policy: Optional[Literal["zero", "error"]] = None
  filename: str = Field("audio", min_length=1, max_length=120)


class EncodeResponse(BaseModel):
  encoding: Literal["base64"] = "base64"
  content_type: str
  sample_rate: int
  sample_count: int
  byte_length: int
  duration_seconds: float
  audio_base64: str
