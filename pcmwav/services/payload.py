from __future__ import annotations

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from pcmwav.config import settings
from pcmwav.services.wav import BYTES_PER_SAMPLE, HEADER_SIZE, WAV_CONTENT_TYPE, encode


@dataclass(frozen=True, slots=True)
class WavPayload:
    """Finished WAV bytes tagged with their content type, ready to hand off."""

    data: bytes
    sample_rate: int
    sample_count: int
    content_type: str = WAV_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.sample_count / float(self.sample_rate)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.content_type};base64,{self.to_base64()}"

    def write_to(self, path: Union[str, Path]) -> Path:
        target = Path(path).expanduser()
        target.write_bytes(self.data)
        return target


def encode_payload(
    samples: Iterable[float],
    sample_rate: Optional[int] = None,
    *,
    rounding: Optional[str] = None,
    nan_policy: Optional[str] = None,
) -> WavPayload:
    """Encode samples and wrap the result, filling unset options from settings."""
    rate = settings.default_sample_rate if sample_rate is None else sample_rate
    data = encode(
        samples,
        rate,
        rounding=rounding or settings.rounding,
        nan_policy=nan_policy or settings.nan_policy,
    )
    return WavPayload(
        data=data,
        sample_rate=rate,
        sample_count=(len(data) - HEADER_SIZE) // BYTES_PER_SAMPLE,
    )
