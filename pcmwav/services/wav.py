"""Mono 16-bit PCM RIFF/WAVE encoding.

Header layout written by `write_header` (offsets in bytes):

    0   "RIFF"          big-endian tag
    4   ChunkSize       LE uint32, 36 + data size
    8   "WAVE"          big-endian tag
    12  "fmt "          big-endian tag
    16  Subchunk1Size   LE uint32, always 16
    20  AudioFormat     LE uint16, 1 (PCM)
    22  NumChannels     LE uint16, 1
    24  SampleRate      LE uint32
    28  ByteRate        LE uint32, sample_rate * 2
    32  BlockAlign      LE uint16, 2
    34  BitsPerSample   LE uint16, 16
    36  "data"          big-endian tag
    40  Subchunk2Size   LE uint32, sample_count * 2
    44  PCM data        LE int16 per sample
"""
from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Iterable, Sequence

from pcmwav.services.byte_writer import ByteWriter

logger = logging.getLogger(__name__)

RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FMT_ID = b"fmt "
DATA_ID = b"data"

HEADER_SIZE = 44
FMT_CHUNK_SIZE = 16
PCM_FORMAT = 1
CHANNELS = 1
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
DEFAULT_SAMPLE_RATE = 44_100

PCM16_NEGATIVE_SCALE = 0x8000
PCM16_POSITIVE_SCALE = 0x7FFF

WAV_CONTENT_TYPE = "audio/wav"

ROUNDING_MODES = frozenset({"truncate", "nearest"})
NAN_POLICIES = frozenset({"zero", "error"})


class WavEncodeError(ValueError):
    """Raised when samples cannot be encoded under the requested options."""


class SampleValueError(WavEncodeError):
    """Raised when a sample is rejected (NaN under the `error` policy)."""

    def __init__(self, index: int, value: float) -> None:
        super().__init__(f"Sample {index} is not a number: {value!r}")
        self.index = index
        self.value = value


@dataclass(frozen=True, slots=True)
class AudioParameters:
    """Format description for one encode call. Only mono PCM16 is produced."""

    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = CHANNELS
    bits_per_sample: int = BITS_PER_SAMPLE
    audio_format: int = PCM_FORMAT

    @property
    def block_align(self) -> int:
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align


def clamp(value: float, min_value: float, max_value: float) -> float:
    """Clamp `value` to [min_value, max_value].

    clamp(+0.5, -1, 1) => 0.5
    clamp(+1.5, -1, 1) => 1
    clamp(-1.5, -1, 1) => -1
    """
    if value > max_value:
        return max_value
    if value < min_value:
        return min_value
    return value


def header_size_fields(sample_count: int) -> tuple[int, int]:
    """Return (ChunkSize, Subchunk2Size) for `sample_count` mono 16-bit samples."""
    data_size = max(sample_count, 0) * BYTES_PER_SAMPLE
    return HEADER_SIZE - 8 + data_size, data_size


def _check_options(rounding: str, nan_policy: str) -> None:
    if rounding not in ROUNDING_MODES:
        raise WavEncodeError(f"rounding must be one of {sorted(ROUNDING_MODES)}, got {rounding!r}")
    if nan_policy not in NAN_POLICIES:
        raise WavEncodeError(f"nan_policy must be one of {sorted(NAN_POLICIES)}, got {nan_policy!r}")


def write_header(writer: ByteWriter, sample_count: int, sample_rate: int = DEFAULT_SAMPLE_RATE) -> None:
    """Write the 44-byte RIFF/WAVE/fmt/data header at the start of `writer`.

    `sample_rate` is written as given; callers that need strict compliance
    must validate it first.
    """
    params = AudioParameters(sample_rate=sample_rate)
    chunk_size, data_size = header_size_fields(sample_count)

    # RIFF chunk descriptor
    writer.set_tag(0, RIFF_ID)
    writer.set_uint32(4, chunk_size, little_endian=True)
    writer.set_tag(8, WAVE_ID)

    # fmt sub-chunk
    writer.set_tag(12, FMT_ID)
    writer.set_uint32(16, FMT_CHUNK_SIZE, little_endian=True)
    writer.set_uint16(20, params.audio_format, little_endian=True)
    writer.set_uint16(22, params.channels, little_endian=True)
    writer.set_uint32(24, params.sample_rate, little_endian=True)
    writer.set_uint32(28, params.byte_rate, little_endian=True)
    writer.set_uint16(32, params.block_align, little_endian=True)
    writer.set_uint16(34, params.bits_per_sample, little_endian=True)

    # data sub-chunk
    writer.set_tag(36, DATA_ID)
    writer.set_uint32(40, data_size, little_endian=True)


def quantize_sample(value: float, *, rounding: str = "truncate", nan_policy: str = "zero") -> int:
    """Map a float sample in [-1, 1] to a signed 16-bit integer.

    Negative values scale by 0x8000 and the rest by 0x7FFF, so -1.0 maps to
    -32768 and 1.0 to 32767.
    """
    _check_options(rounding, nan_policy)
    return _quantize(value, rounding == "nearest", nan_policy == "error", index=0)


def _quantize(value: float, nearest: bool, reject_nan: bool, *, index: int) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError(f"Sample {index} must be a real number, got {type(value).__name__}")
    if math.isnan(value):
        if reject_nan:
            raise SampleValueError(index, value)
        return 0

    clamped = clamp(value, -1.0, 1.0)
    scaled = clamped * PCM16_NEGATIVE_SCALE if clamped < 0 else clamped * PCM16_POSITIVE_SCALE
    if nearest:
        return int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))
    return math.trunc(scaled)


def write_pcm16(
    writer: ByteWriter,
    samples: Sequence[float],
    *,
    offset: int = HEADER_SIZE,
    rounding: str = "truncate",
    nan_policy: str = "zero",
) -> None:
    """Write each sample as a little-endian int16 at `offset + 2 * index`."""
    _check_options(rounding, nan_policy)
    nearest = rounding == "nearest"
    reject_nan = nan_policy == "error"

    clipped = 0
    zeroed = 0
    for index, value in enumerate(samples):
        quantized = _quantize(value, nearest, reject_nan, index=index)
        if math.isnan(value):
            zeroed += 1
        elif value > 1.0 or value < -1.0:
            clipped += 1
        writer.set_int16(offset + index * BYTES_PER_SAMPLE, quantized, little_endian=True)

    if clipped:
        logger.warning("Clamped %d of %d samples outside [-1, 1]", clipped, len(samples))
    if zeroed:
        logger.warning("Wrote %d NaN samples as silence", zeroed)


def encode(
    samples: Iterable[float],
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    *,
    rounding: str = "truncate",
    nan_policy: str = "zero",
) -> bytes:
    """Encode float samples as a mono 16-bit PCM WAV byte string.

    The result is exactly `44 + len(samples) * 2` bytes long.
    """
    _check_options(rounding, nan_policy)
    data = samples if isinstance(samples, Sequence) else list(samples)

    writer = ByteWriter(HEADER_SIZE + len(data) * BYTES_PER_SAMPLE)
    write_header(writer, len(data), sample_rate)
    write_pcm16(writer, data, rounding=rounding, nan_policy=nan_policy)

    logger.debug(
        "Encoded %d samples at %s Hz into %d bytes", len(data), sample_rate, writer.size
    )
    return writer.getvalue()
