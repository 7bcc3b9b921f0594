"""Preflight checks for the pcmwav encoder configuration.

Run this before starting the HTTP service to catch common misconfiguration
(importing pcmwav loads the repo .env and .env.local files):
  python scripts/preflight.py

Optional network checks and a listening sample:
  python scripts/preflight.py --check-http --write-sample tone.wav
"""

from __future__ import annotations

import argparse
import math
import os
import struct
import sys
from dataclasses import dataclass, field
from typing import Optional, Sequence
from urllib.parse import urlparse

import httpx

from pcmwav.services.payload import encode_payload
from pcmwav.services.wav import NAN_POLICIES, ROUNDING_MODES, encode


# encode([0.0, 1.0, -1.0], 44100) must produce exactly this.
SELF_TEST_SAMPLES = (0.0, 1.0, -1.0)
SELF_TEST_EXPECTED = (
    b"RIFF" + struct.pack("<I", 42) + b"WAVE"
    + b"fmt " + struct.pack("<IHHIIHH", 16, 1, 1, 44_100, 88_200, 2, 16)
    + b"data" + struct.pack("<I", 6)
    + struct.pack("<hhh", 0, 32_767, -32_768)
)


@dataclass
class Report:
    passed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    def ok(self, message: str) -> None:
        self.passed.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def fail(self, message: str) -> None:
        self.failures.append(message)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


def _is_valid_http_url(value: str) -> bool:
    """Return True when value is an absolute HTTP(S) URL."""
    parsed = urlparse((value or "").strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _env_int(name: str, default: int, report: Report, *, minimum: int = 1) -> int:
    """Parse int env var and emit validation failures into the report."""
    raw = os.getenv(name, str(default)).strip()
    try:
        value = int(raw)
    except ValueError:
        report.fail(f"{name} must be an integer. Got: {raw!r}")
        return default
    if value < minimum:
        report.fail(f"{name} must be >= {minimum}. Got: {value}")
    return value


def _env_choice(name: str, default: str, choices: frozenset[str], report: Report) -> str:
    value = (os.getenv(name) or "").strip().lower() or default
    if value not in choices:
        report.fail(f"{name} must be one of {sorted(choices)}. Got: {value!r}")
        return default
    report.ok(f"{name}={value}")
    return value


def check_encoder_env(report: Report) -> None:
    """Validate the encoder defaults read by pcmwav.config."""
    rate = _env_int("PCMWAV_DEFAULT_SAMPLE_RATE", 44_100, report)
    if rate > 0:
        if rate not in {8_000, 11_025, 16_000, 22_050, 24_000, 32_000, 44_100, 48_000, 96_000}:
            report.warn(f"PCMWAV_DEFAULT_SAMPLE_RATE={rate} is not a common sample rate.")
        else:
            report.ok(f"PCMWAV_DEFAULT_SAMPLE_RATE={rate}")

    _env_choice("PCMWAV_ROUNDING", "truncate", ROUNDING_MODES, report)
    _env_choice("PCMWAV_NAN_POLICY", "zero", NAN_POLICIES, report)

    max_samples = _env_int("PCMWAV_MAX_SAMPLES", 10 * 60 * 48_000, report)
    if max_samples > 0:
        report.ok(f"PCMWAV_MAX_SAMPLES={max_samples}")


def check_self_test(report: Report) -> None:
    """Encode a known three-sample buffer and compare it byte for byte."""
    produced = encode(SELF_TEST_SAMPLES, 44_100)
    if produced == SELF_TEST_EXPECTED:
        report.ok("Self-test encode matches the reference 50-byte layout.")
        return
    mismatch = next(
        (i for i, (a, b) in enumerate(zip(produced, SELF_TEST_EXPECTED)) if a != b),
        min(len(produced), len(SELF_TEST_EXPECTED)),
    )
    report.fail(
        f"Self-test encode mismatch at byte {mismatch} "
        f"(got {len(produced)} bytes, expected {len(SELF_TEST_EXPECTED)})."
    )


def _probe(url: str, *, timeout_seconds: float) -> tuple[bool, str]:
    """Probe URL reachability and return (ok, message)."""
    try:
        with httpx.Client(timeout=timeout_seconds, follow_redirects=True) as client:
            response = client.get(url)
        if response.status_code >= 400:
            return (False, f"{url} responded with HTTP {response.status_code}.")
        return (True, f"{url} reachable (HTTP {response.status_code}).")
    except httpx.HTTPError as exc:
        return (False, f"{url} not reachable ({exc}).")


def check_http_health(report: Report, *, server_url: str, timeout_seconds: float) -> None:
    """Optionally probe the /health route of a running encoder service."""
    if not _is_valid_http_url(server_url):
        report.fail(f"PCMWAV_SERVER_URL must be an absolute http(s) URL. Got: {server_url!r}")
        return
    ok, message = _probe(f"{server_url.rstrip('/')}/health", timeout_seconds=timeout_seconds)
    if ok:
        report.ok(f"Encoder health check passed: {message}")
    else:
        report.fail(f"Encoder health check failed: {message}")


def write_sample_tone(path: str, report: Report, *, frequency: float = 440.0, seconds: float = 1.0) -> None:
    """Write a sine tone at half amplitude so the output can be checked by ear."""
    try:
        payload = encode_payload(
            (0.5 * math.sin(2 * math.pi * frequency * n / 44_100) for n in range(int(44_100 * seconds))),
            44_100,
        )
        target = payload.write_to(path)
    except (OSError, ValueError) as exc:
        report.fail(f"Could not write sample tone to {path}: {exc}")
        return
    report.ok(f"Wrote {payload.duration_seconds:.2f}s {frequency:g} Hz tone to {target} ({payload.size} bytes).")


def print_report(report: Report) -> None:
    """Render a human-readable summary report to stdout."""
    for message in report.passed:
        print(f"[PASS] {message}")
    for message in report.warnings:
        print(f"[WARN] {message}")
    for message in report.failures:
        print(f"[FAIL] {message}")
    print(
        f"\nSummary: {len(report.passed)} passed, {len(report.warnings)} warnings, {len(report.failures)} failures."
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for optional network checks and sample output."""
    parser = argparse.ArgumentParser(description="pcmwav preflight checks")
    parser.add_argument(
        "--check-http",
        action="store_true",
        help="Probe PCMWAV_SERVER_URL/health of a running encoder service.",
    )
    parser.add_argument(
        "--http-timeout",
        type=float,
        default=3.0,
        help="Timeout (seconds) for preflight HTTP probes (default: 3.0).",
    )
    parser.add_argument(
        "--write-sample",
        metavar="PATH",
        help="Write a one-second 440 Hz test tone to PATH.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run preflight suite and return process exit code."""
    args = parse_args(argv)
    report = Report()

    check_encoder_env(report)
    check_self_test(report)
    if args.check_http:
        check_http_health(
            report,
            server_url=os.getenv("PCMWAV_SERVER_URL", "http://127.0.0.1:8000"),
            timeout_seconds=max(args.http_timeout, 0.1),
        )
    if args.write_sample:
        write_sample_tone(args.write_sample, report)

    print_report(report)
    return 1 if report.has_failures else 0


if __name__ == "__main__":
    sys.exit(main())
