from __future__ import annotations

import importlib.util
import os
import subprocess
import sys
import wave
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parent.parent
_SCRIPT = _REPO_ROOT / "scripts" / "preflight.py"


def _load_preflight(monkeypatch: pytest.MonkeyPatch):  # noqa: ANN202
    spec = importlib.util.spec_from_file_location("preflight", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    # dataclasses resolves string annotations through sys.modules.
    monkeypatch.setitem(sys.modules, spec.name, module)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def preflight(monkeypatch: pytest.MonkeyPatch):  # noqa: ANN201
    for name in ("PCMWAV_DEFAULT_SAMPLE_RATE", "PCMWAV_ROUNDING", "PCMWAV_NAN_POLICY", "PCMWAV_MAX_SAMPLES"):
        monkeypatch.delenv(name, raising=False)
    return _load_preflight(monkeypatch)


def test_self_test_passes(preflight) -> None:  # noqa: ANN001
    report = preflight.Report()
    preflight.check_self_test(report)

    assert not report.has_failures
    assert any("Self-test" in message for message in report.passed)


def test_invalid_env_values_fail(preflight, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("PCMWAV_DEFAULT_SAMPLE_RATE", "fast")
    monkeypatch.setenv("PCMWAV_ROUNDING", "ceil")
    report = preflight.Report()

    preflight.check_encoder_env(report)

    assert len(report.failures) == 2


def test_uncommon_sample_rate_warns(preflight, monkeypatch: pytest.MonkeyPatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("PCMWAV_DEFAULT_SAMPLE_RATE", "12345")
    report = preflight.Report()

    preflight.check_encoder_env(report)

    assert not report.has_failures
    assert report.warnings


def test_main_writes_sample_tone(preflight, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:  # noqa: ANN001
    target = tmp_path / "tone.wav"

    assert preflight.main(["--write-sample", str(target)]) == 0

    with wave.open(str(target), "rb") as wf:
        assert wf.getframerate() == 44_100
        assert wf.getnframes() == 44_100
    assert "[PASS]" in capsys.readouterr().out


def test_http_check_rejects_relative_url(preflight) -> None:  # noqa: ANN001
    report = preflight.Report()
    preflight.check_http_health(report, server_url="localhost:8000", timeout_seconds=0.1)

    assert report.has_failures


def test_main_reports_unparseable_integer(preflight, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:  # noqa: ANN001
    monkeypatch.setenv("PCMWAV_MAX_SAMPLES", "lots")

    assert preflight.main([]) == 1
    assert "[FAIL] PCMWAV_MAX_SAMPLES must be an integer. Got: 'lots'" in capsys.readouterr().out


def test_script_runs_with_unparseable_integer(tmp_path: Path) -> None:
    env = dict(os.environ)
    env["PCMWAV_MAX_SAMPLES"] = "lots"
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(_REPO_ROOT), env.get("PYTHONPATH")]))

    result = subprocess.run(
        [sys.executable, str(_SCRIPT)],
        cwd=tmp_path,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )

    assert result.returncode == 1
    assert "PCMWAV_MAX_SAMPLES must be an integer" in result.stdout
    assert "Traceback" not in result.stderr
