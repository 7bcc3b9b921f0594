from __future__ import annotations

import logging
import re
from typing import Any

from fastapi import FastAPI, HTTPException, Response

from pcmwav.config import Settings, get_settings
from pcmwav.server.models import EncodeRequest, EncodeResponse
from pcmwav.services.payload import WavPayload, encode_payload
from pcmwav.services.wav import WavEncodeError

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._-]+")


def _safe_filename(name: str) -> str:
  stem = _FILENAME_RE.sub("_", name.strip()).strip("._") or "audio"
  if stem.lower().endswith(".wav"):
    stem = stem[:-4] or "audio"
  return f"{stem}.wav"


def create_app(settings: Settings | None = None) -> FastAPI:
  settings = settings or get_settings()
  logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
  )
  app = FastAPI(title="pcmwav encoder", version="0.1.0")
  app.state.settings = settings
  problems = settings.problems()
  # Start anyway so /health can say what is wrong.
  app.state.settings_error = "; ".join(problems) or None
  if problems:
    logger.error("Invalid encoder settings: %s", app.state.settings_error)

  def _encode(req: EncodeRequest) -> WavPayload:
    if app.state.settings_error:
      raise HTTPException(status_code=503, detail=app.state.settings_error)
    if len(req.samples) > settings.max_samples:
      raise HTTPException(
        status_code=413,
        detail=f"Too many samples ({len(req.samples)} > {settings.max_samples})",
      )
    try:
      payload = encode_payload(
        req.samples,
        req.sample_rate or settings.default_sample_rate,
        rounding=req.rounding or settings.rounding,
        nan_policy=req.nan_policy or settings.nan_policy,
      )
    except WavEncodeError as exc:
      raise HTTPException(status_code=422, detail=str(exc))
    logger.info(
      "Encoded %d samples at %d Hz (%d bytes)",
      payload.sample_count,
      payload.sample_rate,
      payload.size,
    )
    return payload

  @app.get("/health")
  async def health() -> dict[str, Any]:
    return {
      "service": "pcmwav",
      "status": "degraded" if app.state.settings_error else "ok",
      "settings_error": app.state.settings_error,
      "default_sample_rate": settings.default_sample_rate,
      "rounding": settings.rounding,
      "nan_policy": settings.nan_policy,
    }

  @app.post("/encode", response_model=EncodeResponse)
  async def encode_json(req: EncodeRequest) -> EncodeResponse:
    payload = _encode(req)
    return EncodeResponse(
      content_type=payload.content_type,
      sample_rate=payload.sample_rate,
      sample_count=payload.sample_count,
      byte_length=payload.size,
      duration_seconds=payload.duration_seconds,
      audio_base64=payload.to_base64(),
    )

  @app.post("/encode.wav")
  async def encode_wav(req: EncodeRequest) -> Response:
    payload = _encode(req)
    return Response(
      content=payload.data,
      media_type=payload.content_type,
      headers={"Content-Disposition": f'attachment; filename="{_safe_filename(req.filename)}"'},
    )

  return app
