"""Audio transcription API route"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from ..core.config import Settings
from ..core.errors import UploadError
from ..services.transcription import Transcriber
from .chat import MISSING_KEY_ERROR
from .dependencies import get_app_settings, get_transcriber

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transcribe", tags=["Transcription"])


async def read_audio_upload(request: Request, max_bytes: int) -> tuple[UploadFile, bytes, dict[str, str]]:
    """
    Read the first uploaded file and the plain form fields.

    Raises:
        UploadError: no file, file over ``max_bytes``, or a non-audio MIME type
    """
    form = await request.form()
    upload: Optional[UploadFile] = None
    fields: dict[str, str] = {}
    for name, value in form.multi_items():
        if isinstance(value, UploadFile):
            if upload is None:
                upload = value
        else:
            fields[name] = value

    if upload is None:
        raise UploadError("no_file", "No audio file provided")

    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise UploadError("file_too_large", f"Audio exceeds {limit_mb}MB limit")

    mime_type = upload.content_type
    if mime_type and not mime_type.startswith("audio/"):
        raise UploadError("unsupported_mime", f"Unsupported MIME type: {mime_type}")

    return upload, data, fields


@router.post("")
async def transcribe_audio(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    transcriber: Optional[Transcriber] = Depends(get_transcriber),
):
    """
    Transcribe an uploaded audio file.

    Optional form fields: ``language`` and ``timestampGranularities``
    (comma-separated, e.g. ``segment,word``).
    """
    if not settings.llm_configured or transcriber is None:
        return JSONResponse(status_code=500, content={"error": MISSING_KEY_ERROR})

    try:
        upload, data, fields = await read_audio_upload(request, settings.max_upload_bytes)
    except UploadError as e:
        logger.warning(f"Rejected upload: {e.code}")
        return JSONResponse(status_code=e.status_code, content={"error": e.code, "message": e.message})

    granularities = [
        g.strip() for g in fields.get("timestampGranularities", "").split(",") if g.strip()
    ]
    try:
        result = await transcriber.transcribe(
            data,
            filename=upload.filename,
            mime_type=upload.content_type,
            language=fields.get("language") or None,
            timestamp_granularities=granularities or None,
        )
    except Exception as e:
        logger.error(f"/api/transcribe error: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "transcription_failed"})

    return result.model_dump(by_alias=True)
