"""Audio transcription via OpenAI speech-to-text"""

import logging
from typing import Any, Optional, Sequence

from openai import AsyncOpenAI

from ..core.config import Settings
from ..models.transcription import TranscriptionResponse, TranscriptionSegment

logger = logging.getLogger(__name__)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class Transcriber:
    """Turns uploaded audio into text with segment timings"""

    def __init__(self, client: Any, model: str = "whisper-1"):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "Transcriber":
        client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        return cls(client=client, model=settings.transcription_model)

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    async def transcribe(
        self,
        audio: bytes,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
        language: Optional[str] = None,
        timestamp_granularities: Optional[Sequence[str]] = None,
    ) -> TranscriptionResponse:
        """Transcribe one audio file"""
        request: dict[str, Any] = {
            "model": self.model,
            "file": (filename or "audio", audio, mime_type or "application/octet-stream"),
            "response_format": "verbose_json",
        }
        if language:
            request["language"] = language
        if timestamp_granularities:
            request["timestamp_granularities"] = list(timestamp_granularities)

        logger.info(f"Transcribing {len(audio)} bytes with {self.model}")
        result = await self.client.audio.transcriptions.create(**request)

        segments = [
            TranscriptionSegment(
                text=_field(s, "text", ""),
                start_second=_field(s, "start", 0.0),
                end_second=_field(s, "end", 0.0),
            )
            for s in (_field(result, "segments") or [])
        ]
        return TranscriptionResponse(
            text=_field(result, "text", ""),
            segments=segments,
            language=_field(result, "language"),
            duration_in_seconds=_field(result, "duration"),
            warnings=[],
        )
