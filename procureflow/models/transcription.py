"""Transcription response models"""

from pydantic import BaseModel, Field
from typing import Optional


class TranscriptionSegment(BaseModel):
    text: str
    start_second: float = Field(serialization_alias="startSecond")
    end_second: float = Field(serialization_alias="endSecond")


class TranscriptionResponse(BaseModel):
    """Audio transcription result"""
    text: str
    segments: list[TranscriptionSegment] = []
    language: Optional[str] = None
    duration_in_seconds: Optional[float] = Field(default=None, serialization_alias="durationInSeconds")
    warnings: list[str] = []
