"""Transcript entities produced by the worker."""

from __future__ import annotations

from pydantic import BaseModel, Field


def format_audio_timestamp(seconds: float) -> str:
    """Format seconds as MM:SS, or HH:MM:SS past the hour, for display."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours:
        return f'{hours:02d}:{minutes:02d}:{secs:02d}'
    return f'{minutes:02d}:{secs:02d}'


class TranscriptChunk(BaseModel):
    """A time-bounded segment of transcribed text."""

    text: str
    timestamp: tuple[float, float | None] = Field(description='(start, end) in seconds; end None = open-ended')

    @property
    def start(self) -> float:
        return self.timestamp[0]

    @property
    def end(self) -> float:
        """End time, defaulting to start for open-ended chunks."""
        end = self.timestamp[1]
        return self.timestamp[0] if end is None else end


class TranscriptOutput(BaseModel):
    """Whole worker result; replaced on every update/complete event."""

    is_busy: bool
    tps: float | None = None
    text: str = ''
    chunks: list[TranscriptChunk] = Field(default_factory=list)
