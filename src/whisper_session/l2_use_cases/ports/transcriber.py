"""Port: speech-to-text transcription engine."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import numpy as np

from whisper_session.l1_entities.transcript import TranscriptChunk


class Transcriber(Protocol):
    """Abstract transcription engine. Zero framework types leak through."""

    def load_model(self, model_path: str) -> None:
        """Load the transcription model from the given path."""
        ...

    def transcribe(
        self,
        audio: np.ndarray,
        language: str | None,
        translate: bool = False,
        on_chunk: Callable[[TranscriptChunk], None] | None = None,
    ) -> list[TranscriptChunk]:
        """Transcribe mono 16 kHz audio. *language* None means auto-detect."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
