"""Gateway: whisper.cpp transcriber — implements Transcriber port."""

from __future__ import annotations

import contextlib
import os
from collections.abc import Callable

import numpy as np
from pywhispercpp.model import Model

from whisper_session.l1_entities.transcript import TranscriptChunk


@contextlib.contextmanager
def _suppress_c_stdout():
    """Redirect C-level stdout and stderr to /dev/null.

    whisper.cpp prints init/progress messages directly via C fprintf,
    bypassing Python's sys.stdout.
    """
    devnull = os.open(os.devnull, os.O_WRONLY)
    old_stdout = os.dup(1)
    old_stderr = os.dup(2)
    try:
        os.dup2(devnull, 1)
        os.dup2(devnull, 2)
        yield
    finally:
        os.dup2(old_stdout, 1)
        os.dup2(old_stderr, 2)
        os.close(devnull)
        os.close(old_stdout)
        os.close(old_stderr)


def _to_chunk(seg) -> TranscriptChunk | None:
    """pywhispercpp segment (centisecond t0/t1) to a chunk; blank segments are dropped.

    The text keeps its leading space so chunks concatenate into readable text.
    """
    if not seg.text.strip():
        return None
    return TranscriptChunk(text=seg.text, timestamp=(seg.t0 / 100.0, seg.t1 / 100.0))


class WhisperTranscriber:
    """pywhispercpp adapter. Handles model loading, C stdout suppression,
    segment streaming and centisecond-to-seconds conversion."""

    def __init__(self) -> None:
        self._model: Model | None = None

    def close(self) -> None:
        """Explicitly release the model, suppressing C-level teardown noise."""
        if self._model is not None:
            with _suppress_c_stdout():
                del self._model
                self._model = None

    def load_model(self, model_path: str) -> None:
        with _suppress_c_stdout():
            self._model = Model(model_path, print_progress=False, print_realtime=False)

    def transcribe(
        self,
        audio: np.ndarray,
        language: str | None,
        translate: bool = False,
        on_chunk: Callable[[TranscriptChunk], None] | None = None,
    ) -> list[TranscriptChunk]:
        if self._model is None:
            raise RuntimeError('Model not loaded. Call load_model() first.')

        def _on_segment(seg) -> None:
            chunk = _to_chunk(seg)
            if chunk is not None and on_chunk is not None:
                on_chunk(chunk)

        with _suppress_c_stdout():
            raw_segments = self._model.transcribe(
                audio.astype(np.float32, copy=False),
                language=language or 'auto',
                translate=translate,
                new_segment_callback=_on_segment,
            )

        return [chunk for chunk in (_to_chunk(seg) for seg in raw_segments) if chunk is not None]
