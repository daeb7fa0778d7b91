"""Stderr reporter — renders controller state changes for the headless CLI."""

from __future__ import annotations

import sys
from typing import TextIO

from whisper_session.l1_entities.errors import WorkerError
from whisper_session.l1_entities.transcript import format_audio_timestamp
from whisper_session.l3_interface_adapters.controllers.session_controller import SessionController


class SessionReporter:
    """Prints per-file download progress, interim chunks and surfaced errors.

    Wired as the controller's ``on_change`` / ``on_error`` callbacks.
    """

    def __init__(self, stream: TextIO | None = None, step: int = 10) -> None:
        self._stream = stream or sys.stderr
        self._step = step
        self._last_percent: dict[str, int] = {}
        self._printed_chunks = 0

    def _err(self, msg: str) -> None:
        print(msg, file=self._stream, flush=True)

    def on_change(self, controller: SessionController) -> None:
        for item in controller.progress_items:
            percent = int(item.progress * 100)
            last = self._last_percent.get(item.file)
            if last is None or percent >= last + self._step or (percent == 100 and last != 100):
                self._last_percent[item.file] = percent
                self._err(f'  {item.file}: {percent}%')

        output = controller.output
        if output is None:
            self._printed_chunks = 0
            return
        for chunk in output.chunks[self._printed_chunks :]:
            self._err(f'  [{format_audio_timestamp(chunk.start)}] {chunk.text.strip()}')
        self._printed_chunks = len(output.chunks)

    def on_error(self, error: WorkerError) -> None:
        self._err(f'An error occurred: "{error}"')
