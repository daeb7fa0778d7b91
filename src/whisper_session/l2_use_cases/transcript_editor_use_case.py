"""Use case: transcript model with a per-chunk edit overlay, and export."""

from __future__ import annotations

import logging

from whisper_session.l1_entities.edit_overlay import EditOverlay
from whisper_session.l1_entities.errors import ExportUnavailableError
from whisper_session.l1_entities.transcript import TranscriptOutput
from whisper_session.l2_use_cases.utils.transcript_export import ExportArtifact, ExportFormat, render

log = logging.getLogger('ws.export')


class TranscriptEditor:
    """Read-only view of the current TranscriptOutput plus the user's edits.

    The output itself is owned by the SessionController; this class only owns
    the overlay, which is re-seeded whenever a new output is installed.
    """

    def __init__(self) -> None:
        self._output: TranscriptOutput | None = None
        self._overlay = EditOverlay()

    @property
    def output(self) -> TranscriptOutput | None:
        return self._output

    def install(self, output: TranscriptOutput | None) -> None:
        """Show *output*; any edits made against the previous chunk list are dropped."""
        self._output = output
        self._overlay.reset(output.chunks if output is not None else [])

    def _check_index(self, index: int) -> None:
        count = len(self._output.chunks) if self._output is not None else 0
        if not 0 <= index < count:
            raise IndexError(f'Chunk index {index} out of range (0..{count - 1})')

    def get_text(self, index: int) -> str:
        chunks = self._output.chunks if self._output is not None else []
        return self._overlay.text_for(index, chunks)

    def original_text(self, index: int) -> str:
        if self._output is None or not 0 <= index < len(self._output.chunks):
            return ''
        return self._output.chunks[index].text

    def set_text(self, index: int, text: str) -> None:
        self._check_index(index)
        self._overlay.edits[index] = text

    def reset_text(self, index: int) -> None:
        """Discard the edit for *index* (the Escape action)."""
        self._check_index(index)
        self._overlay.edits[index] = self.original_text(index)

    def is_edited(self, index: int) -> bool:
        return self.original_text(index) != self.get_text(index)

    def edited_indices(self) -> list[int]:
        count = len(self._output.chunks) if self._output is not None else 0
        return [i for i in range(count) if self.is_edited(i)]

    @property
    def can_export(self) -> bool:
        """Interim results are not exportable."""
        return self._output is not None and not self._output.is_busy

    def export(self, fmt: ExportFormat) -> ExportArtifact:
        if not self.can_export:
            raise ExportUnavailableError('No finished transcript to export')
        assert self._output is not None
        artifact = render(fmt, self._output.chunks, self._overlay)
        log.debug('Rendered %s (%d chunks)', artifact.filename, len(self._output.chunks))
        return artifact
