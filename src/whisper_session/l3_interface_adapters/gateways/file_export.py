"""Gateway: file-based export — implements ExportGateway port."""

from __future__ import annotations

import logging
from pathlib import Path

from whisper_session.l2_use_cases.utils.transcript_export import ExportArtifact

log = logging.getLogger('ws.export')


class FileExportGateway:
    """Writes export artifacts into an output directory."""

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir
        self._output_dir.mkdir(parents=True, exist_ok=True)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def save(self, artifact: ExportArtifact) -> Path:
        path = self._output_dir / artifact.filename
        path.write_text(artifact.content, encoding='utf-8')
        log.debug('Wrote %s (%s, %d chars)', path.name, artifact.mime_type, len(artifact.content))
        return path
