"""Port: export gateway for writing transcript artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from whisper_session.l2_use_cases.utils.transcript_export import ExportArtifact


class ExportGateway(Protocol):
    """Abstract sink for exported transcript files."""

    def save(self, artifact: ExportArtifact) -> Path:
        """Write *artifact* and return where it landed."""
        ...
