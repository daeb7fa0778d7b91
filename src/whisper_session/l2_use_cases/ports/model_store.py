"""Port: whisper model file store (cache lookup + download)."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from pydantic import BaseModel

from whisper_session.l1_entities.model_config import ModelConfig


class ModelStore(Protocol):
    """Maps a ModelConfig to local model files, downloading them when asked."""

    def cached_path(self, config: ModelConfig) -> str | None:
        """Local path of the model if every file is already present, else None."""
        ...

    def download(self, config: ModelConfig, emit: Callable[[BaseModel], None]) -> str:
        """Fetch all files, emitting initiate/progress/done events per file. Returns the model path."""
        ...
