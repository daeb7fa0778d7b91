"""Per-file download progress entity."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProgressItem(BaseModel):
    """Transfer state of one model file, keyed by ``file``."""

    file: str
    name: str = ''
    status: str = 'initiate'
    loaded: int = 0
    total: int = 0
    progress: float = Field(default=0.0, description='Fraction complete, 0..1')
