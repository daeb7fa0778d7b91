"""Model configuration entity."""

from __future__ import annotations

from pydantic import BaseModel

AUTO_LANGUAGE = 'auto'
ENGLISH_ONLY_SUFFIX = '.en'

DEFAULT_MODEL = 'base'
DEFAULT_DTYPE = 'q8_0'
DEFAULT_GPU = False
DEFAULT_SUBTASK = 'transcribe'
DEFAULT_LANGUAGE = 'en'


class ModelConfig(BaseModel):
    """Load-time (model, dtype, gpu) and inference-time (subtask, language) settings."""

    model: str = DEFAULT_MODEL
    dtype: str = DEFAULT_DTYPE
    gpu: bool = DEFAULT_GPU
    subtask: str = DEFAULT_SUBTASK
    language: str = DEFAULT_LANGUAGE

    @property
    def is_english_only(self) -> bool:
        """English-only variants accept neither a task nor a language."""
        return self.model.endswith(ENGLISH_ONLY_SUFFIX)

    def load_key(self) -> tuple[str, str, bool]:
        """The part of the config a loaded worker instance is bound to."""
        return (self.model, self.dtype, self.gpu)
