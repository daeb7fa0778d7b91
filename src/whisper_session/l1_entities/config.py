"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel, Field

from whisper_session.l1_entities.model_config import ModelConfig


class WorkerConfig(BaseModel):
    """Timeouts, in seconds, for each stage the headless runner waits on."""

    check_timeout: float
    download_timeout: float
    transcribe_timeout: float
    models_dir: str | None = None  # None = pywhispercpp's default models dir


class OutputConfig(BaseModel):
    directory: str
    formats: list[str] = Field(default_factory=list)


class AppConfig(BaseModel):
    model: ModelConfig
    worker: WorkerConfig
    output: OutputConfig
