"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest
from pydantic import BaseModel

from whisper_session.l1_entities.audio_buffer import AudioBuffer
from whisper_session.l1_entities.config import AppConfig
from whisper_session.l1_entities.model_config import ModelConfig
from whisper_session.l1_entities.transcript import TranscriptChunk
from whisper_session.l1_entities.worker_messages import DoneEvent, InitiateEvent, ProgressEvent
from whisper_session.l4_frameworks_and_drivers.config import build_app_config

# --- Protocol-conforming Fakes ---


class FakeWorkerChannel:
    """Fake worker channel — records sent requests, replays queued events."""

    def __init__(self, events: list[BaseModel] | None = None) -> None:
        self.sent: list[BaseModel] = []
        self._events: list[BaseModel] = list(events or [])
        self.receive_timeouts: list[float] = []
        self.closed = False
        self.send_error: Exception | None = None

    def send(self, request: BaseModel) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(request)

    def receive(self, timeout: float) -> BaseModel | None:
        self.receive_timeouts.append(timeout)
        if not self._events:
            return None
        return self._events.pop(0)

    def close(self) -> None:
        self.closed = True

    def queue(self, *events: BaseModel) -> None:
        self._events.extend(events)


class FakeModelStore:
    """Fake model store — in-memory cache keyed by (model, dtype)."""

    def __init__(self, cached: dict[tuple[str, str], str] | None = None, fail: Exception | None = None) -> None:
        self._cached = dict(cached or {})
        self._fail = fail
        self.download_calls: list[ModelConfig] = []

    def cached_path(self, config: ModelConfig) -> str | None:
        return self._cached.get((config.model, config.dtype))

    def download(self, config: ModelConfig, emit: Callable[[BaseModel], None]) -> str:
        self.download_calls.append(config)
        if self._fail is not None:
            raise self._fail
        filename = f'ggml-{config.model}-{config.dtype}.bin'
        emit(InitiateEvent(file=filename, name=config.model))
        emit(ProgressEvent(file=filename, progress=0.5, loaded=50, total=100))
        emit(DoneEvent(file=filename))
        path = f'/models/{filename}'
        self._cached[(config.model, config.dtype)] = path
        return path


class FakeTranscriber:
    """Fake transcriber — streams its canned chunks through on_chunk."""

    def __init__(self, chunks: list[TranscriptChunk] | None = None, load_error: Exception | None = None) -> None:
        self._chunks = chunks or []
        self._load_error = load_error
        self.load_model_calls: list[str] = []
        self.transcribe_calls: list[tuple[np.ndarray, str | None, bool]] = []
        self.closed = False

    def load_model(self, model_path: str) -> None:
        self.load_model_calls.append(model_path)
        if self._load_error is not None:
            raise self._load_error

    def transcribe(
        self,
        audio: np.ndarray,
        language: str | None,
        translate: bool = False,
        on_chunk: Callable[[TranscriptChunk], None] | None = None,
    ) -> list[TranscriptChunk]:
        self.transcribe_calls.append((audio, language, translate))
        for chunk in self._chunks:
            if on_chunk is not None:
                on_chunk(chunk)
        return list(self._chunks)

    def close(self) -> None:
        self.closed = True


# --- Standard Fixtures ---


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    d = tmp_path / 'output'
    d.mkdir()
    return d


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def sample_chunks() -> list[TranscriptChunk]:
    return [
        TranscriptChunk(text=' Hello', timestamp=(0.0, 1.5)),
        TranscriptChunk(text=' world', timestamp=(1.5, None)),
    ]


@pytest.fixture
def stereo_buffer() -> AudioBuffer:
    left = np.full(1600, 0.5, dtype=np.float32)
    right = np.full(1600, 0.25, dtype=np.float32)
    return AudioBuffer(channels=[left, right])


@pytest.fixture
def mono_buffer() -> AudioBuffer:
    return AudioBuffer(channels=[np.linspace(-1.0, 1.0, 1600, dtype=np.float32)])


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
model:
  model: "small.en"
  dtype: "q5_1"
  gpu: true
worker:
  check_timeout: 5
output:
  directory: "./test_output"
  formats: ["srt"]
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p


@pytest.fixture
def fake_channel() -> FakeWorkerChannel:
    return FakeWorkerChannel()
