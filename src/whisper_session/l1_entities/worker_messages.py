"""Worker message protocol — closed tagged unions for requests and events.

Requests (controller → worker) are tagged by ``action``; events (worker →
controller) are tagged by ``status``. Each variant carries only the fields it
needs. Both cross process boundaries as plain dicts (``model_dump()``) and are
rebuilt with :func:`parse_worker_request` / :func:`parse_worker_event`.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from whisper_session.l1_entities.model_config import ModelConfig
from whisper_session.l1_entities.transcript import TranscriptChunk, TranscriptOutput

# --- Requests ---


class CheckModelRequest(BaseModel):
    action: Literal['check_model'] = 'check_model'
    model: str
    dtype: str
    gpu: bool


class DownloadModelRequest(BaseModel):
    action: Literal['download_model'] = 'download_model'
    model: str
    dtype: str
    gpu: bool


class TranscribeRequest(BaseModel):
    """Mono float32 samples plus the config to run them through.

    ``subtask`` and ``language`` are None when the model does not accept them
    (English-only variants) or, for language, when auto-detection is wanted.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    action: Literal['transcribe'] = 'transcribe'
    audio: np.ndarray
    model: str
    dtype: str
    gpu: bool
    subtask: str | None = None
    language: str | None = None


WorkerRequest = Annotated[
    Union[CheckModelRequest, DownloadModelRequest, TranscribeRequest],
    Field(discriminator='action'),
]

_REQUEST_ADAPTER: TypeAdapter = TypeAdapter(WorkerRequest)


def parse_worker_request(payload: dict) -> CheckModelRequest | DownloadModelRequest | TranscribeRequest:
    """Rebuild a typed request from its wire dict. Raises pydantic.ValidationError."""
    return _REQUEST_ADAPTER.validate_python(payload)


def request_config(request: CheckModelRequest | DownloadModelRequest | TranscribeRequest) -> ModelConfig:
    """Load-time part of a request as a ModelConfig."""
    return ModelConfig(model=request.model, dtype=request.dtype, gpu=request.gpu)


# --- Events ---


class InitiateEvent(BaseModel):
    status: Literal['initiate'] = 'initiate'
    file: str
    name: str = ''
    loaded: int = 0
    total: int = 0


class ProgressEvent(BaseModel):
    status: Literal['progress'] = 'progress'
    file: str
    progress: float
    loaded: int = 0
    total: int = 0


class DoneEvent(BaseModel):
    status: Literal['done'] = 'done'
    file: str


class ReadyEvent(BaseModel):
    status: Literal['ready'] = 'ready'


class ModelReadyEvent(BaseModel):
    status: Literal['model_ready'] = 'model_ready'


class ModelCheckCompleteEvent(BaseModel):
    status: Literal['model_check_complete'] = 'model_check_complete'


class TranscriptData(BaseModel):
    text: str = ''
    chunks: list[TranscriptChunk] = Field(default_factory=list)
    tps: float | None = None


class UpdateEvent(BaseModel):
    """Interim result; the transcription is still running."""

    status: Literal['update'] = 'update'
    data: TranscriptData

    def to_output(self) -> TranscriptOutput:
        return TranscriptOutput(is_busy=True, text=self.data.text, tps=self.data.tps, chunks=self.data.chunks)


class CompleteEvent(BaseModel):
    """Final result."""

    status: Literal['complete'] = 'complete'
    data: TranscriptData

    def to_output(self) -> TranscriptOutput:
        return TranscriptOutput(is_busy=False, text=self.data.text, tps=self.data.tps, chunks=self.data.chunks)


class ErrorData(BaseModel):
    message: str


class ErrorEvent(BaseModel):
    status: Literal['error'] = 'error'
    data: ErrorData

    @classmethod
    def from_message(cls, message: str) -> ErrorEvent:
        return cls(data=ErrorData(message=message))


WorkerEvent = Annotated[
    Union[
        InitiateEvent,
        ProgressEvent,
        DoneEvent,
        ReadyEvent,
        ModelReadyEvent,
        ModelCheckCompleteEvent,
        UpdateEvent,
        CompleteEvent,
        ErrorEvent,
    ],
    Field(discriminator='status'),
]

_EVENT_ADAPTER: TypeAdapter = TypeAdapter(WorkerEvent)


def parse_worker_event(payload: dict) -> BaseModel:
    """Rebuild a typed event from its wire dict. Raises pydantic.ValidationError."""
    return _EVENT_ADAPTER.validate_python(payload)
