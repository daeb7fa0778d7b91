"""Use case: the worker side of the protocol — turn requests into events.

Does NO I/O itself. Model files come from a ModelStore, inference from a
Transcriber built by the injected factory, and every outcome leaves through
``emit``. One loaded transcriber is kept, bound to a (model, dtype, gpu) key.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from pydantic import BaseModel

from whisper_session.l1_entities.model_config import ModelConfig
from whisper_session.l1_entities.transcript import TranscriptChunk
from whisper_session.l1_entities.worker_messages import (
    CheckModelRequest,
    CompleteEvent,
    DownloadModelRequest,
    ErrorEvent,
    ModelCheckCompleteEvent,
    ModelReadyEvent,
    ReadyEvent,
    TranscribeRequest,
    TranscriptData,
    UpdateEvent,
    request_config,
)
from whisper_session.l2_use_cases.ports.model_store import ModelStore
from whisper_session.l2_use_cases.ports.transcriber import Transcriber

log = logging.getLogger('ws.worker')


def count_tokens(text: str) -> int:
    """Whitespace token count used for the throughput figure."""
    return len(text.split())


class WorkerRequestHandler:
    def __init__(
        self,
        store: ModelStore,
        transcriber_factory: Callable[[], Transcriber],
        emit: Callable[[BaseModel], None],
    ) -> None:
        self._store = store
        self._transcriber_factory = transcriber_factory
        self._emit = emit
        self._transcriber: Transcriber | None = None
        self._loaded_key: tuple[str, str, bool] | None = None

    @property
    def loaded_key(self) -> tuple[str, str, bool] | None:
        return self._loaded_key

    def handle(self, request: BaseModel) -> None:
        """Process one request. Failures are reported as ``error`` events, never raised."""
        try:
            if isinstance(request, CheckModelRequest):
                self._check_model(request)
            elif isinstance(request, DownloadModelRequest):
                self._download_model(request)
            elif isinstance(request, TranscribeRequest):
                self._transcribe(request)
            else:
                raise TypeError(f'Unsupported worker request: {type(request).__name__}')
        except Exception as exc:
            log.error('Request %s failed: %s', getattr(request, 'action', '?'), exc, exc_info=True)
            self._emit(ErrorEvent.from_message(str(exc)))

    def close(self) -> None:
        if self._transcriber is not None:
            self._transcriber.close()
            self._transcriber = None
        self._loaded_key = None

    # --- request handlers ---

    def _check_model(self, request: CheckModelRequest) -> None:
        config = request_config(request)
        if self._loaded_key == config.load_key():
            self._emit(ModelReadyEvent())
            return

        path = self._store.cached_path(config)
        if path is None:
            log.info('Model %s (%s) not cached', config.model, config.dtype)
            self._emit(ModelCheckCompleteEvent())
            return

        self._load(config, path)
        self._emit(ModelReadyEvent())

    def _download_model(self, request: DownloadModelRequest) -> None:
        config = request_config(request)
        path = self._store.download(config, self._emit)
        self._load(config, path)
        self._emit(ReadyEvent())
        self._emit(ModelReadyEvent())

    def _transcribe(self, request: TranscribeRequest) -> None:
        config = request_config(request)
        if self._loaded_key != config.load_key():
            path = self._store.cached_path(config)
            if path is None:
                raise RuntimeError(f'Model {config.model} ({config.dtype}) is not downloaded')
            self._load(config, path)
        assert self._transcriber is not None

        chunks: list[TranscriptChunk] = []
        started = time.monotonic()

        def _data() -> TranscriptData:
            text = ''.join(c.text for c in chunks)
            elapsed = time.monotonic() - started
            tps = count_tokens(text) / elapsed if elapsed > 0 else None
            return TranscriptData(text=text, chunks=list(chunks), tps=tps)

        def _on_chunk(chunk: TranscriptChunk) -> None:
            chunks.append(chunk)
            self._emit(UpdateEvent(data=_data()))

        result = self._transcriber.transcribe(
            audio=request.audio,
            language=request.language,
            translate=request.subtask == 'translate',
            on_chunk=_on_chunk,
        )
        # Engines without streaming support only return the final list.
        if len(result) != len(chunks):
            chunks[:] = result
        log.info('Transcribed %d samples into %d chunks', len(request.audio), len(chunks))
        self._emit(CompleteEvent(data=_data()))

    def _load(self, config: ModelConfig, path: str) -> None:
        if self._transcriber is not None:
            self._transcriber.close()
            self._transcriber = None
            self._loaded_key = None
        log.info('Loading %s (dtype=%s, gpu=%s) from %s', config.model, config.dtype, config.gpu, path)
        transcriber = self._transcriber_factory()
        try:
            transcriber.load_model(path)
        except Exception:
            transcriber.close()
            raise
        self._transcriber = transcriber
        self._loaded_key = config.load_key()
