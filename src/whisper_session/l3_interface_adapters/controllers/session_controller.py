"""SessionController — the transcription session state machine.

Owns the ModelConfig, the readiness/loading/checking/busy flags, the
ProgressTracker and the current TranscriptOutput. The configuration setters,
the request operations and ``handle_event`` are the only mutation surface, and
all of them run on the caller's thread. The worker is only ever reached through
the WorkerChannel; the controller never waits for a particular reply.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import numpy as np
from pydantic import BaseModel

from whisper_session.l1_entities.audio_buffer import AudioBuffer
from whisper_session.l1_entities.errors import (
    DownloadError,
    ModelCheckError,
    TranscriptionError,
    WorkerError,
)
from whisper_session.l1_entities.model_config import AUTO_LANGUAGE, ModelConfig
from whisper_session.l1_entities.progress import ProgressItem
from whisper_session.l1_entities.session_state import SessionPhase
from whisper_session.l1_entities.transcript import TranscriptOutput
from whisper_session.l1_entities.worker_messages import (
    CheckModelRequest,
    CompleteEvent,
    DoneEvent,
    DownloadModelRequest,
    ErrorEvent,
    InitiateEvent,
    ModelCheckCompleteEvent,
    ModelReadyEvent,
    ProgressEvent,
    ReadyEvent,
    TranscribeRequest,
    UpdateEvent,
)
from whisper_session.l2_use_cases.ports.worker_channel import WorkerChannel
from whisper_session.l2_use_cases.progress_tracker import ProgressTracker
from whisper_session.l2_use_cases.utils.mixdown import mix_to_mono

log = logging.getLogger('ws.controller')

_POLL_INTERVAL = 0.25  # seconds; upper bound on a single channel wait inside wait_until


class SessionController:
    """Central state machine between the caller and the transcription worker."""

    def __init__(
        self,
        channel: WorkerChannel,
        config: ModelConfig | None = None,
        on_change: Callable[[SessionController], None] | None = None,
        on_error: Callable[[WorkerError], None] | None = None,
    ) -> None:
        self._channel = channel
        self._config = config.model_copy() if config is not None else ModelConfig()
        self._on_change = on_change
        self._on_error = on_error

        self._progress = ProgressTracker()
        self._output: TranscriptOutput | None = None
        self._is_busy = False
        self._is_model_loading = False
        self._is_model_ready = False
        self._is_checking_model = True
        self._download_requested = False
        self.last_error: WorkerError | None = None

    # --- read-only state ---

    @property
    def config(self) -> ModelConfig:
        return self._config.model_copy()

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def dtype(self) -> str:
        return self._config.dtype

    @property
    def gpu(self) -> bool:
        return self._config.gpu

    @property
    def subtask(self) -> str:
        return self._config.subtask

    @property
    def language(self) -> str:
        return self._config.language

    @property
    def output(self) -> TranscriptOutput | None:
        return self._output

    @property
    def is_busy(self) -> bool:
        return self._is_busy

    @property
    def is_model_loading(self) -> bool:
        return self._is_model_loading

    @property
    def is_model_ready(self) -> bool:
        return self._is_model_ready

    @property
    def is_checking_model(self) -> bool:
        return self._is_checking_model

    @property
    def progress_items(self) -> list[ProgressItem]:
        return self._progress.items

    @property
    def phase(self) -> SessionPhase:
        if self._is_checking_model:
            return SessionPhase.CHECKING_MODEL
        if self._is_busy:
            return SessionPhase.TRANSCRIBING
        if self._is_model_ready:
            return SessionPhase.MODEL_READY
        if self._is_model_loading or self._download_requested:
            return SessionPhase.DOWNLOADING
        return SessionPhase.MODEL_NOT_READY

    # --- configuration setters ---

    def set_model(self, model: str) -> None:
        self._config.model = model
        self._invalidate_readiness('model', model)

    def set_dtype(self, dtype: str) -> None:
        self._config.dtype = dtype
        self._invalidate_readiness('dtype', dtype)

    def set_gpu(self, gpu: bool) -> None:
        self._config.gpu = gpu
        self._invalidate_readiness('gpu', gpu)

    def set_language(self, language: str) -> None:
        """Inference-time only; readiness is unaffected."""
        self._config.language = language
        self._changed()

    def set_subtask(self, subtask: str) -> None:
        """Inference-time only; readiness is unaffected."""
        self._config.subtask = subtask
        self._changed()

    def _invalidate_readiness(self, field: str, value: object) -> None:
        # A loaded worker instance is bound to (model, dtype, gpu).
        if self._is_model_ready:
            log.debug('%s -> %r; model no longer ready', field, value)
        self._is_model_ready = False
        self._changed()

    # --- requests ---

    def check_model(self) -> None:
        """Ask the worker whether a model matching the config is already available."""
        self._is_checking_model = True
        self._changed()
        cfg = self._config
        self._send(CheckModelRequest(model=cfg.model, dtype=cfg.dtype, gpu=cfg.gpu), ModelCheckError)

    def expire_check(self) -> None:
        """Give up on an unacknowledged model check: not ready, not checking."""
        if not self._is_checking_model:
            return
        self._is_checking_model = False
        self._surface(ModelCheckError('The worker did not answer the model check'))
        self._changed()

    def download_model(self) -> None:
        """Fetch and load the configured model. Supersedes a check still awaiting its answer."""
        self._is_model_ready = False
        self._is_checking_model = False
        self._download_requested = True
        self._changed()
        cfg = self._config
        self._send(DownloadModelRequest(model=cfg.model, dtype=cfg.dtype, gpu=cfg.gpu), DownloadError)

    def transcribe_request(self, audio: np.ndarray) -> TranscribeRequest:
        """Build the transcribe request for mono *audio* under the current config."""
        cfg = self._config
        english_only = cfg.is_english_only
        return TranscribeRequest(
            audio=audio,
            model=cfg.model,
            dtype=cfg.dtype,
            gpu=cfg.gpu,
            subtask=None if english_only else cfg.subtask,
            language=None if english_only or cfg.language == AUTO_LANGUAGE else cfg.language,
        )

    def start(self, audio: AudioBuffer | None) -> bool:
        """Transcribe *audio*. Returns False (and does nothing) when there is no audio.

        Callers should check ``is_busy`` first; the worker serialises overlapping
        requests, the controller does not.
        """
        if audio is None:
            return False
        self._output = None
        self._is_busy = True
        self._changed()

        mono = mix_to_mono(audio)
        log.info(
            'Transcribing %d samples (%d ch, model=%s, subtask=%s, language=%s)',
            len(mono),
            audio.number_of_channels,
            self._config.model,
            self._config.subtask,
            self._config.language,
        )
        self._send(self.transcribe_request(mono), TranscriptionError)
        return True

    def on_input_change(self) -> None:
        """Drop the current output before the caller swaps in new input audio."""
        self._output = None
        self._changed()

    def _send(self, request: BaseModel, error_cls: type[WorkerError]) -> None:
        try:
            self._channel.send(request)
        except (OSError, RuntimeError) as exc:
            log.error('Failed to send %s: %s', getattr(request, 'action', '?'), exc, exc_info=True)
            self._clear_activity()
            self._surface(error_cls(str(exc)))
            self._changed()

    # --- events ---

    def handle_event(self, event: BaseModel) -> None:
        """Apply one worker event. Each event is safe to apply in isolation."""
        if isinstance(event, ProgressEvent):
            self._progress.update(event.file, event.progress)
        elif isinstance(event, InitiateEvent):
            self._is_model_loading = True
            self._progress.initiate(event)
        elif isinstance(event, DoneEvent):
            self._progress.done(event.file)
        elif isinstance(event, (UpdateEvent, CompleteEvent)):
            self._output = event.to_output()
            self._is_busy = isinstance(event, UpdateEvent)
        elif isinstance(event, ReadyEvent):
            self._is_model_loading = False
        elif isinstance(event, ModelReadyEvent):
            self._is_model_loading = False
            self._is_model_ready = True
            self._is_checking_model = False
            self._download_requested = False
        elif isinstance(event, ModelCheckCompleteEvent):
            self._is_checking_model = False
        elif isinstance(event, ErrorEvent):
            error = self._classify_error(event.data.message)
            self._clear_activity()
            self._surface(error)
        else:
            raise TypeError(f'Unknown worker event: {type(event).__name__}')
        self._changed()

    def process_next(self, timeout: float) -> BaseModel | None:
        """Wait up to *timeout* seconds for the next event and apply it."""
        event = self._channel.receive(timeout)
        if event is not None:
            self.handle_event(event)
        return event

    def wait_until(self, predicate: Callable[[SessionController], bool], timeout: float) -> bool:
        """Apply events until *predicate* holds. Returns False if *timeout* elapses first."""
        deadline = time.monotonic() + timeout
        while not predicate(self):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self.process_next(min(remaining, _POLL_INTERVAL))
        return True

    def close(self) -> None:
        self._channel.close()

    # --- helpers ---

    def _classify_error(self, message: str) -> WorkerError:
        if self._is_checking_model:
            return ModelCheckError(message)
        if self._is_busy:
            return TranscriptionError(message)
        if self._is_model_loading or self._download_requested:
            return DownloadError(message)
        return WorkerError(message)

    def _clear_activity(self) -> None:
        # Progress entries are abandoned, not rolled back.
        self._is_busy = False
        self._is_model_loading = False
        self._is_checking_model = False
        self._download_requested = False

    def _surface(self, error: WorkerError) -> None:
        self.last_error = error
        log.error('%s: %s', type(error).__name__, error)
        if self._on_error is not None:
            self._on_error(error)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
