"""Session runner — headless check/download/transcribe/export against the worker."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from whisper_session.l1_entities.audio_buffer import AudioBuffer, AudioSourceKind
from whisper_session.l1_entities.errors import AudioDecodeError
from whisper_session.l1_entities.session_state import SessionPhase
from whisper_session.l2_use_cases.utils.transcript_export import ExportFormat
from whisper_session.l3_interface_adapters.gateways.audio_file_loader import decode_audio_bytes, load_audio_file
from whisper_session.l4_frameworks_and_drivers.container import DependencyContainer

log = logging.getLogger('ws.runner')


def _err(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def _fmt(seconds: float) -> str:
    h, rem = divmod(int(seconds), 3600)
    m, s = divmod(rem, 60)
    return f'{h:02d}:{m:02d}:{s:02d}'


def ensure_model_ready(container: DependencyContainer) -> bool:
    """Check for a usable model, downloading it when the worker has none. Returns readiness."""
    controller = container.controller
    wc = container.config.worker

    _err(f'Checking model {controller.model} ({controller.dtype}, gpu={controller.gpu})...')
    controller.check_model()
    if not controller.wait_until(lambda c: not c.is_checking_model, wc.check_timeout):
        controller.expire_check()
    if controller.is_model_ready:
        return True

    _err(f'Downloading model {controller.model} ({controller.dtype})...')
    controller.download_model()
    finished = controller.wait_until(lambda c: c.phase is not SessionPhase.DOWNLOADING, wc.download_timeout)
    if not finished:
        _err(f'Error: model download did not finish within {wc.download_timeout:.0f}s')
    return controller.is_model_ready


def load_input_audio(
    container: DependencyContainer,
    audio_file: Path | None = None,
    audio_url: str | None = None,
) -> AudioBuffer | None:
    """Decode the input from a file or URL. Failures are reported and yield None."""
    kind = AudioSourceKind.FILE if audio_file is not None else AudioSourceKind.URL
    try:
        if kind is AudioSourceKind.FILE:
            _err(f'Loading audio: {audio_file}')
            buffer = load_audio_file(audio_file)
        elif audio_url is not None:
            _err(f'Fetching audio: {audio_url}')
            fetched = container.fetcher.fetch(audio_url)
            if fetched is None:
                _err('Error: could not fetch audio; try again')
                return None
            buffer = decode_audio_bytes(fetched.data, label=audio_url)
        else:
            return None
    except (FileNotFoundError, AudioDecodeError) as exc:
        log.error('Failed to load %s audio: %s', kind.value, exc, exc_info=True)
        _err(f'Error: {exc}')
        return None
    log.info('Loaded %s audio: %.1fs, %d ch', kind.value, buffer.duration, buffer.number_of_channels)
    return buffer


def run_session(
    container: DependencyContainer,
    *,
    audio_file: Path | None = None,
    audio_url: str | None = None,
    formats: list[ExportFormat],
) -> list[Path]:
    """Transcribe one input and write the requested exports. Blocks until done; exits non-zero on failure."""
    controller = container.controller
    wc = container.config.worker

    try:
        if not ensure_model_ready(container):
            raise SystemExit(1)

        controller.on_input_change()
        audio = load_input_audio(container, audio_file=audio_file, audio_url=audio_url)
        if audio is None:
            raise SystemExit(1)
        _err(f'Duration: {_fmt(audio.duration)}  ({audio.length:,} frames, {audio.number_of_channels} ch)')

        error_before = controller.last_error
        _err('Transcribing...')
        controller.start(audio)
        if not controller.wait_until(lambda c: not c.is_busy, wc.transcribe_timeout):
            _err(f'Error: transcription did not finish within {wc.transcribe_timeout:.0f}s')
            raise SystemExit(1)
        if controller.last_error is not error_before or controller.output is None:
            raise SystemExit(1)

        output = controller.output
        tps = f', {output.tps:.2f} tokens/s' if output.tps else ''
        _err(f'\nTranscription complete — {len(output.chunks)} chunks{tps}.')

        container.editor.install(output)
        saved = [container.exporter.save(container.editor.export(fmt)) for fmt in formats]
        if saved:
            _err('\nSaved:\n' + '\n'.join(f'  {p}' for p in saved) + '\n')
        print(container.editor.export(ExportFormat.TXT).content)
        return saved
    finally:
        controller.close()
