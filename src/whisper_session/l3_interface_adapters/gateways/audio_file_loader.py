"""Gateway: audio decoding via ffmpeg/ffprobe subprocesses.

Decodes any format ffmpeg understands into a planar float32 AudioBuffer at
SAMPLE_RATE, keeping the original channel layout so the mixdown can fold it.
"""

from __future__ import annotations

import shutil
import subprocess  # noqa: S404 -- intentional: shells out to ffmpeg with a fixed arg list, not shell=True
from pathlib import Path

import numpy as np

from whisper_session.l1_entities.audio_buffer import AudioBuffer
from whisper_session.l1_entities.audio_constants import SAMPLE_RATE
from whisper_session.l1_entities.errors import AudioDecodeError

_FFMPEG_TIMEOUT = 300  # seconds
_PIPE = 'pipe:0'


def _require(tool: str) -> None:
    if shutil.which(tool) is None:
        raise AudioDecodeError(
            f'{tool} is required but not found on PATH.\n  macOS:  brew install ffmpeg\n  Debian: apt install ffmpeg'
        )


def _run(cmd: list[str], label: str, stdin: bytes | None = None) -> bytes:
    try:
        result = subprocess.run(cmd, input=stdin, capture_output=True, timeout=_FFMPEG_TIMEOUT)  # noqa: S603
    except subprocess.TimeoutExpired as exc:
        raise AudioDecodeError(f'{cmd[0]} timed out after {_FFMPEG_TIMEOUT}s processing: {label}') from exc
    except OSError as exc:
        raise AudioDecodeError(f'Failed to launch {cmd[0]}: {exc}') from exc

    if result.returncode != 0:
        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        raise AudioDecodeError(f'{cmd[0]} exited with code {result.returncode} for: {label}\n{stderr}')
    return result.stdout


def probe_channels(source: str, label: str, stdin: bytes | None = None) -> int:
    """Channel count of the first audio stream in *source* (a path or ``pipe:0``)."""
    _require('ffprobe')
    out = _run(
        [
            'ffprobe',
            '-v',
            'error',
            '-select_streams',
            'a:0',
            '-show_entries',
            'stream=channels',
            '-of',
            'csv=p=0',
            source,
        ],
        label,
        stdin,
    )
    text = out.decode('utf-8', errors='replace').strip()
    try:
        channels = int(text.splitlines()[0])
    except (IndexError, ValueError) as exc:
        raise AudioDecodeError(f'No audio stream found in: {label}') from exc
    if channels < 1:
        raise AudioDecodeError(f'No audio stream found in: {label}')
    return channels


def _decode(source: str, label: str, stdin: bytes | None = None) -> AudioBuffer:
    channels = probe_channels(source, label, stdin)
    _require('ffmpeg')
    cmd = [
        'ffmpeg',
        '-i',
        source,
        '-ar',
        str(SAMPLE_RATE),
        '-ac',
        str(channels),
        '-f',
        'f32le',
        '-v',
        'quiet',
        'pipe:1',
    ]
    raw = _run(cmd, label, stdin)
    if not raw:
        raise AudioDecodeError(f'ffmpeg produced no audio output for: {label}')

    samples = np.frombuffer(raw, dtype=np.float32)
    if len(samples) < channels:
        raise AudioDecodeError(f'Audio appears to be empty: {label}')
    return AudioBuffer.from_interleaved(samples, channels, SAMPLE_RATE)


def load_audio_file(path: Path) -> AudioBuffer:
    """Decode *path* into an AudioBuffer at 16 kHz.

    Raises:
        FileNotFoundError: audio file does not exist.
        AudioDecodeError: ffmpeg/ffprobe missing, conversion failed, timed out,
                          or the file contains no decodable audio.
    """
    if not path.exists():
        raise FileNotFoundError(f'Audio file not found: {path}')
    return _decode(str(path), str(path))


def decode_audio_bytes(data: bytes, label: str = '<memory>') -> AudioBuffer:
    """Decode an in-memory encoded file (a download or a recording) into an AudioBuffer."""
    if not data:
        raise AudioDecodeError(f'No audio data to decode: {label}')
    return _decode(_PIPE, label, data)
