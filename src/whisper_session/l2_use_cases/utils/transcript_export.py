"""Transcript export — pure renderers for TXT, JSON and SRT."""

from __future__ import annotations

import enum
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass

from whisper_session.l1_entities.edit_overlay import EditOverlay
from whisper_session.l1_entities.transcript import TranscriptChunk

# json.dumps(indent=2) puts each timestamp element on its own line; fold them back.
_TIMESTAMP_ARRAY = re.compile(r'( {4}"timestamp": )\[\s+(\S+)\s+(\S+)\s+\]', re.MULTILINE)


class ExportFormat(enum.Enum):
    TXT = 'txt'
    JSON = 'json'
    SRT = 'srt'

    @property
    def filename(self) -> str:
        return f'transcript.{self.value}'

    @property
    def mime_type(self) -> str:
        return 'application/json' if self is ExportFormat.JSON else 'text/plain'


@dataclass(frozen=True)
class ExportArtifact:
    """A rendered export, ready to be written or offered for download."""

    filename: str
    mime_type: str
    content: str


def _js_number(value: float | None) -> float | int | None:
    """Render integral floats the way a JSON number would be written by hand (0, not 0.0)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def format_srt_time(seconds: float) -> str:
    """Format seconds as an SRT timestamp, HH:MM:SS,mmm."""
    total_ms = max(int(round(seconds * 1000)), 0)
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1000)
    return f'{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}'


def format_srt_time_range(start: float, end: float) -> str:
    return f'{format_srt_time(start)} --> {format_srt_time(end)}'


def effective_texts(chunks: Sequence[TranscriptChunk], overlay: EditOverlay) -> list[str]:
    chunk_list = list(chunks)
    return [overlay.text_for(i, chunk_list) for i in range(len(chunk_list))]


def export_txt(chunks: Sequence[TranscriptChunk], overlay: EditOverlay) -> str:
    """Concatenate the effective texts; no separator is injected between chunks."""
    return ''.join(effective_texts(chunks, overlay)).strip()


def export_json(chunks: Sequence[TranscriptChunk], overlay: EditOverlay) -> str:
    items = []
    for chunk, text in zip(chunks, effective_texts(chunks, overlay)):
        start, end = chunk.timestamp
        item = chunk.model_dump(mode='json')
        item['timestamp'] = [_js_number(start), _js_number(end)]
        item['text'] = text
        items.append(item)
    rendered = json.dumps(items, indent=2, ensure_ascii=False)
    return _TIMESTAMP_ARRAY.sub(r'\1[\2 \3]', rendered)


def export_srt(chunks: Sequence[TranscriptChunk], overlay: EditOverlay) -> str:
    """One cue per chunk; open-ended chunks become zero-duration cues."""
    parts: list[str] = []
    for i, (chunk, text) in enumerate(zip(chunks, effective_texts(chunks, overlay)), start=1):
        parts.append(f'{i}\n{format_srt_time_range(chunk.start, chunk.end)}\n{text}\n\n')
    return ''.join(parts)


_RENDERERS = {
    ExportFormat.TXT: export_txt,
    ExportFormat.JSON: export_json,
    ExportFormat.SRT: export_srt,
}


def render(fmt: ExportFormat, chunks: Sequence[TranscriptChunk], overlay: EditOverlay) -> ExportArtifact:
    content = _RENDERERS[fmt](chunks, overlay)
    return ExportArtifact(filename=fmt.filename, mime_type=fmt.mime_type, content=content)
