"""Tests for transcript entities."""

import pytest
from pydantic import ValidationError

from whisper_session.l1_entities.transcript import TranscriptChunk, TranscriptOutput, format_audio_timestamp


class TestTranscriptChunk:
    def test_creation(self):
        chunk = TranscriptChunk(text=' Hello', timestamp=(1.0, 2.0))
        assert chunk.text == ' Hello'
        assert chunk.start == 1.0
        assert chunk.end == 2.0

    def test_open_ended_end_defaults_to_start(self):
        chunk = TranscriptChunk(text=' tail', timestamp=(3.5, None))
        assert chunk.timestamp[1] is None
        assert chunk.end == 3.5

    def test_timestamp_accepts_list(self):
        chunk = TranscriptChunk.model_validate({'text': 'x', 'timestamp': [0, 1.5]})
        assert chunk.timestamp == (0.0, 1.5)

    def test_missing_timestamp_raises(self):
        with pytest.raises(ValidationError):
            TranscriptChunk(text='x')  # type: ignore[call-arg]


class TestTranscriptOutput:
    def test_defaults(self):
        out = TranscriptOutput(is_busy=True)
        assert out.text == ''
        assert out.chunks == []
        assert out.tps is None


class TestFormatAudioTimestamp:
    def test_under_an_hour(self):
        assert format_audio_timestamp(0) == '00:00'
        assert format_audio_timestamp(75.9) == '01:15'

    def test_past_the_hour(self):
        assert format_audio_timestamp(3725) == '01:02:05'
