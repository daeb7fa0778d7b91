"""Decoded multi-channel audio entity."""

from __future__ import annotations

import enum

import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator

from whisper_session.l1_entities.audio_constants import SAMPLE_RATE


class AudioSourceKind(enum.Enum):
    FILE = 'file'
    URL = 'url'


class AudioBuffer(BaseModel):
    """Planar float32 audio: one 1-D array per channel, all the same length."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    channels: list[np.ndarray]
    sample_rate: int = SAMPLE_RATE

    @field_validator('channels')
    @classmethod
    def _check_channels(cls, value: list[np.ndarray]) -> list[np.ndarray]:
        if not value:
            raise ValueError('AudioBuffer needs at least one channel')
        lengths = {len(ch) for ch in value}
        if len(lengths) != 1:
            raise ValueError(f'Channel lengths differ: {sorted(lengths)}')
        return [np.asarray(ch, dtype=np.float32) for ch in value]

    @classmethod
    def from_interleaved(cls, samples: np.ndarray, channel_count: int, sample_rate: int = SAMPLE_RATE) -> AudioBuffer:
        """Split interleaved frames (L R L R ...) into planar channels."""
        frames = len(samples) // channel_count
        shaped = samples[: frames * channel_count].reshape(frames, channel_count)
        return cls(channels=[shaped[:, c].copy() for c in range(channel_count)], sample_rate=sample_rate)

    @property
    def number_of_channels(self) -> int:
        return len(self.channels)

    @property
    def length(self) -> int:
        """Frame count."""
        return len(self.channels[0])

    @property
    def duration(self) -> float:
        return self.length / self.sample_rate

    def get_channel_data(self, index: int) -> np.ndarray:
        return self.channels[index]
