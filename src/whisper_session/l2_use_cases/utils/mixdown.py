"""Channel mixdown — reduce a decoded AudioBuffer to the mono samples whisper expects."""

from __future__ import annotations

import math

import numpy as np

from whisper_session.l1_entities.audio_buffer import AudioBuffer

SCALING_FACTOR = math.sqrt(2)


def mix_to_mono(buffer: AudioBuffer) -> np.ndarray:
    """Return one float32 channel with ``buffer.length`` samples.

    Stereo is folded with an equal-power downmix, ``sqrt(2) * (L + R) / 2``.
    Mono passes through unchanged. With more than two channels only the
    first channel is used.
    """
    if buffer.number_of_channels == 2:
        left = buffer.get_channel_data(0)
        right = buffer.get_channel_data(1)
        return (SCALING_FACTOR * (left + right) / 2).astype(np.float32)
    return buffer.get_channel_data(0)
