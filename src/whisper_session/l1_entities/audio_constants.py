"""Shared audio constants."""

SAMPLE_RATE = 16000  # whisper models expect 16 kHz input
