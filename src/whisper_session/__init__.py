"""whisper-session: a transcription session controller for whisper.cpp workers."""

__version__ = '0.1.0'
