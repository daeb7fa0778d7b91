"""Session phases derived from the controller's flags."""

from __future__ import annotations

import enum


class SessionPhase(enum.Enum):
    CHECKING_MODEL = 'checking_model'
    MODEL_NOT_READY = 'model_not_ready'
    DOWNLOADING = 'downloading'
    MODEL_READY = 'model_ready'
    TRANSCRIBING = 'transcribing'
