"""Application config defaults and the build_app_config factory."""

from __future__ import annotations

import copy

from whisper_session.l1_entities.config import AppConfig
from whisper_session.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'model': {
        'model': 'base',
        'dtype': 'q8_0',
        'gpu': False,
        'subtask': 'transcribe',
        'language': 'auto',
    },
    'worker': {
        'check_timeout': 60.0,
        'download_timeout': 3600.0,
        'transcribe_timeout': 3600.0,
        'models_dir': None,
    },
    'output': {
        'directory': './output',
        'formats': ['txt', 'json', 'srt'],
    },
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return AppConfig.model_validate(merged)
