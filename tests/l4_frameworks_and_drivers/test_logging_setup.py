"""Tests for file-based debug logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

from whisper_session.l4_frameworks_and_drivers.logging_setup import setup_file_logging


class TestSetupFileLogging:
    def test_writes_debug_log(self, tmp_output_dir: Path):
        root = logging.getLogger('ws')
        before = list(root.handlers)
        try:
            log_path = setup_file_logging(tmp_output_dir)
            logging.getLogger('ws.controller').debug('probe message')
            for handler in root.handlers:
                handler.flush()

            assert log_path == tmp_output_dir / 'ws_debug.log'
            text = log_path.read_text(encoding='utf-8')
            assert 'Debug logging started' in text
            assert 'probe message' in text
        finally:
            for handler in root.handlers[len(before) :]:
                handler.close()
                root.removeHandler(handler)
