"""Tests for DependencyContainer wiring."""

from __future__ import annotations

from pathlib import Path

from tests.conftest import FakeWorkerChannel
from whisper_session.l1_entities.config import AppConfig
from whisper_session.l3_interface_adapters.gateways.file_export import FileExportGateway
from whisper_session.l3_interface_adapters.gateways.remote_audio_fetcher import RemoteAudioFetcher
from whisper_session.l3_interface_adapters.gateways.subprocess_worker_channel import SubprocessWorkerChannel
from whisper_session.l4_frameworks_and_drivers.config import build_app_config


class TestDependencyContainer:
    def test_default_wiring(self, default_config: AppConfig, tmp_output_dir: Path):
        from whisper_session.l4_frameworks_and_drivers.container import DependencyContainer

        container = DependencyContainer(default_config, tmp_output_dir)
        assert isinstance(container.channel, SubprocessWorkerChannel)
        assert not container.channel.is_running  # started lazily
        assert isinstance(container.exporter, FileExportGateway)
        assert isinstance(container.fetcher, RemoteAudioFetcher)
        assert container.editor.output is None

    def test_controller_gets_model_config(self, tmp_output_dir: Path):
        from whisper_session.l4_frameworks_and_drivers.container import DependencyContainer

        config = build_app_config({'model': {'model': 'tiny.en', 'gpu': True}})
        container = DependencyContainer(config, tmp_output_dir, channel=FakeWorkerChannel())
        assert container.controller.model == 'tiny.en'
        assert container.controller.gpu is True

    def test_injected_channel_and_callbacks(self, default_config: AppConfig, tmp_output_dir: Path):
        from whisper_session.l4_frameworks_and_drivers.container import DependencyContainer

        changes = []
        channel = FakeWorkerChannel()
        container = DependencyContainer(default_config, tmp_output_dir, channel=channel, on_change=changes.append)
        container.controller.check_model()
        assert channel.sent[0].action == 'check_model'
        assert changes

    def test_output_dir_created(self, default_config: AppConfig, tmp_path: Path):
        from whisper_session.l4_frameworks_and_drivers.container import DependencyContainer

        out = tmp_path / 'session'
        DependencyContainer(default_config, out, channel=FakeWorkerChannel())
        assert out.is_dir()
