"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from whisper_session.l1_entities.config import AppConfig
from whisper_session.l1_entities.errors import WorkerError
from whisper_session.l2_use_cases.ports.persistence import ExportGateway
from whisper_session.l2_use_cases.ports.worker_channel import WorkerChannel
from whisper_session.l2_use_cases.transcript_editor_use_case import TranscriptEditor
from whisper_session.l3_interface_adapters.controllers.session_controller import SessionController
from whisper_session.l3_interface_adapters.gateways.file_export import FileExportGateway
from whisper_session.l3_interface_adapters.gateways.remote_audio_fetcher import RemoteAudioFetcher
from whisper_session.l3_interface_adapters.gateways.subprocess_worker_channel import SubprocessWorkerChannel


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing."""

    def __init__(
        self,
        config: AppConfig,
        output_dir: Path,
        channel: WorkerChannel | None = None,
        on_change: Callable[[SessionController], None] | None = None,
        on_error: Callable[[WorkerError], None] | None = None,
    ) -> None:
        self.config = config
        self.output_dir = output_dir

        self.channel: WorkerChannel = channel or SubprocessWorkerChannel(models_dir=config.worker.models_dir)
        self.exporter: ExportGateway = FileExportGateway(output_dir)
        self.fetcher = RemoteAudioFetcher()
        self.editor = TranscriptEditor()

        self.controller = SessionController(
            channel=self.channel,
            config=config.model,
            on_change=on_change,
            on_error=on_error,
        )
