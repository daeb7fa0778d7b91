"""CLI entry point for whisper-session."""

from __future__ import annotations

import re
import sys
from datetime import datetime
from pathlib import Path

import click

from whisper_session import __version__

_FORMAT_CHOICES = ['txt', 'json', 'srt']


def _make_session_dir(base_dir: Path, label: str | None) -> Path:
    """Create a timestamped session subdirectory under base_dir."""
    stamp = datetime.now().strftime('%Y-%m-%d_%H%M%S')
    if label:
        safe_label = re.sub(r'[^\w\-]', '_', label)
        name = f'{stamp}_{safe_label}'
    else:
        name = stamp
    session_dir = base_dir / name
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def _build_overrides(
    output_dir: str | None,
    model: str | None,
    dtype: str | None,
    gpu: bool | None,
    task: str | None,
    language: str | None,
    formats: tuple[str, ...],
) -> dict:
    overrides: dict = {}
    model_section = {
        key: value
        for key, value in (
            ('model', model),
            ('dtype', dtype),
            ('gpu', gpu),
            ('subtask', task),
            ('language', language),
        )
        if value is not None
    }
    if model_section:
        overrides['model'] = model_section
    output_section: dict = {}
    if output_dir:
        output_section['directory'] = output_dir
    if formats:
        output_section['formats'] = list(formats)
    if output_section:
        overrides['output'] = output_section
    return overrides


@click.command()
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True),
    help='Path to YAML config file.',
)
@click.option(
    '-o',
    '--output-dir',
    default=None,
    type=click.Path(),
    help='Base output directory (session subfolder created automatically).',
)
@click.option(
    '-l',
    '--label',
    default=None,
    help="Session label appended to the timestamp folder (e.g. 'interview').",
)
@click.option('-m', '--model', default=None, help="Whisper model id (e.g. 'base', 'small.en', 'large-v3-turbo').")
@click.option('--dtype', default=None, help="Numeric precision (e.g. 'q8_0', 'q5_0', 'fp16').")
@click.option('--gpu/--no-gpu', default=None, help='Enable the accelerator.')
@click.option('--task', type=click.Choice(['transcribe', 'translate']), default=None, help='Transcribe or translate.')
@click.option('--language', default=None, help="Spoken language code, or 'auto' to detect.")
@click.option(
    '-f',
    '--audio-file',
    'audio_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Audio file to transcribe.',
)
@click.option('-u', '--url', 'audio_url', default=None, help='Remote audio URL to transcribe.')
@click.option(
    '--format',
    'formats',
    multiple=True,
    type=click.Choice(_FORMAT_CHOICES),
    help='Export format; repeat for several (default: from config).',
)
@click.version_option(version=__version__)
def cli(config_path, output_dir, label, model, dtype, gpu, task, language, audio_file, audio_url, formats):
    """whisper-session -- download a whisper model, transcribe audio, export TXT/JSON/SRT."""
    if (audio_file is None) == (audio_url is None):
        raise click.UsageError('Give exactly one of --audio-file or --url.')

    from whisper_session.l2_use_cases.utils.transcript_export import (  # noqa: PLC0415 -- deferred: not needed for --help
        ExportFormat,
    )
    from whisper_session.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from whisper_session.l4_frameworks_and_drivers.config import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_app_config,
    )

    try:
        overrides = _build_overrides(output_dir, model, dtype, gpu, task, language, formats)
        raw = YamlConfigLoader().load_raw(config_path, overrides=overrides or None)
        config = build_app_config(raw)
        export_formats = [ExportFormat(f) for f in config.output.formats]
    except (FileNotFoundError, ValueError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    out_dir = _make_session_dir(Path(config.output.directory), label)

    from whisper_session.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: worker stack not loaded for --help
        DependencyContainer,
    )
    from whisper_session.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: not needed for --help
        setup_file_logging,
    )
    from whisper_session.l4_frameworks_and_drivers.reporter import (  # noqa: PLC0415 -- deferred: not needed for --help
        SessionReporter,
    )
    from whisper_session.l4_frameworks_and_drivers.session_runner import (  # noqa: PLC0415 -- deferred: not needed for --help
        run_session,
    )

    setup_file_logging(out_dir)
    reporter = SessionReporter()
    container = DependencyContainer(
        config,
        out_dir,
        on_change=reporter.on_change,
        on_error=reporter.on_error,
    )
    run_session(
        container,
        audio_file=Path(audio_file) if audio_file else None,
        audio_url=audio_url,
        formats=export_formats,
    )
