"""Gateway: HuggingFace whisper.cpp model store — implements ModelStore port."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from huggingface_hub import hf_hub_download
from pydantic import BaseModel
from pywhispercpp.constants import MODELS_DIR

from whisper_session.l1_entities.errors import ModelResolutionError
from whisper_session.l1_entities.model_config import ModelConfig
from whisper_session.l1_entities.worker_messages import DoneEvent, InitiateEvent, ProgressEvent

log = logging.getLogger('ws.models')

WHISPER_CPP_REPO = 'ggerganov/whisper.cpp'

# dtypes served by the un-suffixed ggml file
FULL_PRECISION_DTYPES = frozenset({'fp32', 'fp16', 'f32', 'f16'})


def model_filename(model: str, dtype: str) -> str:
    """ggml file name for *model* at *dtype*, e.g. ``ggml-base.en-q8_0.bin``."""
    if dtype in FULL_PRECISION_DTYPES:
        return f'ggml-{model}.bin'
    return f'ggml-{model}-{dtype}.bin'


def _make_progress_class(file: str, emit: Callable[[BaseModel], None]) -> type:
    """Create a tqdm-compatible class that reports *file*'s transfer as progress events."""

    class _ProgressReporter:
        def __init__(self, *args, **kwargs):
            self.total: int = kwargs.get('total', 0) or 0
            self.n: int = kwargs.get('initial', 0) or 0
            if self.total > 0:
                self._report()

        def _report(self) -> None:
            emit(
                ProgressEvent(
                    file=file,
                    progress=min(self.n / self.total, 1.0),
                    loaded=self.n,
                    total=self.total,
                )
            )

        def update(self, n: int = 1) -> None:
            self.n += n
            if self.total > 0:
                self._report()

        def close(self) -> None:
            pass

        def set_description(self, *a, **kw) -> None:
            pass

        def set_description_str(self, *a, **kw) -> None:
            pass

        def refresh(self) -> None:
            pass

        def __enter__(self):
            return self

        def __exit__(self, *args):
            self.close()

    return _ProgressReporter


class HfModelStore:
    """Resolves ModelConfigs to ggml files under the pywhispercpp models dir, downloading from HF."""

    def __init__(self, models_dir: Path | None = None, repo_id: str = WHISPER_CPP_REPO) -> None:
        self._models_dir = Path(models_dir) if models_dir is not None else Path(MODELS_DIR) / 'whisper-cpp'
        self._repo_id = repo_id

    @property
    def models_dir(self) -> Path:
        return self._models_dir

    def files_for(self, config: ModelConfig) -> list[str]:
        return [model_filename(config.model, config.dtype)]

    def cached_path(self, config: ModelConfig) -> str | None:
        if Path(config.model).is_absolute():
            return config.model if Path(config.model).exists() else None
        paths = [self._models_dir / name for name in self.files_for(config)]
        if all(p.exists() for p in paths):
            return str(paths[0])
        return None

    def download(self, config: ModelConfig, emit: Callable[[BaseModel], None]) -> str:
        if Path(config.model).is_absolute():
            if not Path(config.model).exists():
                raise ModelResolutionError(f'Model file not found: {config.model}')
            return config.model

        self._models_dir.mkdir(parents=True, exist_ok=True)
        paths: list[Path] = []
        for filename in self.files_for(config):
            local_path = self._models_dir / filename
            emit(InitiateEvent(file=filename, name=config.model))
            if not local_path.exists():
                log.info('Downloading %s from %s', filename, self._repo_id)
                try:
                    hf_hub_download(
                        repo_id=self._repo_id,
                        filename=filename,
                        local_dir=self._models_dir,
                        tqdm_class=_make_progress_class(filename, emit),
                    )
                except Exception as exc:
                    raise ModelResolutionError(f'Failed to download {filename}: {exc}') from exc
            emit(DoneEvent(file=filename))
            paths.append(local_path)
        return str(paths[0])
