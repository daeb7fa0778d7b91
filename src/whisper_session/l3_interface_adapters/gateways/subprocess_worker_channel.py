"""Gateway: transcription worker in a subprocess — implements WorkerChannel port."""

from __future__ import annotations

import logging
import multiprocessing as mp
import os
import time
from multiprocessing.connection import Connection
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from whisper_session.l1_entities.worker_messages import ErrorEvent, parse_worker_event, parse_worker_request

log = logging.getLogger('ws.channel')


def _subprocess_entry(conn: Any, models_dir: str | None) -> None:
    """Subprocess main: build the request handler, then loop on requests until the None sentinel.

    Permanently redirects C-level stdout/stderr to /dev/null so whisper.cpp's
    fprintf() calls do not escape to the parent terminal.
    """
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, 1)
    os.dup2(devnull, 2)
    os.close(devnull)

    def _emit(event: BaseModel) -> None:
        conn.send(event.model_dump(mode='json'))

    try:
        from whisper_session.l2_use_cases.worker_request_handler import (  # noqa: PLC0415 -- deferred: subprocess only
            WorkerRequestHandler,
        )
        from whisper_session.l3_interface_adapters.gateways.hf_model_store import (  # noqa: PLC0415 -- deferred: subprocess only
            HfModelStore,
        )
        from whisper_session.l3_interface_adapters.gateways.whisper_transcriber import (  # noqa: PLC0415 -- deferred: subprocess only
            WhisperTranscriber,
        )

        store = HfModelStore(Path(models_dir) if models_dir else None)
        handler = WorkerRequestHandler(store, WhisperTranscriber, _emit)
    except Exception as e:
        _emit(ErrorEvent.from_message(f'Worker failed to start: {e}'))
        conn.close()
        return

    while True:
        try:
            payload = conn.recv()
        except EOFError:
            break
        if payload is None:
            break
        try:
            request = parse_worker_request(payload)
        except ValidationError as e:
            _emit(ErrorEvent.from_message(f'Malformed request: {e}'))
            continue
        handler.handle(request)

    handler.close()
    conn.close()


class SubprocessWorkerChannel:
    """Worker channel backed by a spawned child process.

    whisper.cpp holds the GIL for the whole of inference, and model downloads
    take minutes; running both in a child keeps the controller responsive.
    Requests and events cross a duplex multiprocessing.Pipe as plain dicts.
    The child is started lazily by the first ``send``.
    """

    def __init__(self, models_dir: str | None = None) -> None:
        self._models_dir = models_dir
        self._process: Any = None  # SpawnProcess; typed as Any — context returns a subclass
        self._conn: Connection | None = None

    @property
    def is_running(self) -> bool:
        return self._conn is not None

    def start(self) -> None:
        ctx = mp.get_context('spawn')
        parent_conn, child_conn = ctx.Pipe(duplex=True)
        self._process = ctx.Process(
            target=_subprocess_entry,
            args=(child_conn, self._models_dir),
            daemon=True,
        )
        self._process.start()
        child_conn.close()  # parent only needs its own end
        self._conn = parent_conn
        log.debug('Worker process started (pid=%s)', getattr(self._process, 'pid', '?'))

    def send(self, request: BaseModel) -> None:
        if self._conn is None:
            self.start()
        assert self._conn is not None
        self._conn.send(request.model_dump())

    def receive(self, timeout: float) -> BaseModel | None:
        if self._conn is None:
            time.sleep(timeout)
            return None
        try:
            if not self._conn.poll(timeout):
                return None
            payload = self._conn.recv()
        except (EOFError, OSError) as e:
            log.error('Worker channel closed: %s', e)
            self._reap()
            return ErrorEvent.from_message('Worker process exited unexpectedly')

        try:
            return parse_worker_event(payload)
        except ValidationError as e:
            log.warning('Malformed worker event %r: %s', payload, e)
            return ErrorEvent.from_message(f'Malformed worker event: {e}')

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.send(None)
            except Exception:  # noqa: S110 — best-effort shutdown signal; pipe may already be closed
                pass
        self._reap()

    def _reap(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except Exception:  # noqa: S110 — best-effort; ignore double-close
                pass
            self._conn = None
        if self._process is not None:
            self._process.join(timeout=5)
            if self._process.is_alive():
                self._process.terminate()
                self._process.join(timeout=1)  # reap zombie after SIGTERM
            self._process = None
