"""Gateway: remote audio download with supersede-on-new-request cancellation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

import requests

log = logging.getLogger('ws.fetch')

_DEFAULT_MIME = 'audio/wav'
_CHUNK_SIZE = 64 * 1024


def normalize_mime_type(content_type: str | None) -> str:
    """Missing or ``audio/wave`` content types become ``audio/wav``; parameters are dropped."""
    if not content_type:
        return _DEFAULT_MIME
    mime = content_type.split(';', 1)[0].strip().lower()
    if not mime or mime == 'audio/wave':
        return _DEFAULT_MIME
    return mime


@dataclass(frozen=True)
class FetchedAudio:
    url: str
    data: bytes
    mime_type: str


class RemoteAudioFetcher:
    """Downloads audio by URL; starting a new fetch aborts the one in flight.

    An aborted or failed fetch returns None. Failures are logged rather than
    raised, since the caller can simply try again.
    """

    def __init__(self, session: requests.Session | None = None, timeout: float = 30.0) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout
        self._lock = threading.Lock()
        self._current: threading.Event | None = None

    def cancel(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.set()

    def fetch(self, url: str, on_progress: Callable[[float | None], None] | None = None) -> FetchedAudio | None:
        """Download *url*. *on_progress* gets fractions 0..1, then None if the fetch is abandoned."""
        abort = threading.Event()
        with self._lock:
            if self._current is not None:
                self._current.set()
            self._current = abort

        try:
            if on_progress:
                on_progress(0.0)
            with self._session.get(url, stream=True, timeout=self._timeout) as response:
                response.raise_for_status()
                total = int(response.headers.get('content-length', 0) or 0)
                buf = bytearray()
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    if abort.is_set():
                        break
                    buf.extend(chunk)
                    if on_progress and total > 0:
                        on_progress(min(len(buf) / total, 1.0))
                mime_type = normalize_mime_type(response.headers.get('content-type'))
        except requests.RequestException as exc:
            log.warning('Request failed or aborted: %s (%s)', url, exc)
            if on_progress:
                on_progress(None)
            return None
        finally:
            with self._lock:
                if self._current is abort:
                    self._current = None

        if abort.is_set():
            log.info('Fetch of %s superseded; discarding', url)
            if on_progress:
                on_progress(None)
            return None
        log.info('Fetched %d bytes (%s) from %s', len(buf), mime_type, url)
        return FetchedAudio(url=url, data=bytes(buf), mime_type=mime_type)
