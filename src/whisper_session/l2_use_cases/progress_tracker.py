"""Use case: track in-flight model file transfers by file key."""

from __future__ import annotations

import logging

from whisper_session.l1_entities.progress import ProgressItem
from whisper_session.l1_entities.worker_messages import InitiateEvent

log = logging.getLogger('ws.progress')


class ProgressTracker:
    """Mapping of file key to ProgressItem, in discovery order.

    At most one entry exists per file. ``progress`` and ``done`` for a file that
    is not tracked are ignored, so late or duplicate events are harmless.
    """

    def __init__(self) -> None:
        self._items: dict[str, ProgressItem] = {}

    def initiate(self, event: InitiateEvent) -> ProgressItem:
        item = ProgressItem(
            file=event.file,
            name=event.name,
            status=event.status,
            loaded=event.loaded,
            total=event.total,
        )
        if event.file in self._items:
            log.debug('Re-initiated %s; replacing existing entry', event.file)
        self._items[event.file] = item
        return item

    def update(self, file: str, progress: float) -> bool:
        """Set the progress fraction of *file*. Returns False if it is not tracked."""
        item = self._items.get(file)
        if item is None:
            return False
        item.progress = progress
        return True

    def done(self, file: str) -> bool:
        """Drop *file*. Returns False if it was not tracked."""
        return self._items.pop(file, None) is not None

    def get(self, file: str) -> ProgressItem | None:
        return self._items.get(file)

    @property
    def items(self) -> list[ProgressItem]:
        return list(self._items.values())

    @property
    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, file: object) -> bool:
        return file in self._items
