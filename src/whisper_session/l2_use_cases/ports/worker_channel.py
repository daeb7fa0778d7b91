"""Port: bidirectional asynchronous channel to the transcription worker."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel


class WorkerChannel(Protocol):
    """Requests go out with ``send``; events come back one at a time from ``receive``.

    There is no request/response correlation. Events are self-describing.
    """

    def send(self, request: BaseModel) -> None:
        """Post a request. Must not block on the worker."""
        ...

    def receive(self, timeout: float) -> BaseModel | None:
        """Return the next event, or None if none arrived within *timeout* seconds."""
        ...

    def close(self) -> None:
        """Shut the worker down and release the channel."""
        ...
