"""Backend adapter protocol (the injected network capability)."""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

from listbatch.batch.operation import Operation


class BatchContext(Protocol):
    """
    Deferred-execution context covering exactly one network round trip.

    register() is synchronous and returns a future that the context resolves
    (result or exception) no later than the moment commit() returns. It may
    raise to reject an operation locally (e.g. ConfigurationError for a kind
    the backend does not support).

    commit() performs the round trip. It raises only when the round trip as a
    whole failed before individual operations were resolved.
    """

    def register(self, op: Operation) -> "asyncio.Future[Any]":
        ...

    async def commit(self) -> None:
        ...


class BackendAdapter(Protocol):
    """Opens batch contexts against a remote list-based store."""

    def open_batch_context(self) -> BatchContext:
        ...
