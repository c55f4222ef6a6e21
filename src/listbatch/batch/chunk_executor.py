"""Execution of one chunk as a single backend round trip."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Sequence

from listbatch.config import RetryPolicy
from listbatch.errors import (
    ChunkTransportError,
    ListBatchError,
    LocalValidationError,
    OperationError,
)
from listbatch.models import OperationOutcome

from .operation import Operation, validate_operation
from .retry import run_with_retry

if TYPE_CHECKING:
    from listbatch.backends.base import BackendAdapter

logger = logging.getLogger(__name__)


class ChunkState(str, Enum):
    """Lifecycle of one chunk attempt."""

    BUILDING = "BUILDING"
    COMMITTING = "COMMITTING"
    SETTLED = "SETTLED"


@dataclass(slots=True)
class ChunkAttempt:
    """
    Progress of one attempt at a chunk.

    An attempt reaches SETTLED once commit() has returned or raised; `error`
    holds the transport failure in the latter case. An attempt whose context
    could not be opened stays in BUILDING with `error` set.
    """

    size: int
    state: ChunkState = ChunkState.BUILDING
    registered: int = 0
    error: Optional[ChunkTransportError] = None


class ChunkExecutor:
    """
    Run chunks against an injected backend.

    One attempt:
        1. Open one batch context (one network round trip).
        2. Validate and register each operation. A local failure is recorded
           for that operation only; registration of the rest continues.
        3. Commit once.
        4. Read every registered operation's future into an outcome.

    If the context cannot be opened or commit() raises, every registered
    operation of the chunk is failed with the transport error message, even
    operations the server might have applied. Operations that already failed
    locally keep their own message.

    Every attempt (retries included) is appended to `attempts` as a
    ChunkAttempt, in start order.
    """

    def __init__(
        self,
        backend: "BackendAdapter",
        *,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._backend = backend
        self._retry_policy = retry_policy
        self._sleep = sleep
        self.attempts: list[ChunkAttempt] = []

    async def execute(self, chunk: Sequence[Operation]) -> list[OperationOutcome]:
        """Execute a chunk. Never raises for operation or transport failures."""
        try:
            return await run_with_retry(
                lambda: self._attempt(chunk),
                self._retry_policy,
                sleep=self._sleep,
            )
        except ChunkTransportError as exc:
            logger.warning(
                "Chunk of %d operation(s) failed at transport level: %s",
                len(chunk),
                exc,
            )
            return fail_chunk(chunk, exc)

    async def _attempt(self, chunk: Sequence[Operation]) -> list[OperationOutcome]:
        attempt = ChunkAttempt(size=len(chunk))
        self.attempts.append(attempt)
        try:
            context = self._backend.open_batch_context()
        except Exception as exc:
            attempt.error = ChunkTransportError(
                f"Failed to open batch context: {_message(exc)}",
                cause=exc,
            )
            raise attempt.error from exc

        outcomes: dict[int, OperationOutcome] = {}
        registered: list[tuple[int, Operation, "asyncio.Future[Any]"]] = []

        for index, op in enumerate(chunk):
            try:
                validate_operation(op)
                future = context.register(op)
            except Exception as exc:
                outcomes[index] = failed_outcome(op, _as_local_error(exc))
                continue
            registered.append((index, op, future))

        attempt.registered = len(registered)
        attempt.state = ChunkState.COMMITTING
        logger.debug(
            "Chunk %s: committing %d operation(s), %d failed locally",
            attempt.state.value,
            len(registered),
            len(outcomes),
        )
        try:
            await context.commit()
        except Exception as exc:
            attempt.state = ChunkState.SETTLED
            _discard_futures(future for _, _, future in registered)
            attempt.error = ChunkTransportError(
                _message(exc),
                local_failures=outcomes,
                details={"error_type": exc.__class__.__name__},
                cause=exc,
            )
            raise attempt.error from exc

        attempt.state = ChunkState.SETTLED
        for index, op, future in registered:
            outcomes[index] = _read_future(op, future)

        logger.debug("Chunk %s: %d outcome(s)", attempt.state.value, len(outcomes))
        return [outcomes[index] for index in range(len(chunk))]


def fail_chunk(chunk: Sequence[Operation], exc: ChunkTransportError) -> list[OperationOutcome]:
    """Convert a chunk-level transport failure into per-operation outcomes."""
    return [
        exc.local_failures.get(index) or failed_outcome(op, exc)
        for index, op in enumerate(chunk)
    ]


def failed_outcome(op: object, exc: BaseException) -> OperationOutcome:
    return OperationOutcome(
        operation_id=getattr(op, "operation_id", ""),
        collection=getattr(op, "collection", ""),
        kind=_kind_name(op),
        success=False,
        error_message=_message(exc),
        error_type=exc.__class__.__name__,
        record_id=getattr(op, "record_id", None),
    )


def _success_outcome(op: Operation, data: Any) -> OperationOutcome:
    return OperationOutcome(
        operation_id=op.operation_id,
        collection=op.collection,
        kind=op.kind.value,
        success=True,
        data=data,
        record_id=op.record_id,
    )


def _read_future(op: Operation, future: "asyncio.Future[Any]") -> OperationOutcome:
    if not future.done():
        future.cancel()
        return failed_outcome(op, OperationError("Operation was not resolved by the backend"))
    if future.cancelled():
        return failed_outcome(op, OperationError("Operation was cancelled by the backend"))

    exc = future.exception()
    if exc is not None:
        return failed_outcome(op, exc)
    return _success_outcome(op, future.result())


def _discard_futures(futures) -> None:
    # Retrieve exceptions so asyncio does not report them as never retrieved.
    for future in futures:
        if not future.done():
            future.cancel()
        elif not future.cancelled():
            future.exception()


def _as_local_error(exc: Exception) -> ListBatchError:
    if isinstance(exc, ListBatchError):
        return exc
    return LocalValidationError(_message(exc), cause=exc)


def _kind_name(op: object) -> str:
    kind = getattr(op, "kind", None)
    if isinstance(kind, Enum):
        return str(kind.value)
    if kind is None:
        return type(op).__name__
    return str(kind)


def _message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__
