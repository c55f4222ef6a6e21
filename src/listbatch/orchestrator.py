"""BatchOrchestrator: builds, partitions and executes batches (v1)."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Optional, Sequence

from listbatch.backends.base import BackendAdapter
from listbatch.batch import (
    BuildSession,
    ChunkExecutor,
    Operation,
    OperationQueue,
    aggregate,
    partition,
)
from listbatch.batch.chunk_executor import failed_outcome
from listbatch.config import EngineConfig
from listbatch.errors import InvalidArgumentError, InvalidStateError
from listbatch.models import BatchSummary, OperationOutcome

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """
    High-level batch builder: Build -> Execute -> (state cleared) -> Build ...

    Notes:
        - One instance is single-use per batch cycle. Do not call execute()
          concurrently with itself or mutate queues while it is in flight;
          construct one orchestrator per concurrent batch instead.
        - Operations added while execute() is in flight are not part of that
          batch and are discarded when it finishes, together with the rest
          of the cycle state.
        - execute() never raises for operation or chunk failures. Inspect
          BatchSummary.success and BatchSummary.errors.
    """

    def __init__(
        self,
        backend: BackendAdapter,
        config: Optional[EngineConfig] = None,
    ) -> None:
        if config is not None and not isinstance(config, EngineConfig):
            raise InvalidArgumentError("config must be an EngineConfig")
        self._backend = backend
        self._config = config or EngineConfig()
        self._session = BuildSession()
        self._queues: dict[str, OperationQueue] = {}
        self._executing = False

    # ----------------------------
    # Build phase
    # ----------------------------
    def for_collection(self, name: str) -> OperationQueue:
        """Return (creating if necessary) the operation queue for collection `name`."""
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("collection name must be a non-empty string")

        queue = self._queues.get(name)
        if queue is None:
            queue = OperationQueue(name, self._session)
            self._queues[name] = queue
        return queue

    @property
    def pending_operations(self) -> list[Operation]:
        """All operations added so far, in global insertion order."""
        return self._session.operations

    def __len__(self) -> int:
        return len(self._session)

    def clear(self) -> None:
        """Drop pending operations and queues without executing them."""
        self._session.drain()
        self._queues.clear()

    # ----------------------------
    # Configuration
    # ----------------------------
    def get_config(self) -> EngineConfig:
        """Return the current configuration (immutable)."""
        return self._config

    def update_config(self, **changes: Any) -> "BatchOrchestrator":
        """
        Replace configuration fields.

        Raises:
            InvalidArgumentError: if a field is unknown or a value is invalid.
        """
        try:
            self._config = dataclasses.replace(self._config, **changes)
        except TypeError as exc:
            raise InvalidArgumentError(
                "Unknown EngineConfig field",
                details={"fields": sorted(changes)},
                cause=exc,
            ) from exc
        return self

    # ----------------------------
    # Execute phase
    # ----------------------------
    async def execute(self) -> BatchSummary:
        """
        Execute every pending operation and return the BatchSummary.

        Policy:
            - Zero operations: empty successful summary, backend untouched.
            - Partition into chunks of at most max_operations_per_chunk.
            - Sequential: chunks awaited strictly in order; a failed chunk
              does not stop the next one.
            - Concurrent: all chunks dispatched at once; waits for all.
            - State is cleared after all chunks settle.

        Raises:
            InvalidStateError: if execute() is already running on this instance.
        """
        if self._executing:
            raise InvalidStateError(
                "execute() is already in progress on this orchestrator; "
                "use a separate instance per concurrent batch."
            )

        operations = self._session.operations
        if not operations:
            self.clear()
            return BatchSummary.empty()

        self._executing = True
        try:
            config = self._config
            chunks = partition(operations, config.max_operations_per_chunk)
            logger.info(
                "Executing %d operation(s) in %d chunk(s) (%s)",
                len(operations),
                len(chunks),
                "concurrent" if config.concurrent_chunks else "sequential",
            )

            executor = ChunkExecutor(self._backend, retry_policy=config.retry_policy)
            if config.concurrent_chunks:
                chunk_outcomes = await self._run_concurrent(executor, chunks)
            else:
                chunk_outcomes = await self._run_sequential(executor, chunks)

            summary = aggregate(chunk_outcomes)
            logger.info(
                "Batch finished: %d succeeded, %d failed",
                summary.successful_operations,
                summary.failed_operations,
            )
            return summary
        finally:
            self.clear()
            self._executing = False

    # ----------------------------
    # Internals
    # ----------------------------
    async def _run_sequential(
        self,
        executor: ChunkExecutor,
        chunks: list[list[Operation]],
    ) -> list[list[OperationOutcome]]:
        results: list[list[OperationOutcome]] = []
        for chunk in chunks:
            try:
                results.append(await executor.execute(chunk))
            except Exception as exc:
                results.append(_fail_all(chunk, exc))
        return results

    async def _run_concurrent(
        self,
        executor: ChunkExecutor,
        chunks: list[list[Operation]],
    ) -> list[list[OperationOutcome]]:
        settled = await asyncio.gather(
            *(executor.execute(chunk) for chunk in chunks),
            return_exceptions=True,
        )
        results: list[list[OperationOutcome]] = []
        for chunk, result in zip(chunks, settled):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                results.append(_fail_all(chunk, result))
            else:
                results.append(result)
        return results


def create_orchestrator(
    backend: BackendAdapter,
    config: Optional[EngineConfig] = None,
) -> BatchOrchestrator:
    """Create a new orchestrator bound to backend."""
    return BatchOrchestrator(backend, config)


def _fail_all(chunk: Sequence[Operation], exc: Exception) -> list[OperationOutcome]:
    logger.error("Chunk execution failed unexpectedly: %s", exc)
    return [failed_outcome(op, exc) for op in chunk]
