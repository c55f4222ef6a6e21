"""Per-collection operation builder."""

from __future__ import annotations

import itertools
from typing import Any, Iterable, Optional

from listbatch.models.results import RecordId
from listbatch.util.ids import new_operation_id

from .operation import (
    AddOperation,
    DeleteOperation,
    FieldValue,
    Operation,
    UpdateOperation,
    ValidateAddByPathOperation,
    ValidateUpdateByIdOperation,
)


class BuildSession:
    """
    Master operation list shared by every queue of one orchestrator.

    Queues append here directly, so the master list always holds every
    operation in global insertion order regardless of which queue was used
    last. The id counter is never reset.
    """

    def __init__(self) -> None:
        self._operations: list[Operation] = []
        self._counter = itertools.count()

    @property
    def operations(self) -> list[Operation]:
        return list(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def next_operation_id(self, collection: str) -> str:
        return new_operation_id(collection, next(self._counter))

    def append(self, op: Operation) -> None:
        self._operations.append(op)

    def drain(self) -> list[Operation]:
        """Return all pending operations and empty the master list."""
        ops = self._operations
        self._operations = []
        return ops


class OperationQueue:
    """
    Fluent builder of write operations against one named collection.

    Each mutator appends exactly one operation and returns the same queue.
    No I/O and no validation happen here; missing fields are reported as
    failed outcomes when the batch executes.
    """

    def __init__(self, collection: str, session: BuildSession) -> None:
        self._collection = collection
        self._session = session
        self._operations: list[Operation] = []

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def operations(self) -> list[Operation]:
        """Operations added through this queue, in insertion order."""
        return list(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def add(self, payload: dict[str, Any]) -> "OperationQueue":
        """Add a new record built from a preformatted payload."""
        return self._push(
            AddOperation(
                collection=self._collection,
                operation_id=self._next_id(),
                payload=payload,
            )
        )

    def update(
        self,
        record_id: RecordId,
        payload: dict[str, Any],
        concurrency_token: Optional[str] = None,
    ) -> "OperationQueue":
        """
        Update an existing record.

        Args:
            record_id: Id of the record to update.
            payload: Preformatted field values to write.
            concurrency_token: Optional opaque token (e.g. an ETag).
        """
        return self._push(
            UpdateOperation(
                collection=self._collection,
                operation_id=self._next_id(),
                record_id=record_id,
                payload=payload,
                concurrency_token=concurrency_token,
            )
        )

    def delete(
        self,
        record_id: RecordId,
        concurrency_token: Optional[str] = None,
    ) -> "OperationQueue":
        """Delete an existing record."""
        return self._push(
            DeleteOperation(
                collection=self._collection,
                operation_id=self._next_id(),
                record_id=record_id,
                concurrency_token=concurrency_token,
            )
        )

    def add_validate_by_path(
        self,
        form_fields: Iterable[FieldValue],
        path: str,
    ) -> "OperationQueue":
        """Add a record under `path` with server-side validation of form_fields."""
        return self._push(
            ValidateAddByPathOperation(
                collection=self._collection,
                operation_id=self._next_id(),
                form_fields=_freeze(form_fields),
                path=path,
            )
        )

    def validate_update_by_id(
        self,
        record_id: RecordId,
        form_fields: Iterable[FieldValue],
    ) -> "OperationQueue":
        """Update a record with server-side validation of form_fields."""
        return self._push(
            ValidateUpdateByIdOperation(
                collection=self._collection,
                operation_id=self._next_id(),
                record_id=record_id,
                form_fields=_freeze(form_fields),
            )
        )

    def _next_id(self) -> str:
        return self._session.next_operation_id(self._collection)

    def _push(self, op: Operation) -> "OperationQueue":
        self._operations.append(op)
        self._session.append(op)
        return self


def _freeze(form_fields: Optional[Iterable[FieldValue]]) -> Optional[tuple[FieldValue, ...]]:
    if form_fields is None:
        return None
    return tuple(form_fields)
