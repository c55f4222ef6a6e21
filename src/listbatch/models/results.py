"""Result models for batch execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

RecordId = Union[int, str]


@dataclass(slots=True, frozen=True)
class OperationOutcome:
    """
    Outcome of a single operation.

    error_message is set if and only if success is False. data carries what
    the backend returned for a successful operation (None for deletes).
    """

    operation_id: str
    collection: str
    kind: str
    success: bool

    data: Any = None
    error_message: Optional[str] = None
    error_type: Optional[str] = None
    record_id: Optional[RecordId] = None


@dataclass(slots=True)
class BatchSummary:
    """Aggregate result of one execute() call."""

    success: bool
    total_operations: int
    successful_operations: int
    failed_operations: int

    outcomes: list[OperationOutcome] = field(default_factory=list)
    errors: list[OperationOutcome] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "BatchSummary":
        """Summary for a batch with zero operations."""
        return cls(
            success=True,
            total_operations=0,
            successful_operations=0,
            failed_operations=0,
        )

    def outcome_for(self, operation_id: str) -> Optional[OperationOutcome]:
        """Return the outcome correlated with operation_id, if any."""
        for outcome in self.outcomes:
            if outcome.operation_id == operation_id:
                return outcome
        return None
