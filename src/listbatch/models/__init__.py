"""Public model exports for listbatch."""

from __future__ import annotations

from .results import BatchSummary, OperationOutcome

__all__ = [
    "OperationOutcome",
    "BatchSummary",
]
