"""Aggregation of per-chunk outcomes into a BatchSummary."""

from __future__ import annotations

from typing import Iterable, Sequence

from listbatch.models import BatchSummary, OperationOutcome


def aggregate(chunk_outcomes: Iterable[Sequence[OperationOutcome]]) -> BatchSummary:
    """
    Merge outcomes of all chunks (in chunk order) into one summary.

    Pure: inputs are not mutated. Guarantees
    successful + failed == total and success == (failed == 0).
    """
    outcomes: list[OperationOutcome] = []
    for chunk in chunk_outcomes:
        outcomes.extend(chunk)

    errors = [o for o in outcomes if not o.success]
    failed = len(errors)
    total = len(outcomes)

    return BatchSummary(
        success=failed == 0,
        total_operations=total,
        successful_operations=total - failed,
        failed_operations=failed,
        outcomes=outcomes,
        errors=errors,
    )
