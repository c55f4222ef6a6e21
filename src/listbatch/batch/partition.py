"""Chunk partitioning for batch execution."""

from __future__ import annotations

from typing import Sequence, TypeVar

from listbatch.errors import InvalidArgumentError

T = TypeVar("T")


def partition(operations: Sequence[T], max_per_chunk: int) -> list[list[T]]:
    """
    Split operations into order-preserving chunks.

    Chunk k is operations[k*N:(k+1)*N]. Concatenating the chunks reproduces
    the input order and every chunk has at most max_per_chunk items.
    """
    if isinstance(max_per_chunk, bool) or not isinstance(max_per_chunk, int) or max_per_chunk <= 0:
        raise InvalidArgumentError(
            "max_per_chunk must be a positive int",
            details={"max_per_chunk": max_per_chunk},
        )

    return [
        list(operations[i:i + max_per_chunk])
        for i in range(0, len(operations), max_per_chunk)
    ]
