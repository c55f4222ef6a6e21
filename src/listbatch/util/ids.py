from __future__ import annotations

from .time import now_epoch_millis


def new_operation_id(collection: str, counter: int) -> str:
    """
    Generate an operation_id.

    Format: "{collection}_{counter}_{epoch_millis}". The counter is owned by the
    caller and must be monotonic within one build session.
    """
    return f"{collection}_{counter}_{now_epoch_millis()}"
