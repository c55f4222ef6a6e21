from .ids import new_operation_id
from .time import now_epoch_millis, now_utc

__all__ = [
    "new_operation_id",
    "now_utc",
    "now_epoch_millis",
]
