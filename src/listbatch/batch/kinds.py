"""Operation kinds for listbatch."""

from __future__ import annotations

from enum import Enum


class OperationKind(str, Enum):
    """Supported write operation kinds."""

    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VALIDATE_ADD_BY_PATH = "VALIDATE_ADD_BY_PATH"
    VALIDATE_UPDATE_BY_ID = "VALIDATE_UPDATE_BY_ID"
