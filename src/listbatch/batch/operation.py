"""Operation models (one explicit-field variant per kind; no args dict)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union

from listbatch.errors import ConfigurationError, LocalValidationError
from listbatch.models.results import RecordId

from .kinds import OperationKind


@dataclass(slots=True, frozen=True)
class FieldValue:
    """A preformatted field name/value pair for validated writes."""

    name: str
    value: str


@dataclass(slots=True, frozen=True)
class AddOperation:
    """Create a record from a preformatted payload."""

    kind: ClassVar[OperationKind] = OperationKind.ADD

    collection: str
    operation_id: str
    payload: Optional[dict[str, Any]]

    @property
    def record_id(self) -> Optional[RecordId]:
        return None

    def validate_required_fields(self) -> None:
        _require(self.payload, "payload")


@dataclass(slots=True, frozen=True)
class UpdateOperation:
    """Update an existing record; concurrency_token is passed through as-is."""

    kind: ClassVar[OperationKind] = OperationKind.UPDATE

    collection: str
    operation_id: str
    record_id: Optional[RecordId]
    payload: Optional[dict[str, Any]]
    concurrency_token: Optional[str] = None

    def validate_required_fields(self) -> None:
        _require(self.record_id, "record_id")
        _require(self.payload, "payload")


@dataclass(slots=True, frozen=True)
class DeleteOperation:
    """Delete an existing record."""

    kind: ClassVar[OperationKind] = OperationKind.DELETE

    collection: str
    operation_id: str
    record_id: Optional[RecordId]
    concurrency_token: Optional[str] = None

    def validate_required_fields(self) -> None:
        _require(self.record_id, "record_id")


@dataclass(slots=True, frozen=True)
class ValidateAddByPathOperation:
    """Create a record under `path` with server-side field validation."""

    kind: ClassVar[OperationKind] = OperationKind.VALIDATE_ADD_BY_PATH

    collection: str
    operation_id: str
    form_fields: Optional[tuple[FieldValue, ...]]
    path: Optional[str]

    @property
    def record_id(self) -> Optional[RecordId]:
        return None

    def validate_required_fields(self) -> None:
        _require(self.form_fields, "form_fields")
        _require(self.path, "path")


@dataclass(slots=True, frozen=True)
class ValidateUpdateByIdOperation:
    """Update an existing record with server-side field validation."""

    kind: ClassVar[OperationKind] = OperationKind.VALIDATE_UPDATE_BY_ID

    collection: str
    operation_id: str
    record_id: Optional[RecordId]
    form_fields: Optional[tuple[FieldValue, ...]]

    def validate_required_fields(self) -> None:
        _require(self.record_id, "record_id")
        _require(self.form_fields, "form_fields")


Operation = Union[
    AddOperation,
    UpdateOperation,
    DeleteOperation,
    ValidateAddByPathOperation,
    ValidateUpdateByIdOperation,
]

OPERATION_TYPES: tuple[type, ...] = (
    AddOperation,
    UpdateOperation,
    DeleteOperation,
    ValidateAddByPathOperation,
    ValidateUpdateByIdOperation,
)


def validate_operation(op: object) -> None:
    """
    Validate an operation before it is registered against a batch context.

    Raises:
        ConfigurationError: if op is not one of the known operation variants.
        LocalValidationError: if a field required by the kind is missing.
    """
    if not isinstance(op, OPERATION_TYPES):
        kind = getattr(op, "kind", type(op).__name__)
        raise ConfigurationError(
            f"Unsupported operation kind: {kind}",
            details={"operation_id": getattr(op, "operation_id", None)},
        )
    op.validate_required_fields()


def _require(value: object, field_name: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise LocalValidationError(
            f"Missing required field: {field_name}",
            details={"field": field_name},
        )
