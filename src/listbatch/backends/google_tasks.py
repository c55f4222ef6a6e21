"""Google Tasks backend: task lists are collections, tasks are records."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar, Union

from listbatch.auth import AuthInfo, OAuthClient
from listbatch.batch import Operation, OperationKind
from listbatch.errors import (
    ApiError,
    ConfigurationError,
    HttpErrorInfo,
    InvalidStateError,
    ListBatchError,
    NetworkError,
    NotFoundError,
    OperationError,
    RateLimitError,
    map_http_error,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

_SUPPORTED_KINDS: frozenset[OperationKind] = frozenset(
    {OperationKind.ADD, OperationKind.UPDATE, OperationKind.DELETE}
)

_TASKLIST_FIELDS: str = "nextPageToken,items(id,title)"

# (data, error) for one operation after the round trip.
_Resolution = tuple[Any, Optional[BaseException]]


@dataclass(frozen=True)
class _LookupRetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class GoogleTasksBackend:
    """
    Backend adapter over the Google Tasks API batch endpoint.

    Notes:
        - One batch context maps to one multipart batch HTTP request.
        - Collections are task lists resolved by title (cached per instance).
        - Round trips through the shared service are serialized, so
          concurrent chunks overlap only in their event-loop work.
        - Concurrency tokens are sent as If-Match headers (ETag).
        - Validated writes are not offered by this API; registering one
          raises ConfigurationError, which fails that operation only.
    """

    DEFAULT_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/tasks",)

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        scopes: Optional[Sequence[str]] = None,
    ) -> None:
        use_scopes = list(scopes) if scopes is not None else list(self.DEFAULT_SCOPES)
        client = OAuthClient(auth_info)
        self._service = client.build_service("tasks", "v1", use_scopes, ensure_valid=True)
        self._lookup_retry = _LookupRetryPolicy()
        self._tasklist_ids: dict[str, str] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_service(cls, service: Any) -> "GoogleTasksBackend":
        """Create backend from a pre-built Tasks service (useful for tests)."""
        obj = cls.__new__(cls)
        obj._service = service
        obj._lookup_retry = _LookupRetryPolicy()
        obj._tasklist_ids = {}
        obj._lock = threading.RLock()
        return obj

    # ----------------------------
    # BackendAdapter
    # ----------------------------
    def open_batch_context(self) -> "TasksBatchContext":
        return TasksBatchContext(self)

    # ----------------------------
    # Collection handles
    # ----------------------------
    def resolve_collection(self, title: str) -> str:
        """
        Return the task list id for `title`.

        Raises:
            NotFoundError: if no task list has this title.
        """
        with self._lock:
            cached = self._tasklist_ids.get(title)
            if cached is not None:
                return cached

            page_token: Optional[str] = None
            while True:
                req = self._service.tasklists().list(
                    maxResults=100,
                    pageToken=page_token,
                    fields=_TASKLIST_FIELDS,
                )
                data = self._execute(req.execute)
                for item in data.get("items", []) or []:
                    item_title = item.get("title")
                    item_id = item.get("id")
                    if isinstance(item_title, str) and isinstance(item_id, str):
                        self._tasklist_ids.setdefault(item_title, item_id)

                page_token = data.get("nextPageToken")
                if not page_token:
                    break

            if title not in self._tasklist_ids:
                raise NotFoundError(
                    f"Task list not found: {title}",
                    details={"collection": title},
                )
            return self._tasklist_ids[title]

    # ----------------------------
    # Internals (run in a worker thread)
    # ----------------------------
    def run_batch(self, operations: Sequence[Operation]) -> list[_Resolution]:
        """
        Send operations as one batch HTTP request.

        Returns one (data, error) pair per operation, in order. Raises only
        when the batch request as a whole fails. Calls are serialized on the
        backend because the underlying httplib2 transport is not thread-safe.
        """
        with self._lock:
            return self._run_batch_locked(operations)

    def _run_batch_locked(self, operations: Sequence[Operation]) -> list[_Resolution]:
        resolved: dict[str, _Resolution] = {}

        def _callback(request_id: str, response: Any, exception: Optional[Exception]) -> None:
            if exception is not None:
                resolved[request_id] = (None, self._map_exception(exception))
            else:
                resolved[request_id] = (response or None, None)

        # Each title is looked up once per batch, misses included.
        lookups: dict[str, Union[str, NotFoundError]] = {}

        batch = self._service.new_batch_http_request(callback=_callback)
        added = 0
        for op in operations:
            if op.collection not in lookups:
                try:
                    lookups[op.collection] = self.resolve_collection(op.collection)
                except NotFoundError as exc:
                    lookups[op.collection] = exc
            tasklist_id = lookups[op.collection]
            if isinstance(tasklist_id, NotFoundError):
                resolved[op.operation_id] = (None, tasklist_id)
                continue
            batch.add(self._build_request(op, tasklist_id), request_id=op.operation_id)
            added += 1

        if added:
            logger.debug("Sending batch request with %d call(s)", added)
            try:
                batch.execute()
            except Exception as exc:
                raise self._map_exception(exc) from exc

        missing = OperationError("No response for operation in batch reply")
        return [resolved.get(op.operation_id, (None, missing)) for op in operations]

    def _build_request(self, op: Operation, tasklist_id: str) -> Any:
        tasks = self._service.tasks()
        if op.kind is OperationKind.ADD:
            req = tasks.insert(tasklist=tasklist_id, body=dict(op.payload))
        elif op.kind is OperationKind.UPDATE:
            req = tasks.patch(
                tasklist=tasklist_id,
                task=str(op.record_id),
                body=dict(op.payload),
            )
        elif op.kind is OperationKind.DELETE:
            req = tasks.delete(tasklist=tasklist_id, task=str(op.record_id))
        else:
            raise ConfigurationError(f"Unsupported operation kind: {op.kind.value}")

        token = getattr(op, "concurrency_token", None)
        if token:
            req.headers["If-Match"] = token
        return req

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._lookup_retry.initial_delay_sec
        for attempt in range(self._lookup_retry.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if self._should_retry(mapped) and attempt < self._lookup_retry.max_retries:
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, (RateLimitError, NetworkError)):
            return True
        if isinstance(exc, ApiError):
            status_code = exc.details.get("status_code")
            return isinstance(status_code, int) and 500 <= status_code <= 599
        return False

    def _map_exception(self, exc: BaseException) -> ListBatchError:
        if isinstance(exc, ListBatchError):
            return exc

        try:
            from googleapiclient.errors import HttpError
        except Exception:  # pragma: no cover
            HttpError = None  # type: ignore[assignment]

        if HttpError is not None and isinstance(exc, HttpError):
            return map_http_error(_http_error_to_info(exc), cause=exc)

        if isinstance(exc, (OSError, TimeoutError)):
            return NetworkError(f"Network error: {exc}", cause=exc)

        return ApiError(f"Tasks API error: {exc}", cause=exc)


class TasksBatchContext:
    """One deferred batch against GoogleTasksBackend (single use)."""

    def __init__(self, backend: GoogleTasksBackend) -> None:
        self._backend = backend
        self._entries: list[tuple[Operation, "asyncio.Future[Any]"]] = []
        self._committed = False

    def register(self, op: Operation) -> "asyncio.Future[Any]":
        if self._committed:
            raise InvalidStateError("Batch context already committed")
        if op.kind not in _SUPPORTED_KINDS:
            raise ConfigurationError(
                f"Operation kind {op.kind.value} is not supported by the Google Tasks backend",
                details={"operation_id": op.operation_id},
            )

        future: "asyncio.Future[Any]" = asyncio.get_running_loop().create_future()
        self._entries.append((op, future))
        return future

    async def commit(self) -> None:
        if self._committed:
            raise InvalidStateError("Batch context already committed")
        self._committed = True
        if not self._entries:
            return

        operations = [op for op, _ in self._entries]
        resolutions = await asyncio.to_thread(self._backend.run_batch, operations)

        # Futures are resolved on the loop thread, never from the worker.
        for (_, future), (data, error) in zip(self._entries, resolutions):
            if future.done():
                continue
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(data)


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    details: dict[str, Any] = {}

    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            payload = {}
        err = payload.get("error", {}) if isinstance(payload, dict) else {}
        if isinstance(err, dict):
            message = err.get("message") or None
            errors = err.get("errors") or []
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                details["domain"] = errors[0].get("domain")
                details["reason_detail"] = errors[0].get("reason")
                if isinstance(errors[0].get("reason"), str):
                    reason = errors[0]["reason"]

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )
