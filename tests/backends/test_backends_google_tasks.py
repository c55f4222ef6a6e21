import json
import threading
import time
import unittest
from unittest.mock import Mock, patch

from googleapiclient.errors import HttpError

from listbatch.backends.google_tasks import GoogleTasksBackend, _http_error_to_info
from listbatch.batch import (
    AddOperation,
    DeleteOperation,
    FieldValue,
    UpdateOperation,
    ValidateUpdateByIdOperation,
)
from listbatch.config import EngineConfig
from listbatch.errors import (
    ConfigurationError,
    ConflictError,
    InvalidStateError,
    NetworkError,
    NotFoundError,
)
from listbatch.orchestrator import BatchOrchestrator


def _http_error(status: int, message: str = "", reason: str = "") -> HttpError:
    resp = Mock()
    resp.status = status
    resp.reason = reason or "error"
    body = {"error": {"message": message, "errors": [{"reason": reason or "error"}]}}
    return HttpError(resp=resp, content=json.dumps(body).encode("utf-8"))


class FakeBatchHttpRequest:
    """Stands in for googleapiclient.http.BatchHttpRequest."""

    def __init__(self, service, callback) -> None:
        self._service = service
        self._callback = callback
        self.added: list[tuple[str, Mock]] = []
        self.executed = 0

    def add(self, request, request_id=None) -> None:
        self.added.append((request_id, request))

    def execute(self) -> None:
        self.executed += 1
        with self._service.transport():
            if self._service.execute_error is not None:
                raise self._service.execute_error
            for request_id, request in self.added:
                response = self._service.responses(request_id, request)
                if isinstance(response, Exception):
                    self._callback(request_id, None, response)
                else:
                    self._callback(request_id, response, None)


class _Transport:
    """Counts round trips in flight on one service at the same time."""

    def __init__(self, service) -> None:
        self._service = service

    def __enter__(self) -> None:
        with self._service.counter_lock:
            self._service.in_flight += 1
            self._service.peak_in_flight = max(
                self._service.peak_in_flight, self._service.in_flight
            )
        time.sleep(self._service.round_trip_sec)

    def __exit__(self, *exc_info) -> None:
        with self._service.counter_lock:
            self._service.in_flight -= 1


class FakeTasksService:
    def __init__(
        self,
        tasklists=None,
        responses=None,
        execute_error=None,
        round_trip_sec: float = 0.0,
    ) -> None:
        self.batches: list[FakeBatchHttpRequest] = []
        self.responses = responses or (lambda request_id, request: {"id": request_id})
        self.execute_error = execute_error
        self.round_trip_sec = round_trip_sec
        self.counter_lock = threading.Lock()
        self.in_flight = 0
        self.peak_in_flight = 0

        self.tasklists_resource = Mock()
        list_request = Mock()
        list_request.execute.return_value = {
            "items": tasklists if tasklists is not None else [{"id": "L1", "title": "Tasks"}],
        }
        self.tasklists_resource.list.return_value = list_request

        self.tasks_resource = Mock()
        for method in ("insert", "patch", "delete"):
            getattr(self.tasks_resource, method).side_effect = (
                lambda _m=method, **kwargs: Mock(method=_m, kwargs=kwargs, headers={})
            )

    def transport(self) -> _Transport:
        return _Transport(self)

    def tasklists(self):
        return self.tasklists_resource

    def tasks(self):
        return self.tasks_resource

    def new_batch_http_request(self, callback=None):
        batch = FakeBatchHttpRequest(self, callback)
        self.batches.append(batch)
        return batch


class TestGoogleTasksBackend(unittest.IsolatedAsyncioTestCase):
    async def test_add_update_delete_in_one_batch(self) -> None:
        service = FakeTasksService()
        backend = GoogleTasksBackend.from_service(service)
        ctx = backend.open_batch_context()

        f_add = ctx.register(AddOperation("Tasks", "a", {"title": "A"}))
        f_upd = ctx.register(UpdateOperation("Tasks", "u", "t5", {"title": "B"}, "\"etag-1\""))
        f_del = ctx.register(DeleteOperation("Tasks", "d", "t9"))
        await ctx.commit()

        self.assertEqual(len(service.batches), 1)
        batch = service.batches[0]
        self.assertEqual(batch.executed, 1)
        self.assertEqual([rid for rid, _ in batch.added], ["a", "u", "d"])

        add_req, upd_req, del_req = [req for _, req in batch.added]
        self.assertEqual(add_req.kwargs, {"tasklist": "L1", "body": {"title": "A"}})
        self.assertEqual(upd_req.kwargs, {"tasklist": "L1", "task": "t5", "body": {"title": "B"}})
        self.assertEqual(upd_req.headers["If-Match"], "\"etag-1\"")
        self.assertEqual(del_req.kwargs, {"tasklist": "L1", "task": "t9"})
        self.assertNotIn("If-Match", del_req.headers)

        self.assertEqual(f_add.result(), {"id": "a"})
        self.assertEqual(f_upd.result(), {"id": "u"})
        self.assertEqual(f_del.result(), {"id": "d"})

    async def test_unknown_collection_fails_only_its_operations(self) -> None:
        service = FakeTasksService()
        backend = GoogleTasksBackend.from_service(service)
        ctx = backend.open_batch_context()

        ok = ctx.register(AddOperation("Tasks", "a", {"title": "A"}))
        missing = ctx.register(AddOperation("Nope", "b", {"title": "B"}))
        await ctx.commit()

        self.assertEqual(ok.result(), {"id": "a"})
        self.assertIsInstance(missing.exception(), NotFoundError)
        self.assertEqual([rid for rid, _ in service.batches[0].added], ["a"])

    async def test_per_request_http_error_is_mapped(self) -> None:
        def responses(request_id, request):
            if request_id == "u":
                return _http_error(412, "Precondition Failed", "conditionNotMet")
            return {"id": request_id}

        backend = GoogleTasksBackend.from_service(FakeTasksService(responses=responses))
        ctx = backend.open_batch_context()
        ok = ctx.register(AddOperation("Tasks", "a", {}))
        bad = ctx.register(UpdateOperation("Tasks", "u", "t1", {"title": "x"}, "\"stale\""))
        await ctx.commit()

        self.assertEqual(ok.result(), {"id": "a"})
        err = bad.exception()
        self.assertIsInstance(err, ConflictError)
        self.assertIn("412", str(err))

    async def test_empty_delete_response_resolves_to_none(self) -> None:
        service = FakeTasksService(responses=lambda request_id, request: "")
        ctx = GoogleTasksBackend.from_service(service).open_batch_context()
        fut = ctx.register(DeleteOperation("Tasks", "d", "t1"))
        await ctx.commit()
        self.assertIsNone(fut.result())

    async def test_validated_kinds_are_rejected_at_registration(self) -> None:
        ctx = GoogleTasksBackend.from_service(FakeTasksService()).open_batch_context()
        with self.assertRaises(ConfigurationError):
            ctx.register(ValidateUpdateByIdOperation("Tasks", "v", "t1", (FieldValue("title", "x"),)))

    async def test_batch_transport_failure_raises_from_commit(self) -> None:
        service = FakeTasksService(execute_error=OSError("connection reset"))
        ctx = GoogleTasksBackend.from_service(service).open_batch_context()
        ctx.register(AddOperation("Tasks", "a", {}))

        with self.assertRaises(NetworkError):
            await ctx.commit()

    async def test_context_is_single_use(self) -> None:
        ctx = GoogleTasksBackend.from_service(FakeTasksService()).open_batch_context()
        ctx.register(AddOperation("Tasks", "a", {}))
        await ctx.commit()

        with self.assertRaises(InvalidStateError):
            ctx.register(AddOperation("Tasks", "b", {}))
        with self.assertRaises(InvalidStateError):
            await ctx.commit()

    async def test_empty_commit_sends_nothing(self) -> None:
        service = FakeTasksService()
        await GoogleTasksBackend.from_service(service).open_batch_context().commit()
        self.assertEqual(service.batches, [])

    async def test_orchestrator_end_to_end(self) -> None:
        service = FakeTasksService(
            tasklists=[{"id": "L1", "title": "Tasks"}, {"id": "L2", "title": "Docs"}]
        )
        backend = GoogleTasksBackend.from_service(service)
        orch = BatchOrchestrator(backend, EngineConfig(max_operations_per_chunk=2))

        orch.for_collection("Tasks").add({"title": "A"}).update("t5", {"title": "B"})
        orch.for_collection("Docs").delete("t10").validate_update_by_id(
            "t11", [FieldValue("title", "C")]
        )

        summary = await orch.execute()

        self.assertEqual(summary.total_operations, 4)
        self.assertEqual(summary.successful_operations, 3)
        self.assertEqual(summary.errors[0].kind, "VALIDATE_UPDATE_BY_ID")
        self.assertEqual(summary.errors[0].error_type, "ConfigurationError")
        self.assertEqual(len(service.batches), 2)
        # Task lists are looked up once and cached.
        self.assertEqual(service.tasklists_resource.list.call_count, 1)

    async def test_concurrent_chunks_do_not_share_the_transport(self) -> None:
        service = FakeTasksService(round_trip_sec=0.02)
        backend = GoogleTasksBackend.from_service(service)
        config = EngineConfig(max_operations_per_chunk=1, concurrent_chunks=True)
        orch = BatchOrchestrator(backend, config)
        queue = orch.for_collection("Tasks")
        for i in range(4):
            queue.add({"title": str(i)})
        ids = [op.operation_id for op in orch.pending_operations]

        summary = await orch.execute()

        self.assertTrue(summary.success)
        self.assertEqual(len(service.batches), 4)
        self.assertEqual(service.peak_in_flight, 1)
        # Every outcome carries its own response.
        self.assertEqual([o.data for o in summary.outcomes], [{"id": i} for i in ids])

    async def test_missing_collection_is_looked_up_once_per_batch(self) -> None:
        service = FakeTasksService()
        ctx = GoogleTasksBackend.from_service(service).open_batch_context()

        missing = [ctx.register(AddOperation("Nope", f"n{i}", {})) for i in range(50)]
        ok = ctx.register(AddOperation("Tasks", "a", {}))
        await ctx.commit()

        self.assertTrue(all(isinstance(f.exception(), NotFoundError) for f in missing))
        self.assertEqual(ok.result(), {"id": "a"})
        self.assertEqual(service.tasklists_resource.list.call_count, 1)


class TestGoogleTasksCollections(unittest.TestCase):
    def test_resolve_collection_follows_pages(self) -> None:
        service = Mock()
        page1 = Mock()
        page1.execute.return_value = {
            "items": [{"id": "L1", "title": "Inbox"}],
            "nextPageToken": "p2",
        }
        page2 = Mock()
        page2.execute.return_value = {"items": [{"id": "L2", "title": "Tasks"}]}
        service.tasklists.return_value.list.side_effect = [page1, page2]

        backend = GoogleTasksBackend.from_service(service)

        self.assertEqual(backend.resolve_collection("Tasks"), "L2")
        self.assertEqual(backend.resolve_collection("Inbox"), "L1")
        second_call = service.tasklists.return_value.list.call_args_list[1]
        self.assertEqual(second_call.kwargs["pageToken"], "p2")

    def test_resolve_collection_not_found(self) -> None:
        service = Mock()
        service.tasklists.return_value.list.return_value.execute.return_value = {"items": []}
        backend = GoogleTasksBackend.from_service(service)

        with self.assertRaises(NotFoundError):
            backend.resolve_collection("Missing")

    def test_resolve_collection_retries_on_429(self) -> None:
        service = Mock()
        req = Mock()
        req.execute.side_effect = [
            _http_error(429, "rate limited", "rateLimitExceeded"),
            {"items": [{"id": "L1", "title": "Tasks"}]},
        ]
        service.tasklists.return_value.list.return_value = req
        backend = GoogleTasksBackend.from_service(service)

        with patch("time.sleep", return_value=None):
            self.assertEqual(backend.resolve_collection("Tasks"), "L1")
        self.assertEqual(req.execute.call_count, 2)

    def test_http_error_to_info_reads_reason_detail(self) -> None:
        info = _http_error_to_info(_http_error(403, "Quota exceeded", "dailyLimitExceeded"))
        self.assertEqual(info.status_code, 403)
        self.assertEqual(info.reason, "dailyLimitExceeded")
        self.assertEqual(info.message, "Quota exceeded")


if __name__ == "__main__":
    unittest.main()
