from __future__ import annotations


def test_liveness(client) -> None:
    r = client.get("/health/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"
    assert "X-Process-Time" in r.headers


def test_storage_readiness(client) -> None:
    client.post("/tasks", json={"name": "A"})
    body = client.get("/health/storage").json()
    assert body["ok"] is True
    assert body["active_tasks"] == 1
    assert body["backend"].startswith("json:")


def test_storage_readiness_reports_pending_write_failure(client) -> None:
    from app.services.domain.exceptions import StorageIOError
    from app.services.store.task_store import OrderedTaskStore
    from tests.fakes import MemoryGateway

    class FailedWriterGateway(MemoryGateway):
        pending_error = StorageIOError("disk full", code="save_failed")

    client.app.state.store = OrderedTaskStore(FailedWriterGateway())

    r = client.get("/health/storage")
    assert r.status_code == 503
    assert r.json() == {"error": "disk full"}
