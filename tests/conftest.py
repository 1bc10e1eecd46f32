# tests/conftest.py
from __future__ import annotations

import logging

import pytest

from app.services.store.json_gateway import JsonSnapshotGateway
from app.services.store.task_store import OrderedTaskStore
from tests.fakes import MemoryGateway, RecordingReclaimer


# ──────────────────────────────────────────────────────────────────────────────
# Store fixtures
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def reclaimer() -> RecordingReclaimer:
    return RecordingReclaimer()


@pytest.fixture()
def memory_gateway() -> MemoryGateway:
    return MemoryGateway()


@pytest.fixture()
def store(memory_gateway, reclaimer) -> OrderedTaskStore:
    return OrderedTaskStore(memory_gateway, reclaimer=reclaimer)


@pytest.fixture()
def snapshot_path(tmp_path):
    return tmp_path / "data" / "database.json"


@pytest.fixture()
def json_store(snapshot_path, reclaimer) -> OrderedTaskStore:
    return OrderedTaskStore(JsonSnapshotGateway(snapshot_path), reclaimer=reclaimer)


# ──────────────────────────────────────────────────────────────────────────────
# HTTP fixtures
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app_settings(tmp_path):
    from app.config import Settings

    return Settings(
        STORAGE_BACKEND="json",
        DATA_FILE=str(tmp_path / "data" / "database.json"),
        UPLOADS_DIR=str(tmp_path / "uploads"),
        DURABILITY_MODE="sync",
        LOG_LEVEL="INFO",
    )


@pytest.fixture()
def client(app_settings):
    from fastapi.testclient import TestClient

    from app.main import create_app

    with TestClient(create_app(app_settings)) as c:
        yield c


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────
def active_positions(store: OrderedTaskStore) -> dict:
    return {v.task.name: v.task.position for v in store.list_tasks()}


@pytest.fixture()
def positions():
    return active_positions


# ──────────────────────────────────────────────────────────────────────────────
# Logging defaults for nicer failure output
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _caplog_level_default(caplog):
    """
    Default INFO level so store/gateway logs show up in test output
    when a test fails. Override per-test with caplog.set_level(...).
    """
    caplog.set_level(logging.INFO)
    yield
