from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import event

from app.services.store.lifecycle import TaskState
from app.services.store.models import Category, Snapshot, Task, TaskItem
from app.services.store.sql_gateway import SqlSnapshotGateway
from app.services.store.task_store import OrderedTaskStore

pytestmark = pytest.mark.integration


@pytest.fixture()
def gateway(tmp_path):
    gw = SqlSnapshotGateway(f"sqlite:///{tmp_path / 'db' / 'tasks.sqlite3'}")
    yield gw
    gw.close()


def _snapshot() -> Snapshot:
    snap = Snapshot()
    snap.categories["c"] = Category(id="c", label="Errands")
    snap.tasks["a"] = Task(id="a", category_id="c", name="A", position=0, price=3.0)
    snap.tasks["b"] = Task(
        id="b",
        category_id="c",
        name="B",
        position=1,
        state=TaskState.DELETED,
        deleted_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )
    snap.task_items["i"] = TaskItem(
        id="i", task_id="a", type="note", data="hi", time=datetime(2024, 6, 1, 10, tzinfo=timezone.utc), position=1
    )
    return snap


def test_empty_database_loads_empty_snapshot(gateway) -> None:
    snap = gateway.load()
    assert snap.tasks == {}
    assert gateway.describe() == "sql:sqlite"


def test_save_and_load_round_trip(gateway) -> None:
    gateway.save(_snapshot())
    loaded = gateway.load()

    assert loaded.categories["c"].label == "Errands"
    assert loaded.tasks["a"].state is TaskState.ACTIVE
    assert loaded.tasks["a"].price == 3.0
    assert loaded.tasks["b"].state is TaskState.DELETED
    assert loaded.tasks["b"].deleted_at == datetime(2024, 6, 1, tzinfo=timezone.utc)
    assert loaded.task_items["i"].time == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)


def test_save_removes_rows_missing_from_snapshot(gateway) -> None:
    gateway.save(_snapshot())
    smaller = _snapshot()
    del smaller.task_items["i"]
    del smaller.tasks["b"]
    del smaller.categories["c"]
    smaller.tasks["a"].position = 0
    smaller.tasks["a"].name = "renamed"

    gateway.save(smaller)
    loaded = gateway.load()

    assert list(loaded.tasks) == ["a"]
    assert loaded.tasks["a"].name == "renamed"
    assert loaded.task_items == {}
    assert loaded.categories == {}


def test_store_over_sql_survives_reopen(tmp_path) -> None:
    dsn = f"sqlite:///{tmp_path / 'store.sqlite3'}"
    first = OrderedTaskStore(SqlSnapshotGateway(dsn))
    a = first.create_task("c", "A").task
    b = first.create_task("c", "B").task
    first.move_task(b.id, 0)
    first.create_item(a.id, "note", "x")
    first.close()

    second = OrderedTaskStore(SqlSnapshotGateway(dsn))
    assert [v.task.name for v in second.list_tasks()] == ["B", "A"]
    assert [i.data for i in second.items_for_task(a.id)] == ["x"]
    second.close()


def _count_statements(engine) -> list:
    statements: list = []

    def _before(conn, cursor, statement, parameters, context, executemany) -> None:
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _before)
    return statements


def _many_tasks(n: int) -> Snapshot:
    snap = Snapshot()
    for i in range(n):
        snap.tasks[f"t{i:04d}"] = Task(id=f"t{i:04d}", category_id="c", name=f"T{i}", position=i)
    return snap


def test_adjacent_move_issues_bounded_statements(tmp_path) -> None:
    dsn = f"sqlite:///{tmp_path / 'big.sqlite3'}"
    seed = SqlSnapshotGateway(dsn)
    seed.save(_many_tasks(300))
    seed.close()

    gateway = SqlSnapshotGateway(dsn)
    store = OrderedTaskStore(gateway)
    statements = _count_statements(gateway.engine)

    store.move_task("t0299", 298)

    assert len(statements) <= 3, statements
    store.close()

    reopened = SqlSnapshotGateway(dsn).load()
    assert (reopened.tasks["t0299"].position, reopened.tasks["t0298"].position) == (298, 299)


def test_statement_count_does_not_grow_with_rows_shifted(tmp_path) -> None:
    dsn = f"sqlite:///{tmp_path / 'shift.sqlite3'}"
    seed = SqlSnapshotGateway(dsn)
    seed.save(_many_tasks(200))
    seed.close()

    gateway = SqlSnapshotGateway(dsn)
    store = OrderedTaskStore(gateway)
    statements = _count_statements(gateway.engine)

    store.move_task("t0199", 0)

    assert len(statements) <= 3, statements
    assert [v.task.id for v in store.list_tasks()][:2] == ["t0199", "t0000"]
    store.close()

    reopened = SqlSnapshotGateway(dsn).load()
    assert reopened.tasks["t0000"].position == 1
    assert reopened.tasks["t0199"].position == 0


def test_save_without_prior_load_reconciles_with_database(tmp_path) -> None:
    dsn = f"sqlite:///{tmp_path / 'fresh.sqlite3'}"
    first = SqlSnapshotGateway(dsn)
    first.save(_snapshot())
    first.close()

    # never loaded: the gateway reads the current rows before writing
    second = SqlSnapshotGateway(dsn)
    smaller = _snapshot()
    del smaller.task_items["i"]
    smaller.tasks["a"].name = "edited"
    second.save(smaller)
    second.close()

    loaded = SqlSnapshotGateway(dsn).load()
    assert loaded.task_items == {}
    assert loaded.tasks["a"].name == "edited"
    assert set(loaded.tasks) == {"a", "b"}
