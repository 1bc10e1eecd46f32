from __future__ import annotations

import random
import threading
import time

from app.services.domain.exceptions import DomainInvalidState, DomainNotFound
from app.services.store.guard import ConcurrencyGuard
from app.services.store.task_store import OrderedTaskStore
from tests.fakes import MemoryGateway


def test_readers_share_the_guard() -> None:
    guard = ConcurrencyGuard()
    with guard.read():
        with guard.read():
            assert guard.readers == 2
    assert guard.readers == 0


def test_writer_waits_for_readers() -> None:
    guard = ConcurrencyGuard()
    entered = threading.Event()

    def writer() -> None:
        with guard.write():
            entered.set()

    with guard.read():
        t = threading.Thread(target=writer)
        t.start()
        assert not entered.wait(timeout=0.1)
    t.join(timeout=2)
    assert entered.is_set()
    assert not guard.writing


def test_waiting_writer_blocks_new_readers() -> None:
    guard = ConcurrencyGuard()
    order: list[str] = []
    first_reader_in = threading.Event()
    release_first = threading.Event()

    def first_reader() -> None:
        with guard.read():
            first_reader_in.set()
            release_first.wait(timeout=2)

    def writer() -> None:
        with guard.write():
            order.append("writer")

    def late_reader() -> None:
        with guard.read():
            order.append("reader")

    r1 = threading.Thread(target=first_reader)
    r1.start()
    first_reader_in.wait(timeout=2)
    w = threading.Thread(target=writer)
    w.start()
    time.sleep(0.05)
    r2 = threading.Thread(target=late_reader)
    r2.start()
    time.sleep(0.05)
    release_first.set()
    for t in (r1, w, r2):
        t.join(timeout=2)

    assert order == ["writer", "reader"]


def _assert_dense(store: OrderedTaskStore) -> None:
    positions = sorted(v.task.position for v in store.list_tasks())
    assert positions == list(range(len(positions)))


def test_concurrent_moves_keep_positions_dense() -> None:
    store = OrderedTaskStore(MemoryGateway())
    ids = [store.create_task("c", f"T{i}").task.id for i in range(10)]

    def worker(seed: int) -> None:
        for step in range(40):
            store.move_task(ids[(seed + step) % len(ids)], (seed * 7 + step) % len(ids))
            store.list_tasks()

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    _assert_dense(store)


def test_concurrent_mixed_operations_keep_positions_dense() -> None:
    store = OrderedTaskStore(MemoryGateway())
    for i in range(12):
        store.create_task("c", f"T{i}")
    errors: list[BaseException] = []

    def worker(seed: int) -> None:
        rng = random.Random(seed)
        try:
            for step in range(60):
                active = store.list_tasks()
                deleted = store.list_deleted_tasks()
                op = rng.choice(["create", "move", "soft", "restore", "destroy"])
                try:
                    if op == "create":
                        store.create_task("c", f"W{seed}-{step}", position=rng.randrange(len(active) + 1))
                    elif op == "move" and active:
                        store.move_task(rng.choice(active).task.id, rng.randrange(len(active)))
                    elif op == "soft" and active:
                        store.soft_delete_task(rng.choice(active).task.id)
                    elif op == "restore" and deleted:
                        store.restore_task(rng.choice(deleted).task.id)
                    elif op == "destroy" and (active or deleted):
                        store.permanent_delete_task(rng.choice(active + deleted).task.id)
                except (DomainNotFound, DomainInvalidState):
                    # another worker changed the task between the read and the mutation
                    pass
                _assert_dense(store)
        except BaseException as exc:  # surfaced in the main thread
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=20)

    assert errors == []
    _assert_dense(store)
    active_ids = {v.task.id for v in store.list_tasks()}
    deleted_ids = {v.task.id for v in store.list_deleted_tasks()}
    assert not active_ids & deleted_ids
