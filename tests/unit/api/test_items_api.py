from __future__ import annotations

from pathlib import Path

import pytest

pytestmark = pytest.mark.integration


@pytest.fixture()
def task(client) -> dict:
    return client.post("/tasks", json={"name": "Parent"}).json()


def test_item_crud(client, task) -> None:
    r = client.post("/task-items", json={"task_id": task["id"], "type": "note", "data": "hello"})
    assert r.status_code == 201
    item = r.json()
    assert item["position"] == 1
    assert item["time"]

    assert client.get(f"/task-items/{item['id']}").json()["data"] == "hello"
    assert [i["id"] for i in client.get("/task-items").json()] == [item["id"]]

    r = client.put(f"/task-items/{item['id']}", json={"type": "note", "data": "changed"})
    assert r.json()["data"] == "changed"
    assert r.json()["task_id"] == task["id"]

    r = client.delete(f"/task-items/{item['id']}")
    assert r.json() == {"message": "Task item deleted"}
    assert client.get(f"/task-items/{item['id']}").status_code == 404


def test_item_for_unknown_task_is_404(client) -> None:
    r = client.post("/task-items", json={"task_id": "ghost", "type": "note"})
    assert r.status_code == 404
    assert r.json() == {"error": "Task not found"}


def test_item_requires_task_id(client) -> None:
    assert client.post("/task-items", json={"task_id": "", "type": "note"}).status_code == 422


def test_deleting_item_removes_uploaded_file(client, task, app_settings) -> None:
    png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8
    up = client.post("/upload/image", files={"image": ("a.png", png, "image/png")}).json()
    url = up["data"]["url"]
    stored = Path(app_settings.UPLOADS_DIR) / Path(url).name
    assert stored.exists()

    item = client.post("/task-items", json={"task_id": task["id"], "type": "photo", "data": url}).json()
    client.delete(f"/task-items/{item['id']}")

    assert not stored.exists()


def test_permanent_task_delete_removes_item_files(client, task, app_settings) -> None:
    up = client.post("/upload/audio", files={"audio": ("v.mp3", b"ID3", "audio/mpeg")}).json()
    stored = Path(app_settings.UPLOADS_DIR) / Path(up["data"]["url"]).name
    client.post("/task-items", json={"task_id": task["id"], "type": "audio", "data": up["data"]["url"]})
    client.post("/task-items", json={"task_id": task["id"], "type": "note", "data": ""})

    client.delete(f"/tasks/{task['id']}/permanent")

    assert not stored.exists()
    assert client.get("/task-items").json() == []


def test_categories_crud(client) -> None:
    cat = client.post("/categories", json={"data": "Work"}).json()
    assert client.get(f"/categories/{cat['id']}").json() == {"id": cat["id"], "data": "Work"}
    assert client.put(f"/categories/{cat['id']}", json={"data": "Home"}).json()["data"] == "Home"
    assert client.delete(f"/categories/{cat['id']}").json() == {"message": "Category deleted"}
    assert client.get("/categories").json() == []
    assert client.get(f"/categories/{cat['id']}").status_code == 404
