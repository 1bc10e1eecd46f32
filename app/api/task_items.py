from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from app.api.deps import get_store
from app.db.schemas.task import MessageOut
from app.db.schemas.task_item import TaskItemCreate, TaskItemOut, TaskItemUpdate
from app.services.store.task_store import OrderedTaskStore

router = APIRouter(prefix="/task-items", tags=["task-items"])


@router.post("", response_model=TaskItemOut, status_code=status.HTTP_201_CREATED)
def create_task_item(payload: TaskItemCreate, store: OrderedTaskStore = Depends(get_store)):
    item = store.create_item(payload.task_id, payload.type, payload.data)
    return TaskItemOut.model_validate(item)


@router.get("", response_model=list[TaskItemOut])
def list_task_items(store: OrderedTaskStore = Depends(get_store)):
    return [TaskItemOut.model_validate(i) for i in store.list_items()]


@router.get("/{item_id}", response_model=TaskItemOut)
def get_task_item(item_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    return TaskItemOut.model_validate(store.get_item(item_id))


@router.put("/{item_id}", response_model=TaskItemOut)
def update_task_item(
    payload: TaskItemUpdate,
    item_id: str = Path(...),
    store: OrderedTaskStore = Depends(get_store),
):
    item = store.update_item(
        item_id,
        item_type=payload.type,
        data=payload.data,
        task_id=payload.task_id or None,
    )
    return TaskItemOut.model_validate(item)


@router.delete("/{item_id}", response_model=MessageOut)
def delete_task_item(item_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    """Delete the item and, best-effort, the file it references."""
    store.delete_item(item_id)
    return MessageOut(message="Task item deleted")
