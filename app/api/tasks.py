from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from app.api.deps import get_store
from app.db.schemas.task import (
    MessageOut,
    TaskCreate,
    TaskOut,
    TaskPositionUpdate,
    TaskRestoreOut,
    TaskSuccessUpdate,
    TaskUpdate,
)
from app.db.schemas.task_item import TaskItemOut
from app.services.store.task_store import OrderedTaskStore

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreate, store: OrderedTaskStore = Depends(get_store)):
    view = store.create_task(
        payload.category_id,
        payload.name,
        is_success=payload.is_success,
        price=payload.price,
        position=payload.position,
    )
    return TaskOut.from_view(view)


@router.get("", response_model=list[TaskOut])
def list_tasks(store: OrderedTaskStore = Depends(get_store)):
    """Active tasks ordered by position."""
    return [TaskOut.from_view(v) for v in store.list_tasks()]


@router.get("/deleted", response_model=list[TaskOut])
def list_deleted_tasks(store: OrderedTaskStore = Depends(get_store)):
    return [TaskOut.from_view(v) for v in store.list_deleted_tasks()]


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    return TaskOut.from_view(store.get_task(task_id))


@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    payload: TaskUpdate,
    task_id: str = Path(...),
    store: OrderedTaskStore = Depends(get_store),
):
    view = store.update_task(
        task_id,
        category_id=payload.category_id,
        name=payload.name,
        is_success=payload.is_success,
        price=payload.price,
    )
    return TaskOut.from_view(view)


@router.put("/{task_id}/position", response_model=TaskOut)
def update_task_position(
    payload: TaskPositionUpdate,
    task_id: str = Path(...),
    store: OrderedTaskStore = Depends(get_store),
):
    return TaskOut.from_view(store.move_task(task_id, payload.position))


@router.delete("/{task_id}", response_model=MessageOut)
def delete_task(task_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    store.soft_delete_task(task_id)
    return MessageOut(message="Task deleted (soft delete)")


@router.put("/{task_id}/restore", response_model=TaskRestoreOut)
def restore_task(task_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    view = store.restore_task(task_id)
    return TaskRestoreOut(message="Task restored", task=TaskOut.from_view(view))


@router.delete("/{task_id}/permanent", response_model=MessageOut)
def permanent_delete_task(task_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    store.permanent_delete_task(task_id)
    return MessageOut(message="Task permanently deleted")


@router.put("/{task_id}/success", response_model=TaskOut)
def mark_task_success(
    payload: TaskSuccessUpdate,
    task_id: str = Path(...),
    store: OrderedTaskStore = Depends(get_store),
):
    view = store.mark_success(task_id, is_success=payload.is_success, price=payload.price)
    return TaskOut.from_view(view)


@router.get("/{task_id}/items", response_model=list[TaskItemOut])
def list_task_items(task_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    return [TaskItemOut.model_validate(i) for i in store.items_for_task(task_id)]
