from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from app.api.deps import get_store
from app.db.schemas.category import CategoryIn, CategoryOut
from app.db.schemas.task import MessageOut
from app.services.store.models import Category
from app.services.store.task_store import OrderedTaskStore

router = APIRouter(prefix="/categories", tags=["categories"])


def _out(category: Category) -> CategoryOut:
    return CategoryOut(id=category.id, data=category.label)


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryIn, store: OrderedTaskStore = Depends(get_store)):
    return _out(store.create_category(payload.data))


@router.get("", response_model=list[CategoryOut])
def list_categories(store: OrderedTaskStore = Depends(get_store)):
    return [_out(c) for c in store.list_categories()]


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    return _out(store.get_category(category_id))


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    payload: CategoryIn,
    category_id: str = Path(...),
    store: OrderedTaskStore = Depends(get_store),
):
    return _out(store.update_category(category_id, payload.data))


@router.delete("/{category_id}", response_model=MessageOut)
def delete_category(category_id: str = Path(...), store: OrderedTaskStore = Depends(get_store)):
    store.delete_category(category_id)
    return MessageOut(message="Category deleted")
