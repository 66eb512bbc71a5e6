from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional

from farmlog.api.core.database import get_db
from farmlog.api.core.security import get_current_user_id
from farmlog.api.schemas.user import MessageResponse
from farmlog.api.services.task_store import RemoteTaskStore
from farmlog.models.task_record import TaskRecord

router = APIRouter()


def get_task_store(db: AsyncSession = Depends(get_db)) -> RemoteTaskStore:
    return RemoteTaskStore(db)


@router.get("", response_model=List[TaskRecord])
async def list_tasks(
    task_type: Optional[str] = Query(None, alias="type"),
    day: Optional[str] = Query(None, alias="date"),
    user_id: str = Depends(get_current_user_id),
    store: RemoteTaskStore = Depends(get_task_store)
):
    """
    List all tasks for the authenticated user, newest date first

    Filters (exact match):
    - type: task variant, e.g. irrigation
    - date: YYYY-MM-DD
    """
    return await store.list(user_id, task_type=task_type, day=day)


@router.get("/{task_id}", response_model=TaskRecord)
async def get_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    store: RemoteTaskStore = Depends(get_task_store)
):
    """
    Get a single task

    Only returns the task if it belongs to the authenticated user
    """
    return await store.get(user_id, task_id)


@router.post("", response_model=TaskRecord, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user_id),
    store: RemoteTaskStore = Depends(get_task_store)
):
    """
    Log a new task

    type, date and field are required; attributes that do not belong to
    the task's type are ignored.
    """
    return await store.create(user_id, payload)


@router.put("/{task_id}", response_model=TaskRecord)
async def update_task(
    task_id: str,
    patch: Dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user_id),
    store: RemoteTaskStore = Depends(get_task_store)
):
    """
    Update an existing task

    Only updates tasks that belong to the authenticated user
    """
    return await store.update(user_id, task_id, patch)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    store: RemoteTaskStore = Depends(get_task_store)
):
    """
    Delete a task

    Only deletes tasks that belong to the authenticated user
    """
    await store.delete(user_id, task_id)
    return MessageResponse(message="Task deleted")
