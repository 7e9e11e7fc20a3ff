# tasks_api/routes.py

import logging
import math
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tasks_api.analytics import build_task_analytics
from tasks_api.auth import get_current_user, require_admin
from tasks_api.database import build_task_store
from tasks_api.query import build_task_query
from tasks_api.schemas import (
    CurrentUser,
    Message,
    Pagination,
    Task,
    TaskAnalytics,
    TaskCreate,
    TaskList,
    TaskUpdate,
)
from tasks_api.service import TaskNotFoundError, TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"], dependencies=[Depends(get_current_user)])
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_task_store():
    """Open the shared task store; bootstrap failures surface as 400."""
    try:
        return build_task_store()
    except Exception as e:
        raise bad_request("open task store", e)


def get_task_service(store=Depends(get_task_store)) -> TaskService:
    return TaskService(store)


def get_now() -> datetime:
    """Request clock; analytics reads it once per request."""
    return datetime.now(timezone.utc)


def bad_request(action: str, e: Exception) -> HTTPException:
    logger.error("Failed to %s: %s", action, e)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def task_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")


# READ (All) - GET /api/tasks
@router.get("", response_model=TaskList)
async def list_tasks(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: Optional[str] = None,
    limit: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    task_query = build_task_query(
        current_user.id,
        search=search,
        status=status_filter,
        priority=priority,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )

    try:
        tasks, total = await service.list_tasks(task_query)
    except Exception as e:
        raise bad_request("fetch tasks", e)

    return TaskList(
        tasks=tasks,
        pagination=Pagination(
            total=total,
            page=task_query.page,
            pages=math.ceil(total / task_query.limit),
        ),
    )


# CREATE - POST /api/tasks
@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    try:
        return await service.create_task(current_user.id, task)
    except Exception as e:
        raise bad_request("create task", e)


# ANALYTICS - GET /api/tasks/analytics
@router.get("/analytics", response_model=TaskAnalytics)
async def task_analytics(
    current_user: CurrentUser = Depends(get_current_user),
    store=Depends(get_task_store),
    now: datetime = Depends(get_now),
):
    try:
        return await build_task_analytics(store, current_user.id, now)
    except Exception as e:
        raise bad_request("build analytics", e)


# READ (Single) - GET /api/tasks/{task_id}
@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    try:
        return await service.get_task(str(task_id), current_user.id)
    except TaskNotFoundError:
        raise task_not_found()
    except Exception as e:
        raise bad_request("fetch task", e)


# UPDATE - PUT /api/tasks/{task_id}
@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: UUID,
    task_update: TaskUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    try:
        return await service.update_task(str(task_id), current_user.id, task_update)
    except TaskNotFoundError:
        raise task_not_found()
    except Exception as e:
        raise bad_request("update task", e)


# DELETE - DELETE /api/tasks/{task_id}
@router.delete("/{task_id}", response_model=Message)
async def delete_task(
    task_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    try:
        await service.delete_task(str(task_id), current_user.id)
    except TaskNotFoundError:
        raise task_not_found()
    except Exception as e:
        raise bad_request("delete task", e)
    return Message(message="Task removed")


@auth_router.get("/me", response_model=CurrentUser)
async def read_me(current_user: CurrentUser = Depends(get_current_user)):
    return current_user


@auth_router.get("/admin-check", response_model=Message)
async def admin_check(admin: CurrentUser = Depends(require_admin)):
    return Message(message="You are an admin!")
