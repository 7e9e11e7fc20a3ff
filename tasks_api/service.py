# tasks_api/service.py

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Tuple

from tasks_api.query import TaskQuery
from tasks_api.schemas import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


class TaskNotFoundError(Exception):
    """No task with this id belongs to the caller."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class TaskService:
    """CRUD operations on a single user's tasks."""

    def __init__(self, store):
        self.store = store

    async def _load_scoped(self, task_id: str, user_id: str) -> Task:
        # A foreign task and a missing task must look the same to the caller.
        task = await self.store.get_task(task_id, user_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list_tasks(self, task_query: TaskQuery) -> Tuple[List[Task], int]:
        tasks, total = await asyncio.gather(
            self.store.find_tasks(task_query),
            self.store.count_tasks(task_query.filter),
        )
        return tasks, total

    async def create_task(self, user_id: str, task_in: TaskCreate) -> Task:
        current_time = datetime.now(timezone.utc)
        task = Task(
            id=str(uuid.uuid4()),
            title=task_in.title,
            description=task_in.description or "",
            due_date=task_in.due_date,
            priority=task_in.priority,
            user_id=user_id,
            created_at=current_time,
            updated_at=current_time,
        )
        await self.store.insert_task(task)
        logger.info("Created task %s for user %s", task.id, user_id)
        return task

    async def get_task(self, task_id: str, user_id: str) -> Task:
        return await self._load_scoped(task_id, user_id)

    async def update_task(self, task_id: str, user_id: str, task_update: TaskUpdate) -> Task:
        existing_task = await self._load_scoped(task_id, user_id)

        # Only fields present in the request body change; an explicit null
        # or empty description clears it, an explicit null dueDate clears it.
        update_fields = task_update.changes()
        if "description" in update_fields and update_fields["description"] is None:
            update_fields["description"] = ""
        update_fields["updated_at"] = max(datetime.now(timezone.utc), existing_task.created_at)

        updated_task = existing_task.model_copy(update=update_fields)
        await self.store.save_task(updated_task)
        logger.info("Updated task %s fields=%s", task_id, sorted(update_fields))
        return updated_task

    async def delete_task(self, task_id: str, user_id: str) -> None:
        await self._load_scoped(task_id, user_id)
        await self.store.delete_task(task_id, user_id)
        logger.info("Deleted task %s for user %s", task_id, user_id)
