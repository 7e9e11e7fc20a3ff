# tasks_api/analytics.py

"""Summary statistics over one user's tasks.

Each facet is an independent store query. All time-relative facets share
the single ``now`` handed to :func:`build_task_analytics`, so the report is
consistent with one instant even though the queries run concurrently.
"""

import asyncio
from datetime import datetime, time, timedelta, timezone
from typing import Dict, List

from tasks_api.query import TaskFilter, TaskQuery
from tasks_api.schemas import (
    CompletionTrendDay,
    Task,
    TaskAnalytics,
    TaskPriority,
    TaskStatus,
)

TREND_DAYS = 7
UPCOMING_WINDOW = timedelta(days=7)
UPCOMING_LIMIT = 5


def _zero_filled(enum_cls) -> Dict[str, int]:
    return {member.value: 0 for member in enum_cls}


async def priority_distribution(store, user_id: str) -> Dict[str, int]:
    counts = _zero_filled(TaskPriority)
    for group in await store.group_count(TaskFilter(user_id=user_id), ["priority"]):
        counts[group["priority"]] = group["count"]
    return counts


async def status_distribution(store, user_id: str) -> Dict[str, int]:
    counts = _zero_filled(TaskStatus)
    for group in await store.group_count(TaskFilter(user_id=user_id), ["status"]):
        counts[group["status"]] = group["count"]
    return counts


async def completion_trend(store, user_id: str, now: datetime) -> List[CompletionTrendDay]:
    """Tasks created per day over the last week, today included.

    Days without tasks are left out; the rest come back oldest first.
    """
    first_day = now.astimezone(timezone.utc).date() - timedelta(days=TREND_DAYS - 1)
    since = datetime.combine(first_day, time.min, tzinfo=timezone.utc)

    groups = await store.group_count(
        TaskFilter(user_id=user_id, created_from=since), ["created_day", "status"]
    )

    days: Dict[str, Dict[str, int]] = {}
    for group in groups:
        day = days.setdefault(group["created_day"], {"completed": 0, "total": 0})
        day["total"] += group["count"]
        if group["status"] == TaskStatus.COMPLETED.value:
            day["completed"] += group["count"]

    return [CompletionTrendDay(date=date, **day) for date, day in sorted(days.items())]


async def upcoming_deadlines(store, user_id: str, now: datetime) -> List[Task]:
    task_query = TaskQuery(
        filter=TaskFilter(
            user_id=user_id,
            status=TaskStatus.PENDING.value,
            due_from=now,
            due_to=now + UPCOMING_WINDOW,
        ),
        sort_by="due_date",
        descending=False,
        limit=UPCOMING_LIMIT,
    )
    return await store.find_tasks(task_query)


async def priority_by_status(store, user_id: str) -> Dict[str, Dict[str, int]]:
    result: Dict[str, Dict[str, int]] = {}
    for group in await store.group_count(TaskFilter(user_id=user_id), ["status", "priority"]):
        by_priority = result.setdefault(group["status"], _zero_filled(TaskPriority))
        by_priority[group["priority"]] = group["count"]
    return result


async def overdue_count(store, user_id: str, now: datetime) -> int:
    return await store.count_tasks(
        TaskFilter(user_id=user_id, status=TaskStatus.PENDING.value, due_before=now)
    )


async def build_task_analytics(store, user_id: str, now: datetime) -> TaskAnalytics:
    (
        priorities,
        statuses,
        trend,
        upcoming,
        matrix,
        overdue,
    ) = await asyncio.gather(
        priority_distribution(store, user_id),
        status_distribution(store, user_id),
        completion_trend(store, user_id, now),
        upcoming_deadlines(store, user_id, now),
        priority_by_status(store, user_id),
        overdue_count(store, user_id, now),
    )

    return TaskAnalytics(
        priority_distribution=priorities,
        status_distribution=statuses,
        completion_trend=trend,
        upcoming_deadlines=upcoming,
        priority_by_status=matrix,
        overdue_tasks=overdue,
    )
