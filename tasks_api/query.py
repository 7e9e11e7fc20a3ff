# tasks_api/query.py

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Tuple

from google.cloud import bigquery

from tasks_api.schemas import as_utc

DEFAULT_SORT_FIELD = "createdAt"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Public sort keys mapped to table columns; nothing else reaches ORDER BY.
SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "dueDate": "due_date",
    "title": "title",
    "priority": "priority",
    "status": "status",
}


@dataclass
class TaskFilter:
    """Conjunction of conditions over one user's tasks."""

    user_id: str
    search: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_from: Optional[datetime] = None
    due_to: Optional[datetime] = None
    due_before: Optional[datetime] = None
    created_from: Optional[datetime] = None

    def to_sql(self) -> Tuple[str, List[bigquery.ScalarQueryParameter]]:
        """Render the filter as a WHERE clause body plus its query parameters."""
        clauses = ["user_id = @user_id"]
        params = [bigquery.ScalarQueryParameter("user_id", "STRING", self.user_id)]

        if self.search:
            clauses.append(
                "(STRPOS(LOWER(title), LOWER(@search)) > 0"
                " OR STRPOS(LOWER(IFNULL(description, '')), LOWER(@search)) > 0)"
            )
            params.append(bigquery.ScalarQueryParameter("search", "STRING", self.search))
        if self.status:
            clauses.append("status = @status")
            params.append(bigquery.ScalarQueryParameter("status", "STRING", self.status))
        if self.priority:
            clauses.append("priority = @priority")
            params.append(bigquery.ScalarQueryParameter("priority", "STRING", self.priority))

        bounds = [
            ("due_date >= @due_from", "due_from", self.due_from),
            ("due_date <= @due_to", "due_to", self.due_to),
            ("due_date < @due_before", "due_before", self.due_before),
            ("created_at >= @created_from", "created_from", self.created_from),
        ]
        for clause, name, value in bounds:
            if value is not None:
                clauses.append(clause)
                params.append(bigquery.ScalarQueryParameter(name, "TIMESTAMP", value))

        return " AND ".join(clauses), params


@dataclass
class TaskQuery:
    filter: TaskFilter
    sort_by: str = SORT_FIELDS[DEFAULT_SORT_FIELD]
    descending: bool = True
    skip: int = 0
    limit: int = DEFAULT_LIMIT
    page: int = DEFAULT_PAGE

    def order_by_sql(self) -> str:
        direction = "DESC" if self.descending else "ASC"
        return f"{self.sort_by} {direction}, id {direction}"


def positive_int(value: Any, default: int) -> int:
    """Read the leading integer of a query value, falling back to ``default``.

    "2.5" and "3abc" read as 2 and 3; anything without leading digits, or
    not positive, gives ``default``.
    """
    if value is None:
        return default
    match = LEADING_INT.match(str(value))
    if not match:
        return default
    number = int(match.group(1))
    return number if number > 0 else default


def build_task_query(
    user_id: str,
    search: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: Any = None,
    limit: Any = None,
) -> TaskQuery:
    """Translate list parameters into a query scoped to ``user_id``.

    Missing or unusable optional parameters drop their clause or fall back
    to the defaults: newest first, page 1, ten per page.
    """
    task_filter = TaskFilter(
        user_id=user_id,
        search=search or None,
        status=status or None,
        priority=priority or None,
        due_from=as_utc(start_date),
        due_to=as_utc(end_date),
    )

    page = positive_int(page, DEFAULT_PAGE)
    limit = positive_int(limit, DEFAULT_LIMIT)

    return TaskQuery(
        filter=task_filter,
        sort_by=SORT_FIELDS.get(sort_by or DEFAULT_SORT_FIELD, SORT_FIELDS[DEFAULT_SORT_FIELD]),
        descending=(sort_order or "desc") == "desc",
        skip=(page - 1) * limit,
        limit=limit,
        page=page,
    )
