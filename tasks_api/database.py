# tasks_api/database.py

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from google.cloud import bigquery

from tasks_api.config import Settings, get_settings
from tasks_api.query import TaskFilter, TaskQuery
from tasks_api.schemas import Task

logger = logging.getLogger(__name__)

# Thread pool executor for running synchronous BigQuery operations
executor = ThreadPoolExecutor(max_workers=10)

TASK_COLUMNS = "id, title, description, due_date, priority, status, user_id, created_at, updated_at"

# Grouping keys accepted by group_count, mapped to their SQL expressions.
GROUP_KEYS = {
    "priority": "priority",
    "status": "status",
    "created_day": "FORMAT_TIMESTAMP('%Y-%m-%d', created_at)",
}


class BigQueryClient:
    def __init__(self, settings: Settings):
        settings.require_bigquery()

        try:
            self.client = bigquery.Client(project=settings.bigquery_project_id)
        except Exception as e:
            raise ConnectionError(f"Failed to initialize BigQuery client: {str(e)}")

        self.project_id = settings.bigquery_project_id
        self.dataset_id = settings.bigquery_dataset
        self.table_id = settings.bigquery_table
        self.location = settings.bigquery_location

        # Auto-create dataset and table
        self._create_dataset_if_not_exists()
        self._create_table_if_not_exists()

    def get_full_table_id(self):
        return f"{self.project_id}.{self.dataset_id}.{self.table_id}"

    def _create_dataset_if_not_exists(self):
        """Create the dataset if it doesn't exist"""
        dataset_ref = bigquery.DatasetReference(self.project_id, self.dataset_id)
        dataset = bigquery.Dataset(dataset_ref)
        dataset.location = self.location

        self.client.create_dataset(dataset, exists_ok=True)
        logger.info("Dataset %s is ready", self.dataset_id)

    def _create_table_if_not_exists(self):
        """Create the tasks table if it doesn't exist"""
        schema = [
            bigquery.SchemaField("id", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("title", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("description", "STRING", mode="NULLABLE"),
            bigquery.SchemaField("due_date", "TIMESTAMP", mode="NULLABLE"),
            bigquery.SchemaField("priority", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("status", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("user_id", "STRING", mode="REQUIRED"),
            bigquery.SchemaField("created_at", "TIMESTAMP", mode="REQUIRED"),
            bigquery.SchemaField("updated_at", "TIMESTAMP", mode="REQUIRED"),
        ]

        table_ref = bigquery.TableReference(
            bigquery.DatasetReference(self.project_id, self.dataset_id),
            self.table_id
        )
        table = bigquery.Table(table_ref, schema=schema)

        self.client.create_table(table, exists_ok=True)
        logger.info("Table %s is ready", self.table_id)

    def run(self, query: str, params: Sequence[bigquery.ScalarQueryParameter] = ()) -> list:
        job_config = bigquery.QueryJobConfig(query_parameters=list(params))
        query_job = self.client.query(query, job_config=job_config)
        return list(query_job.result())


def row_to_task(row) -> Task:
    """Helper function to convert BigQuery row to Task model."""
    return Task(
        id=row.id,
        title=row.title,
        description=row.description,
        due_date=row.due_date,
        priority=row.priority,
        status=row.status,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def task_params(task: Task) -> List[bigquery.ScalarQueryParameter]:
    return [
        bigquery.ScalarQueryParameter("id", "STRING", task.id),
        bigquery.ScalarQueryParameter("title", "STRING", task.title),
        bigquery.ScalarQueryParameter("description", "STRING", task.description),
        bigquery.ScalarQueryParameter("due_date", "TIMESTAMP", task.due_date),
        bigquery.ScalarQueryParameter("priority", "STRING", task.priority.value),
        bigquery.ScalarQueryParameter("status", "STRING", task.status.value),
        bigquery.ScalarQueryParameter("user_id", "STRING", task.user_id),
        bigquery.ScalarQueryParameter("created_at", "TIMESTAMP", task.created_at),
        bigquery.ScalarQueryParameter("updated_at", "TIMESTAMP", task.updated_at),
    ]


async def run_bigquery_query(query_func, *args, **kwargs):
    """Run synchronous BigQuery operations in thread pool executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, lambda: query_func(*args, **kwargs))


class BigQueryTaskStore:
    """Task persistence on a BigQuery table.

    Every statement is parameterized and every lookup carries the owner's
    ``user_id``, so a row is only ever visible to the user who created it.
    Calls are single attempts; errors from the client propagate unchanged.
    """

    def __init__(self, bigquery_client: BigQueryClient):
        self.bq = bigquery_client
        self.table = bigquery_client.get_full_table_id()

    async def insert_task(self, task: Task) -> Task:
        query = f"""
        INSERT INTO `{self.table}`
        ({TASK_COLUMNS})
        VALUES (@id, @title, @description, @due_date, @priority, @status, @user_id, @created_at, @updated_at)
        """
        await run_bigquery_query(self.bq.run, query, task_params(task))
        logger.debug("Inserted task %s for user %s", task.id, task.user_id)
        return task

    async def get_task(self, task_id: str, user_id: str) -> Optional[Task]:
        query = f"""
        SELECT {TASK_COLUMNS}
        FROM `{self.table}`
        WHERE id = @task_id AND user_id = @user_id
        """
        params = [
            bigquery.ScalarQueryParameter("task_id", "STRING", task_id),
            bigquery.ScalarQueryParameter("user_id", "STRING", user_id),
        ]
        results = await run_bigquery_query(self.bq.run, query, params)
        if not results:
            return None
        return row_to_task(results[0])

    async def find_tasks(self, task_query: TaskQuery) -> List[Task]:
        where, params = task_query.filter.to_sql()
        query = f"""
        SELECT {TASK_COLUMNS}
        FROM `{self.table}`
        WHERE {where}
        ORDER BY {task_query.order_by_sql()}
        LIMIT @limit OFFSET @skip
        """
        params = params + [
            bigquery.ScalarQueryParameter("limit", "INT64", task_query.limit),
            bigquery.ScalarQueryParameter("skip", "INT64", task_query.skip),
        ]
        results = await run_bigquery_query(self.bq.run, query, params)
        return [row_to_task(row) for row in results]

    async def count_tasks(self, task_filter: TaskFilter) -> int:
        where, params = task_filter.to_sql()
        query = f"""
        SELECT COUNT(*) AS total
        FROM `{self.table}`
        WHERE {where}
        """
        results = await run_bigquery_query(self.bq.run, query, params)
        return results[0].total if results else 0

    async def group_count(self, task_filter: TaskFilter, keys: Sequence[str]) -> List[Dict]:
        """Count matching tasks per distinct combination of ``keys``.

        Returns one dict per group holding each key's value and ``count``.
        """
        unknown = [key for key in keys if key not in GROUP_KEYS]
        if unknown:
            raise ValueError(f"Unsupported group keys: {', '.join(unknown)}")

        where, params = task_filter.to_sql()
        selected = ", ".join(f"{GROUP_KEYS[key]} AS {key}" for key in keys)
        query = f"""
        SELECT {selected}, COUNT(*) AS count
        FROM `{self.table}`
        WHERE {where}
        GROUP BY {", ".join(keys)}
        """
        results = await run_bigquery_query(self.bq.run, query, params)
        return [{**{key: row[key] for key in keys}, "count": row["count"]} for row in results]

    async def save_task(self, task: Task) -> Task:
        query = f"""
        UPDATE `{self.table}`
        SET title = @title, description = @description, due_date = @due_date,
            priority = @priority, status = @status, updated_at = @updated_at
        WHERE id = @id AND user_id = @user_id
        """
        params = [p for p in task_params(task) if p.name != "created_at"]
        await run_bigquery_query(self.bq.run, query, params)
        logger.debug("Saved task %s", task.id)
        return task

    async def delete_task(self, task_id: str, user_id: str) -> None:
        query = f"""
        DELETE FROM `{self.table}`
        WHERE id = @task_id AND user_id = @user_id
        """
        params = [
            bigquery.ScalarQueryParameter("task_id", "STRING", task_id),
            bigquery.ScalarQueryParameter("user_id", "STRING", user_id),
        ]
        await run_bigquery_query(self.bq.run, query, params)
        logger.debug("Deleted task %s", task_id)


@lru_cache
def build_task_store() -> BigQueryTaskStore:
    return BigQueryTaskStore(BigQueryClient(get_settings()))
