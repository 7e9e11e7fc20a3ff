# tests/test_query.py

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tasks_api.query import TaskFilter, build_task_query, positive_int


def _param_values(params) -> dict:
    return {p.name: p.value for p in params}


def test_defaults_scope_to_caller_newest_first() -> None:
    q = build_task_query("alice")

    assert q.filter == TaskFilter(user_id="alice")
    assert q.sort_by == "created_at"
    assert q.descending is True
    assert (q.page, q.limit, q.skip) == (1, 10, 0)

    where, params = q.filter.to_sql()
    assert where == "user_id = @user_id"
    assert _param_values(params) == {"user_id": "alice"}


def test_all_filters_are_anded_and_search_spans_title_and_description() -> None:
    start = datetime(2026, 10, 1, tzinfo=timezone.utc)
    end = datetime(2026, 10, 31, tzinfo=timezone.utc)
    q = build_task_query(
        "alice",
        search="Report",
        status="Pending",
        priority="High",
        start_date=start,
        end_date=end,
    )

    where, params = q.filter.to_sql()
    clauses = where.split(" AND ")
    assert clauses[0] == "user_id = @user_id"
    assert "STRPOS(LOWER(title), LOWER(@search)) > 0" in where
    assert " OR " in clauses[1]
    assert "status = @status" in clauses
    assert "priority = @priority" in clauses
    assert "due_date >= @due_from" in clauses
    assert "due_date <= @due_to" in clauses
    assert _param_values(params) == {
        "user_id": "alice",
        "search": "Report",
        "status": "Pending",
        "priority": "High",
        "due_from": start,
        "due_to": end,
    }


def test_single_date_bound_is_allowed() -> None:
    q = build_task_query("alice", end_date=datetime(2026, 10, 31))

    where, params = q.filter.to_sql()
    assert "due_date <= @due_to" in where
    assert "due_date >= @due_from" not in where
    # naive bounds are read as UTC
    assert q.filter.due_to.tzinfo == timezone.utc


def test_empty_strings_drop_their_clause() -> None:
    q = build_task_query("alice", search="", status="", priority="")
    where, _ = q.filter.to_sql()
    assert where == "user_id = @user_id"


@pytest.mark.parametrize(
    "sort_by, sort_order, expected",
    [
        ("dueDate", "asc", "due_date ASC, id ASC"),
        ("title", "desc", "title DESC, id DESC"),
        ("priority", None, "priority DESC, id DESC"),
        ("title; DROP TABLE tasks", "asc", "created_at ASC, id ASC"),
        (None, "sideways", "created_at ASC, id ASC"),
    ],
)
def test_order_by(sort_by, sort_order, expected) -> None:
    q = build_task_query("alice", sort_by=sort_by, sort_order=sort_order)
    assert q.order_by_sql() == expected


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        ("3", "20", (3, 20, 40)),
        (2, 5, (2, 5, 5)),
        ("abc", "xyz", (1, 10, 0)),
        ("2.5", "3abc", (2, 3, 3)),
        ("0", "-4", (1, 10, 0)),
        (None, None, (1, 10, 0)),
    ],
)
def test_page_window(page, limit, expected) -> None:
    q = build_task_query("alice", page=page, limit=limit)
    assert (q.page, q.limit, q.skip) == expected


def test_positive_int_reads_leading_digits() -> None:
    assert positive_int("7", 1) == 7
    assert positive_int("2.5", 1) == 2
    assert positive_int("3abc", 10) == 3
    assert positive_int(" 4", 1) == 4
    assert positive_int("abc3", 1) == 1
    assert positive_int(object(), 3) == 3


def test_internal_bounds_render_as_exclusive_and_created_from() -> None:
    now = datetime(2026, 10, 19, tzinfo=timezone.utc)
    where, params = TaskFilter(user_id="bob", due_before=now, created_from=now).to_sql()

    assert "due_date < @due_before" in where
    assert "created_at >= @created_from" in where
    assert _param_values(params)["due_before"] == now
