"""
Upcoming tasks across release projects.

Task lists are fetched per project in fixed-size windows: every request in a
window runs concurrently, the window is awaited in full, then a short pause
precedes the next window. A failing project contributes no tasks instead of
failing the whole request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, timezone
from typing import Any, TypeVar

from .asana import TASK_OPT_FIELDS, AsanaClient
from .config import DEFAULT_UPCOMING_WINDOW_DAYS, Settings
from .releases import fetch_release_projects, parse_due

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def is_upcoming(
    task: dict[str, Any], today: date, window_days: int = DEFAULT_UPCOMING_WINDOW_DAYS
) -> bool:
    """Incomplete and due within [today, today + window_days], inclusive."""
    if task.get("completed"):
        return False
    due = parse_due(task.get("due_on"))
    if due is None:
        return False
    return today <= due <= today + timedelta(days=window_days)


def annotate_task(task: dict[str, Any], project: dict[str, Any]) -> dict[str, Any]:
    return {
        **task,
        "project_name": project.get("name"),
        "project_gid": project.get("gid"),
        "project_due_date": project.get("due_date"),
    }


def sort_tasks_by_due_on(tasks: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # Only filtered tasks reach here, so due_on is always set.
    return sorted(tasks, key=lambda t: parse_due(t.get("due_on")) or date.max)


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


def fetch_in_batches(
    items: Sequence[T],
    fetch: Callable[[T], list[R]],
    batch_size: int = 5,
    delay_seconds: float = 0.1,
    sleep: Callable[[float], Any] = time.sleep,
) -> list[R]:
    """Run `fetch` over `items` in concurrent windows of `batch_size`.

    Results are concatenated window by window, in item order. `fetch` is
    expected to handle its own errors; anything it raises propagates.
    """
    size = max(1, batch_size)
    results: list[R] = []
    if not items:
        return results
    with ThreadPoolExecutor(max_workers=size) as pool:
        batches = list(chunked(items, size))
        for n, batch in enumerate(batches):
            for out in pool.map(fetch, batch):
                results.extend(out)
            if n < len(batches) - 1 and delay_seconds > 0:
                sleep(delay_seconds)
    return results


def fetch_project_tasks(
    client: AsanaClient,
    project: dict[str, Any],
    today: date,
    window_days: int = DEFAULT_UPCOMING_WINDOW_DAYS,
) -> list[dict[str, Any]]:
    try:
        tasks = client.list_project_tasks(str(project.get("gid")), TASK_OPT_FIELDS)
        return [annotate_task(t, project) for t in tasks if is_upcoming(t, today, window_days)]
    except Exception as e:
        logger.warning(
            "Failed to fetch tasks for project %s (%s): %s",
            project.get("name"),
            project.get("gid"),
            e,
        )
        return []


def get_upcoming_tasks(
    settings: Settings,
    client: AsanaClient,
    today: date | None = None,
    sleep: Callable[[float], Any] = time.sleep,
) -> tuple[list[dict[str, Any]], int]:
    """Return (upcoming tasks sorted by due date, number of release projects)."""
    today = today or utc_today()
    projects, _total = fetch_release_projects(settings, client)
    logger.info("Processing tasks for %d release projects", len(projects))

    tasks = fetch_in_batches(
        projects,
        lambda p: fetch_project_tasks(client, p, today, settings.upcoming_window_days),
        batch_size=settings.batch_size,
        delay_seconds=settings.batch_delay_seconds,
        sleep=sleep,
    )
    tasks = sort_tasks_by_due_on(tasks)
    logger.info(
        "Found %d upcoming tasks across %d projects", len(tasks), len(projects)
    )
    return tasks, len(projects)
