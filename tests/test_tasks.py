import threading
from datetime import date

import pytest

from release_tracker.asana import AsanaAPIError
from release_tracker.config import Settings
from release_tracker.tasks import (
    annotate_task,
    fetch_in_batches,
    get_upcoming_tasks,
    is_upcoming,
    sort_tasks_by_due_on,
)

TODAY = date(2024, 1, 1)


@pytest.mark.parametrize(
    "task,expect",
    [
        ({"completed": True, "due_on": "2024-01-05"}, False),
        ({"completed": False, "due_on": None}, False),
        ({"completed": False}, False),
        ({"completed": False, "due_on": "2024-01-01"}, True),
        ({"completed": False, "due_on": "2024-01-31"}, True),
        ({"completed": False, "due_on": "2024-02-01"}, False),
        ({"completed": False, "due_on": "2023-12-31"}, False),
    ],
)
def test_is_upcoming(task, expect):
    assert is_upcoming(task, TODAY) is expect


def test_is_upcoming_custom_window():
    assert is_upcoming({"due_on": "2024-01-08"}, TODAY, window_days=7) is True
    assert is_upcoming({"due_on": "2024-01-09"}, TODAY, window_days=7) is False


def test_sort_tasks_by_due_on():
    tasks = [{"due_on": "2024-01-05"}, {"due_on": "2024-01-02"}]
    assert [t["due_on"] for t in sort_tasks_by_due_on(tasks)] == ["2024-01-02", "2024-01-05"]


def test_annotate_task_adds_project_fields():
    task = {"gid": "t1", "name": "Master final mix", "due_on": "2024-01-10"}
    project = {"gid": "p1", "name": "Winter EP", "due_date": "2024-02-01"}
    out = annotate_task(task, project)
    assert out["project_name"] == "Winter EP"
    assert out["project_gid"] == "p1"
    assert out["project_due_date"] == "2024-02-01"
    assert out["name"] == "Master final mix"
    assert "project_name" not in task


def test_fetch_in_batches_windows_and_pauses():
    log = []
    lock = threading.Lock()
    delays = []

    def fetch(item):
        with lock:
            log.append(item)
        return [item * 10]

    def sleep(seconds):
        delays.append(seconds)
        log.append("sleep")

    out = fetch_in_batches(list(range(12)), fetch, batch_size=5, delay_seconds=0.1, sleep=sleep)

    assert out == [i * 10 for i in range(12)]
    assert len(log) == 14
    assert [i for i, x in enumerate(log) if x == "sleep"] == [5, 11]
    assert sorted(log[:5]) == [0, 1, 2, 3, 4]
    assert sorted(log[6:11]) == [5, 6, 7, 8, 9]
    assert sorted(log[12:]) == [10, 11]
    assert delays == [0.1, 0.1]


def test_fetch_in_batches_single_window_no_pause():
    delays = []
    out = fetch_in_batches([1, 2, 3], lambda x: [x], batch_size=5, sleep=delays.append)
    assert out == [1, 2, 3]
    assert delays == []


def test_fetch_in_batches_empty():
    assert fetch_in_batches([], lambda x: [x], sleep=lambda s: None) == []


class FakeAsana:
    def __init__(self, projects, tasks_by_project, failing=()):
        self.projects = projects
        self.tasks_by_project = tasks_by_project
        self.failing = set(failing)

    def list_projects(self, workspace_id, opt_fields=()):
        return self.projects

    def list_project_tasks(self, project_gid, opt_fields=()):
        if project_gid in self.failing:
            raise AsanaAPIError(500, "Internal Server Error")
        return self.tasks_by_project.get(project_gid, [])


def test_get_upcoming_tasks_skips_failed_project():
    projects = [
        {"gid": "p1", "name": "Spring EP", "due_date": "2024-03-01"},
        {"gid": "p2", "name": "Debut Album"},
        {"gid": "p3", "name": "Single: Glass"},
        {"gid": "p4", "name": "Accounting"},
    ]
    tasks = {
        "p1": [
            {"gid": "t1", "name": "Artwork", "due_on": "2024-01-20", "completed": False},
            {"gid": "t2", "name": "Done", "due_on": "2024-01-03", "completed": True},
        ],
        "p2": [{"gid": "t3", "name": "Mastering", "due_on": "2024-01-05", "completed": False}],
        "p3": [{"gid": "t4", "name": "Pitch", "due_on": "2024-01-02", "completed": False}],
        "p4": [{"gid": "t5", "name": "Taxes", "due_on": "2024-01-02", "completed": False}],
    }
    client = FakeAsana(projects, tasks, failing={"p2"})
    settings = Settings(asana_token="t", workspace_id="w")

    out, processed = get_upcoming_tasks(settings, client, today=TODAY, sleep=lambda s: None)

    assert processed == 3
    assert [t["gid"] for t in out] == ["t4", "t1"]
    assert out[1]["project_name"] == "Spring EP"
    assert out[1]["project_due_date"] == "2024-03-01"


def test_get_upcoming_tasks_uses_configured_batching():
    projects = [{"gid": str(i), "name": f"EP {i}"} for i in range(7)]
    client = FakeAsana(projects, {})
    settings = Settings(asana_token="t", workspace_id="w", batch_size=3, batch_delay_ms=250)
    delays = []

    out, processed = get_upcoming_tasks(settings, client, today=TODAY, sleep=delays.append)

    assert out == []
    assert processed == 7
    assert delays == [0.25, 0.25]


def test_malformed_task_record_only_drops_that_project():
    projects = [
        {"gid": "p1", "name": "Broken EP"},
        {"gid": "p2", "name": "Working Single"},
    ]
    tasks = {
        "p1": [None],
        "p2": [{"gid": "t", "name": "Press kit", "due_on": "2024-01-10", "completed": False}],
    }
    client = FakeAsana(projects, tasks)
    settings = Settings(asana_token="t", workspace_id="w")

    out, processed = get_upcoming_tasks(settings, client, today=TODAY, sleep=lambda s: None)

    assert [t["gid"] for t in out] == ["t"]
    assert processed == 2
