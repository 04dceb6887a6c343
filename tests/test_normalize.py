from datetime import date, datetime

import pytest

from dayplan.normalize import (
    clamp_minutes,
    coerce_bool,
    lookup_field,
    normalize_task,
    normalize_tasks,
    parse_date_only,
    task_to_record,
)
from dayplan.schema import Category, Context, Energy, Priority, Status, Task


def test_store_record_is_unwrapped():
    rec = {
        "id": "rec1",
        "fields": {
            "Task Name": "Write report",
            "Status": "This Week",
            "Priority": "P1-Critical",
            "Energy Level": "High",
            "Context": "Deep Work",
            "Time Estimate": 60,
            "Due Date": "2025-03-07",
            "Project": "Command Center",
            "Auto-Schedule": True,
            "Blocked By": ["rec9"],
        },
    }
    t = normalize_task(rec)
    assert t == Task(
        id="rec1",
        name="Write report",
        status=Status.THIS_WEEK,
        priority=Priority.P1,
        energy=Energy.HIGH,
        context=Context.DEEP_WORK,
        duration_minutes=60,
        due_date=date(2025, 3, 7),
        project="Command Center",
        auto_schedule=True,
        blocked_by=("rec9",),
    )
    assert t.category == Category.PROJECT


def test_defaults_for_empty_record():
    t = normalize_task({"id": "x"})
    assert t.name == "(untitled)"
    assert t.status == Status.INBOX
    assert t.priority == Priority.P3
    assert t.energy == Energy.MEDIUM
    assert t.context == Context.ADMIN
    assert t.duration_minutes == 30
    assert t.due_date is None
    assert t.auto_schedule is False
    assert t.blocked_by == ()
    assert t.category == Category.WORK


def test_store_label_wins_over_legacy_alias():
    assert lookup_field({"Time Estimate": 45, "time": 10}, "duration") == 45
    assert lookup_field({"time": 10, "estimate": 99}, "duration") == 10
    assert lookup_field({"Time Estimate": "", "estimate": 15}, "duration") == 15
    assert lookup_field({}, "duration", default=30) == 30


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 30),
        ("abc", 30),
        (-5, 30),
        (0, 30),
        (float("nan"), 30),
        (True, 30),
        ("20", 20),
        (12.5, 13),
        (0.4, 1),
        (1000, 480),
    ],
)
def test_clamp_minutes(raw, expected):
    assert clamp_minutes(raw) == expected


@pytest.mark.parametrize("raw", [True, "true", "YES", " on ", "y", "1", 2, -1.0])
def test_coerce_bool_truthy(raw):
    assert coerce_bool(raw) is True


@pytest.mark.parametrize("raw", [False, "no", "0", "maybe", 0, 0.0, None, [], {}, float("nan")])
def test_coerce_bool_falsy(raw):
    assert coerce_bool(raw) is False


def test_parse_date_only():
    assert parse_date_only("2025-03-04") == date(2025, 3, 4)
    assert parse_date_only("2025-03-04T10:00:00.000Z") == date(2025, 3, 4)
    assert parse_date_only(datetime(2025, 3, 4, 18, 30)) == date(2025, 3, 4)
    assert parse_date_only(date(2025, 3, 4)) == date(2025, 3, 4)
    assert parse_date_only("03/04/2025") is None
    assert parse_date_only("2025-13-01") is None
    assert parse_date_only(None) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("This Week", Status.THIS_WEEK),
        ("this_week", Status.THIS_WEEK),
        ("ThisWeek", Status.THIS_WEEK),
        ("done", Status.DONE),
        ("", Status.INBOX),
        ("Waiting on client", Status.SOMEDAY),
    ],
)
def test_status_coercion(raw, expected):
    assert normalize_task({"id": "s", "Status": raw}).status == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("P1-Critical", Priority.P1),
        ("p2", Priority.P2),
        (4, Priority.P4),
        ("3", Priority.P3),
        ("low", Priority.P4),
        ("urgent", Priority.P3),
        (7, Priority.P3),
        (True, Priority.P3),
    ],
)
def test_priority_coercion(raw, expected):
    assert normalize_task({"id": "p", "priority": raw}).priority == expected


def test_blocked_by_shapes():
    t = normalize_task({"id": "a", "blockedBy": [{"id": "x"}, "y", "x", None]})
    assert t.blocked_by == ("x", "y")
    assert normalize_task({"id": "a", "Blocked By": "x, y"}).blocked_by == ("x", "y")


def test_project_list_and_category():
    t = normalize_task({"id": "a", "Project": ["Health"]})
    assert t.project == "Health"
    assert t.category == Category.PERSONAL
    assert normalize_task({"id": "b", "project": "Side Quest"}).category == Category.WORK


def test_malformed_input_never_raises():
    assert normalize_task(None, fallback_id="f") == Task(id="f")
    assert normalize_task(["not", "a", "mapping"], fallback_id="g").id == "g"
    t = normalize_task(
        {
            "id": 42,
            "Task Name": 7,
            "Status": object(),
            "Time Estimate": [1, 2],
            "Due Date": 20250304,
            "Priority": float("inf"),
            "Auto-Schedule": {"on": True},
        }
    )
    assert t.id == "42"
    assert t.name == "7"
    assert t.status == Status.SOMEDAY
    assert t.duration_minutes == 30
    assert t.due_date is None
    assert t.priority == Priority.P3
    assert t.auto_schedule is False

    huge = normalize_task({"id": "h", "durationMinutes": 10**400, "priority": 10**400})
    assert huge.duration_minutes == 30
    assert huge.priority == Priority.P3
    assert normalize_task({"id": "n", "priority": float("nan")}).priority == Priority.P3


def test_normalization_is_idempotent():
    tasks = normalize_tasks(
        [
            {"id": "a", "fields": {"Task Name": "A", "Priority": "P2-High", "Due Date": "2025-01-02"}},
            {"name": "B", "time": 600, "autoSchedule": "yes", "blockedBy": "a"},
            {"id": "c", "status": "Someday", "project": ["Learning"]},
        ]
    )
    for t in tasks:
        assert normalize_task(t) is t
        assert normalize_task(task_to_record(t)) == t


def test_normalize_tasks_fills_ids_and_warns_on_duplicates(caplog):
    with caplog.at_level("WARNING", logger="dayplan.normalize"):
        tasks = normalize_tasks([{"id": "a"}, {"name": "no id"}, {"id": "a"}])
    assert [t.id for t in tasks] == ["a", "#1", "a"]
    assert "Duplicate task id 'a'" in caplog.text
