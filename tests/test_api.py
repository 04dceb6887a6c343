from fastapi.testclient import TestClient

from app.api import app

client = TestClient(app)

TASKS = [
    {"id": "A", "fields": {"Task Name": "A", "Priority": "P1-Critical", "Time Estimate": 30, "Auto-Schedule": True}},
    {"id": "B", "fields": {"Task Name": "B", "Priority": "P2-High", "Time Estimate": 45, "Auto-Schedule": True}},
    {"id": "C", "fields": {"Task Name": "C", "Priority": "P3-Medium", "Time Estimate": 20, "Auto-Schedule": True}},
    {"id": "E", "fields": {"Task Name": "E", "Priority": "P1-Critical", "Time Estimate": 15}},
]


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_schedule_with_clock_times():
    resp = client.post(
        "/schedule",
        json={
            "day": "2025-03-04",
            "tasks": TASKS,
            "blocks": [{"start": "09:00", "end": "10:00"}],
            "include_patches": True,
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["day"] == "2025-03-04"
    assert [(a["task_id"], a["start"]) for a in body["assignments"]] == [
        ("A", "2025-03-04T09:00:00"),
        ("C", "2025-03-04T09:30:00"),
    ]
    assert [u["task_id"] for u in body["unscheduled"]] == ["B"]
    assert body["ineligible"] == [
        {"task_id": "E", "name": "E", "reasons": ["auto-schedule disabled"]}
    ]
    assert body["summary"]["scheduled_minutes"] == 50
    assert [p["id"] for p in body["patches"]] == ["A", "C", "B", "E"]


def test_schedule_option_override():
    resp = client.post(
        "/schedule",
        json={
            "tasks": TASKS,
            "blocks": [{"start": "2025-03-04T09:00", "end": "2025-03-04T12:00"}],
            "options": {"ignore_auto_flag": True},
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert {a["task_id"] for a in body["assignments"]} == {"A", "B", "C", "E"}
    assert body["patches"] is None


def test_schedule_rejects_bad_blocks():
    resp = client.post(
        "/schedule",
        json={
            "tasks": TASKS,
            "blocks": [{"start": "2025-03-04T10:00", "end": "2025-03-04T09:00"}],
        },
    )
    assert resp.status_code == 400

    resp = client.post(
        "/schedule",
        json={"tasks": TASKS, "blocks": [{"start": "09:00", "end": "10:00"}]},
    )
    assert resp.status_code == 400


def test_schedule_rejects_bad_options():
    resp = client.post(
        "/schedule",
        json={"tasks": [], "blocks": [], "options": {"chunk_ceiling_minutes": 0}},
    )
    assert resp.status_code == 400


def test_focus():
    tasks = [
        {"id": "w", "Status": "Inbox", "Priority": "P2", "Project": "Stem Sales"},
        {"id": "p", "Status": "Inbox", "Priority": "P2", "Project": "Health"},
        {"id": "t", "Status": "Today", "Priority": "P3"},
    ]
    resp = client.post("/focus", json={"tasks": tasks, "target": 3})
    assert resp.status_code == 200
    picks = resp.json()["picks"]
    assert [p["task_id"] for p in picks] == ["w", "p"]
    assert [p["category"] for p in picks] == ["Work", "Personal"]


def test_normalize():
    resp = client.post("/normalize", json={"tasks": [{"Task Name": "Raw", "Time Estimate": "999"}]})
    assert resp.status_code == 200
    (task,) = resp.json()["tasks"]
    assert task["id"] == "#0"
    assert task["name"] == "Raw"
    assert task["durationMinutes"] == 480
    assert task["status"] == "Inbox"


def test_schedule_rejects_mixed_timezone_blocks():
    resp = client.post(
        "/schedule",
        json={
            "day": "2025-03-04",
            "tasks": TASKS,
            "blocks": [
                {"start": "09:00", "end": "10:00"},
                {"start": "2025-03-04T11:00+00:00", "end": "2025-03-04T12:00+00:00"},
            ],
        },
    )
    assert resp.status_code == 400
    assert "timezone" in resp.json()["detail"]


def test_schedule_with_buffer_and_energy():
    tasks = [
        {"id": "L", "Priority": "P1", "Energy Level": "Low", "Time Estimate": 30, "Auto-Schedule": True},
        {"id": "M", "Priority": "P2", "Time Estimate": 20, "Auto-Schedule": True},
    ]
    resp = client.post(
        "/schedule",
        json={
            "day": "2025-03-04",
            "tasks": tasks,
            "blocks": [{"start": "09:00", "end": "10:00"}, {"start": "15:00", "end": "16:00"}],
            "options": {"match_energy": True, "buffer_minutes": 10},
        },
    )
    assert resp.status_code == 200
    assert [(a["task_id"], a["start"]) for a in resp.json()["assignments"]] == [
        ("L", "2025-03-04T15:00:00"),
        ("M", "2025-03-04T09:00:00"),
    ]


def test_brief():
    tasks = [
        {"id": "deep", "Priority": "P1", "Context": "Deep Work", "Time Estimate": 90},
        {"id": "today", "Status": "Today", "Priority": "P3", "Time Estimate": 30},
        {"id": "mail", "Priority": "P4", "Time Estimate": 5},
        {"id": "done", "Status": "Done", "Priority": "P1"},
    ]
    resp = client.post("/brief", json={"tasks": tasks})
    assert resp.status_code == 200
    body = resp.json()
    assert body["start"]["id"] == "deep"
    assert [t["id"] for t in body["high"]] == ["today", "deep"]
    assert [t["id"] for t in body["low"]] == ["mail"]
    assert [t["id"] for t in body["quick"]] == ["mail"]
    assert body["estimates"] == {"high": 120, "med": 0, "low": 5, "quick": 5}
