import json

import pytest

from app import cli
from app.cli import main


@pytest.fixture
def files(tmp_path):
    tasks = tmp_path / "tasks.json"
    tasks.write_text(
        json.dumps(
            {
                "records": [
                    {"id": "A", "fields": {"Task Name": "Write report", "Priority": "P1-Critical", "Time Estimate": 30, "Auto-Schedule": True}},
                    {"id": "B", "fields": {"Task Name": "Budget", "Priority": "P2-High", "Time Estimate": 45, "Auto-Schedule": True}},
                    {"id": "C", "fields": {"Task Name": "Email", "Priority": "P3-Medium", "Time Estimate": 20, "Auto-Schedule": True}},
                    {"id": "D", "fields": {"Task Name": "Old", "Status": "Done"}},
                ]
            }
        )
    )
    blocks = tmp_path / "blocks.json"
    blocks.write_text(json.dumps({"day": "2025-03-04", "blocks": [{"start": "09:00", "end": "10:00"}]}))
    return tasks, blocks


def test_plan_prints_schedule(files, capsys):
    tasks, blocks = files
    main(["plan", str(tasks), str(blocks)])
    out = capsys.readouterr().out
    assert "[plan] Day: 2025-03-04" in out
    assert "09:00-09:30  Write report" in out
    assert "09:30-09:50  Email" in out
    assert "Budget (45m, P2)" in out
    assert "Old: " in out
    assert "50/60 min" in out


def test_plan_writes_json(files, tmp_path, capsys):
    tasks, blocks = files
    out_path = tmp_path / "plan.json"
    main(["plan", str(tasks), str(blocks), "--out", str(out_path)])
    saved = json.loads(out_path.read_text())
    assert [a["task_id"] for a in saved["assignments"]] == ["A", "C"]
    assert saved["summary"]["n_unscheduled"] == 1


def test_plan_missing_blocks_file(files, tmp_path):
    tasks, _ = files
    with pytest.raises(SystemExit):
        main(["plan", str(tasks), str(tmp_path / "nope.json")])


def test_plan_rejects_bad_day(files):
    tasks, blocks = files
    with pytest.raises(SystemExit):
        main(["plan", str(tasks), str(blocks), "--day", "March 4"])


def test_focus_command(files, capsys):
    tasks, _ = files
    main(["focus", str(tasks), "--target", "2"])
    out = capsys.readouterr().out
    assert "Write report" in out
    assert "P1 first" in out


def test_normalize_command(files, capsys):
    tasks, _ = files
    main(["normalize", str(tasks)])
    records = json.loads(capsys.readouterr().out)
    assert [r["id"] for r in records] == ["A", "B", "C", "D"]
    assert records[3]["status"] == "Done"


def test_plan_with_malformed_blocks_file_exits_cleanly(files, tmp_path):
    tasks, _ = files
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(SystemExit) as exc:
        main(["plan", str(tasks), str(broken)])
    assert str(exc.value).startswith("[plan] Could not read blocks")


def test_plan_with_buffer_flag(files, capsys):
    tasks, blocks = files
    main(["plan", str(tasks), str(blocks), "--buffer", "10"])
    out = capsys.readouterr().out
    assert "09:00-09:30  Write report" in out
    assert "09:40-10:00  Email" in out


def test_brief_command(files, capsys):
    tasks, _ = files
    main(["brief", str(tasks)])
    out = capsys.readouterr().out
    assert "[brief] Recommended starting task: Write report" in out
    assert "  - Budget (45m, P2)" in out
    assert "Old" not in out


def test_blob_source_uses_azure_loader(monkeypatch, capsys):
    seen = []

    def fake_loader(blob_name):
        seen.append(blob_name)
        return [{"id": "b1", "Task Name": "From blob"}]

    monkeypatch.setattr(cli, "load_task_records_from_azure_blob", fake_loader)
    main(["normalize", "exports/tasks.json", "--blob"])
    assert seen == ["exports/tasks.json"]
    assert json.loads(capsys.readouterr().out)[0]["name"] == "From blob"


def test_blob_source_without_configuration_exits(monkeypatch):
    def unconfigured(blob_name):
        raise ValueError("Azure task export is not configured")

    monkeypatch.setattr(cli, "load_task_records_from_azure_blob", unconfigured)
    with pytest.raises(SystemExit) as exc:
        main(["focus", "exports/tasks.json", "--blob"])
    assert str(exc.value).startswith("[focus] Could not load blob")
