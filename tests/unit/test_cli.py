"""
Unit tests for the command-line interface.
"""

import json

import pytest

from content_agents.cli import load_items, main


@pytest.fixture
def items_file(tmp_path):
    path = tmp_path / "week.json"
    path.write_text(json.dumps([
        {"platform": "tiktok", "day": "Monday", "time": "9:00 AM", "hook": "First"},
        {"platform": "tiktok", "day": "Monday", "time": "9:00 AM", "hook": "Second"},
    ]), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    monkeypatch.delenv("CLAUDE_API_KEY", raising=False)


def run_cli(*argv) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    return exc_info.value.code


class TestCli:
    """Test cases for CLI commands."""

    def test_load_items_assigns_positional_ids(self, items_file):
        items = load_items(items_file)

        assert [item.id for item in items] == ["item-1", "item-2"]

    def test_load_items_accepts_wrapped_list(self, tmp_path):
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"contentItems": [{"id": "x", "platform": "reels"}]}), encoding="utf-8")

        assert [item.id for item in load_items(path)] == ["x"]

    def test_schedule_writes_output_and_history(self, items_file, tmp_path, capsys):
        output = tmp_path / "scheduled.json"
        storage = tmp_path / "store"

        code = run_cli("--storage", str(storage), "schedule", str(items_file), "--output", str(output))

        assert code == 0
        scheduled = json.loads(output.read_text(encoding="utf-8"))
        assert [(item["day"], item["time"]) for item in scheduled] == [
            ("Monday", "7:00 PM"),
            ("Monday", "7:00 AM"),
        ]
        assert "Scheduled 2 items across the week" in capsys.readouterr().out

        assert run_cli("--storage", str(storage), "history") == 0
        assert "scheduler" in capsys.readouterr().out

    def test_history_clear(self, tmp_path, capsys):
        assert run_cli("--storage", str(tmp_path), "history", "--clear") == 0
        assert "Run history cleared." in capsys.readouterr().out

    def test_pipeline_requires_api_key(self, tmp_path, capsys):
        code = run_cli("--storage", str(tmp_path), "pipeline")

        assert code == 2
        assert "CLAUDE_API_KEY is required" in capsys.readouterr().err

    def test_analyze(self, items_file, capsys):
        assert run_cli("analyze", str(items_file)) == 0

        out = capsys.readouterr().out
        assert "Schedule score: 0/100" in out
        assert "item-1" in out

    def test_missing_file_is_reported(self, tmp_path, capsys):
        code = run_cli("analyze", str(tmp_path / "absent.json"))

        assert code == 1
        assert "Error:" in capsys.readouterr().err
