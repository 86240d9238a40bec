"""Tests for the click CLI."""

import json

import pytest
from click.testing import CliRunner

from todokit import cli
from todokit.config import Config
from todokit.repository import TASKS_KEY
from todokit.workflows import build_workflows

from fakes import FakeRemote


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "store.json"


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def runner(monkeypatch, store_path, remote):
    config = Config(store_path=str(store_path))
    monkeypatch.setattr(cli, "load_config", lambda: config)
    monkeypatch.setattr(
        cli,
        "build_workflows",
        lambda config, **kwargs: build_workflows(config, remote=remote, **kwargs),
    )
    return CliRunner()


def write_tasks(store_path, records: list) -> None:
    store_path.write_text(json.dumps({TASKS_KEY: json.dumps(records)}))


def read_tasks(store_path) -> list[dict]:
    return json.loads(json.loads(store_path.read_text())[TASKS_KEY])


class TestList:
    def test_empty(self, runner, store_path):
        write_tasks(store_path, [])

        result = runner.invoke(cli.main, ["list"])

        assert result.exit_code == 0
        assert "No tasks." in result.output

    def test_lists_visible_tasks(self, runner, store_path):
        write_tasks(
            store_path,
            [
                {"id": 1, "title": "Water plants", "completed": True},
                {"id": 2, "title": "   "},
                {"id": 3, "title": "Call mom"},
            ],
        )

        result = runner.invoke(cli.main, ["list"])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines == ["[x] 1  Water plants", "[ ] 3  Call mom"]

    def test_open_only(self, runner, store_path):
        write_tasks(store_path, [{"id": 1, "title": "a", "completed": True}, {"id": 2, "title": "b"}])

        result = runner.invoke(cli.main, ["list", "--open"])

        assert "b" in result.output
        assert "[x]" not in result.output

    def test_json(self, runner, store_path):
        write_tasks(store_path, [{"id": 1, "title": "a", "dueDate": "2025-01-15T10:00:00.000Z"}])

        result = runner.invoke(cli.main, ["list", "--json"])

        assert json.loads(result.output) == [
            {"id": 1, "title": "a", "completed": False, "userId": 1, "dueDate": "2025-01-15T10:00:00.000Z"}
        ]

    def test_seeds_on_first_run(self, runner, store_path, remote):
        remote.tasks = [{"id": 5, "title": "From the server"}]

        result = runner.invoke(cli.main, ["list"])

        assert "From the server" in result.output
        assert [r["id"] for r in read_tasks(store_path)] == [5]

    def test_seed_failure_is_reported(self, runner, remote):
        remote.fetch_error = "HTTP 503"

        result = runner.invoke(cli.main, ["list"])

        assert result.exit_code == 1
        assert "Error: HTTP 503" in result.output


class TestAdd:
    def test_adds_task(self, runner, store_path):
        write_tasks(store_path, [])

        result = runner.invoke(cli.main, ["add", "  Buy milk ", "--due", "2099-01-01T10:00:00+00:00"])

        assert result.exit_code == 0
        assert "✓ Added" in result.output
        (record,) = read_tasks(store_path)
        assert record["title"] == "Buy milk"
        assert record["dueDate"] == "2099-01-01T10:00:00.000Z"

    def test_blank_title(self, runner, store_path):
        write_tasks(store_path, [])

        result = runner.invoke(cli.main, ["add", "   "])

        assert result.exit_code == 1
        assert "Error: Please enter a task title" in result.output
        assert read_tasks(store_path) == []

    def test_bad_due_date(self, runner):
        result = runner.invoke(cli.main, ["add", "x", "--due", "next tuesday"])

        assert result.exit_code == 2
        assert "not an ISO date/time" in result.output


class TestEdit:
    def test_requires_a_change(self, runner):
        result = runner.invoke(cli.main, ["edit", "1"])

        assert result.exit_code == 1
        assert "Nothing to change" in result.output

    def test_renames(self, runner, store_path):
        write_tasks(store_path, [{"id": 1, "title": "old"}])

        result = runner.invoke(cli.main, ["edit", "1", "--title", "new"])

        assert result.exit_code == 0
        assert read_tasks(store_path)[0]["title"] == "new"

    def test_unknown_task(self, runner, store_path):
        write_tasks(store_path, [{"id": 1, "title": "old"}])

        result = runner.invoke(cli.main, ["edit", "9", "--title", "new"])

        assert result.exit_code == 1
        assert "Task 9 not found" in result.output


class TestDoneUndo:
    def test_done_then_undo(self, runner, store_path):
        write_tasks(store_path, [{"id": 1, "title": "a"}])

        assert runner.invoke(cli.main, ["done", "1"]).exit_code == 0
        assert read_tasks(store_path)[0]["completed"] is True

        assert runner.invoke(cli.main, ["undo", "1"]).exit_code == 0
        assert read_tasks(store_path)[0]["completed"] is False


class TestDelete:
    def test_with_yes(self, runner, store_path):
        write_tasks(store_path, [{"id": 1, "title": "a"}, {"id": 2, "title": "b"}, {"id": 3, "title": "c"}])

        result = runner.invoke(cli.main, ["delete", "1", "3", "--yes"])

        assert result.exit_code == 0
        assert [r["id"] for r in read_tasks(store_path)] == [2]

    def test_declined_confirmation(self, runner, store_path):
        write_tasks(store_path, [{"id": 1, "title": "a"}])

        result = runner.invoke(cli.main, ["delete", "1"], input="n\n")

        assert result.exit_code == 0
        assert len(read_tasks(store_path)) == 1

    def test_empty_store(self, runner):
        result = runner.invoke(cli.main, ["delete", "1", "--yes"])

        assert result.exit_code == 1
        assert "No tasks found" in result.output


class TestShow:
    def test_shows_hidden_task(self, runner, store_path):
        write_tasks(store_path, [{"id": 4, "title": ""}])

        result = runner.invoke(cli.main, ["show", "4"])

        assert result.exit_code == 0
        assert "title:     ''" in result.output

    def test_missing(self, runner, store_path):
        write_tasks(store_path, [])

        result = runner.invoke(cli.main, ["show", "4"])

        assert result.exit_code == 1
