"""Tests for CLI commands: report, word, config show."""

import json
import logging
from datetime import timedelta

import pytest
from factories import T0, raw_session
from typer.testing import CliRunner

from mnemos.interface.cli import app

runner = CliRunner()


@pytest.fixture
def learner():
    return {
        "sessions": [raw_session(day, pct) for day, pct in enumerate([50, 60, 70, 80, 90])],
        "performances": {
            "w1": {
                "attempts": [
                    {"timestamp": (T0 + timedelta(minutes=i)).isoformat(), "correct": ok, "timeSpent": 4000}
                    for i, ok in enumerate([True, True, False, True])
                ]
            }
        },
        "words": [{"id": "w1", "english": "house", "italian": "casa", "chapter": "1"}],
    }


@pytest.fixture
def snapshot(tmp_path, learner):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(learner), encoding="utf-8")
    return path


@pytest.fixture
def multi_snapshot(tmp_path, learner):
    path = tmp_path / "multi.json"
    path.write_text(json.dumps({"users": {"alice": learner, "bob": {}}}), encoding="utf-8")
    return path


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "learning analytics" in result.stdout
    assert "report" in result.stdout
    assert "word" in result.stdout
    assert "config" in result.stdout


# --- Logging ---


@pytest.fixture
def root_level():
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


def test_default_logging_is_info(snapshot, root_level):
    root_level.setLevel(logging.INFO)
    result = runner.invoke(app, ["report", str(snapshot)])

    assert result.exit_code == 0
    assert root_level.level == logging.INFO


def test_verbose_enables_debug(snapshot, root_level):
    root_level.setLevel(logging.INFO)
    result = runner.invoke(app, ["-v", "report", str(snapshot)])

    assert result.exit_code == 0
    assert root_level.level == logging.DEBUG


# --- Report ---


def test_report_text(snapshot):
    result = runner.invoke(app, ["report", str(snapshot)])

    assert result.exit_code == 0
    assert "Performance Index: 82/100" in result.stdout
    assert "Projections:" in result.stdout
    assert "Recommendations:" in result.stdout


def test_report_json(snapshot):
    result = runner.invoke(app, ["report", str(snapshot), "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["metrics"]["performance_index"] == 82
    assert data["as_of"].startswith("2024-03-08T09:00:00")
    assert [p["timeframe_days"] for p in data["projections"]] == [7, 30, 60, 90]
    assert data["words"][0]["word_id"] == "w1"


def test_report_as_of(snapshot):
    result = runner.invoke(app, ["report", str(snapshot), "--json", "--as-of", "2024-06-01"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["as_of"].startswith("2024-06-01T00:00:00")
    assert data["validation"]["recent_sessions"] == 0


def test_report_empty_snapshot(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("{}", encoding="utf-8")
    result = runner.invoke(app, ["report", str(path)])

    assert result.exit_code == 0
    assert "No test sessions yet" in result.stdout
    assert "Keep practicing regularly" in result.stdout


def test_report_missing_file(tmp_path):
    result = runner.invoke(app, ["report", str(tmp_path / "nope.json")])

    assert result.exit_code == 1
    assert "Snapshot not found" in result.output


def test_report_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{", encoding="utf-8")
    result = runner.invoke(app, ["report", str(path)])

    assert result.exit_code == 1
    assert "Invalid JSON" in result.output


def test_report_multi_user_requires_user(multi_snapshot):
    result = runner.invoke(app, ["report", str(multi_snapshot)])

    assert result.exit_code == 1
    assert "--user" in result.output


def test_report_multi_user(multi_snapshot):
    result = runner.invoke(app, ["report", str(multi_snapshot), "--user", "alice", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["metrics"]["total_sessions"] == 5


def test_report_unknown_user(multi_snapshot):
    result = runner.invoke(app, ["report", str(multi_snapshot), "-u", "carol"])

    assert result.exit_code == 1
    assert "No data for user 'carol'" in result.output


# --- Word ---


def test_word_detail(snapshot):
    result = runner.invoke(app, ["word", str(snapshot), "w1"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["source"] == "performance"
    assert data["stats"]["total_attempts"] == 4
    assert len(data["chart"]) == 4


def test_word_detail_limit(snapshot):
    result = runner.invoke(app, ["word", str(snapshot), "w1", "--limit", "2"])

    assert result.exit_code == 0
    assert len(json.loads(result.stdout)["chart"]) == 2


def test_word_unknown(snapshot):
    result = runner.invoke(app, ["word", str(snapshot), "zz"])

    assert result.exit_code == 1
    assert "Unknown word: zz" in result.output


# --- Config ---


def test_config_show_defaults():
    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["chart_window"] == 10
    assert data["weights"]["precision"] == 0.3


def test_config_show_env_override(monkeypatch):
    monkeypatch.setenv("MNEMOS_CHART_WINDOW", "4")
    monkeypatch.setenv("MNEMOS_WEIGHTS__PRECISION", "0.4")
    monkeypatch.setenv("MNEMOS_WEIGHTS__CONSISTENCY", "0.15")
    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["chart_window"] == 4
    assert data["weights"]["precision"] == 0.4


def test_config_show_reads_toml(mock_home):
    (mock_home / ".mnemos.toml").write_text("chart_window = 7\n", encoding="utf-8")
    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["chart_window"] == 7
