"""
Tests de l'interface en ligne de commande
"""

import json

import pytest
from click.testing import CliRunner

from qoe_analyzer.cli import cli
from qoe_analyzer.config import MILLISECONDS_PROFILE
from qoe_analyzer.storage import JSONStateStore

EVENTS = [
    {"type": "voice", "setup_successful": True, "call_completed": True, "setup_time_ms": 3200, "mos": 4.4},
    {"type": "voice", "dropped": True, "setup_successful": True, "reason_label": "Radio link failure"},
    {"type": "http", "direction": "dl", "completed": True, "throughput_mbps": 85.0},
    {"type": "browsing", "completed": True, "duration_ms": 1800},
    {"type": "streaming", "completed": True, "mos": 4.2, "setup_time_ms": 1500},
    {"type": "social", "completed": True, "duration_ms": 2500},
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / "qoe_data")


@pytest.fixture
def events_file(tmp_path):
    path = tmp_path / "events.jsonl"
    path.write_text("\n".join(json.dumps(e) for e in EVENTS) + "\n", encoding="utf-8")
    return str(path)


def _invoke(runner, data_dir, *args):
    return runner.invoke(cli, ["--data-dir", data_dir, *args])


class TestScoreCommand:
    def test_score_snapshot_file_json(self, runner, data_dir, tmp_path):
        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text(
            json.dumps({"voice": {"attempts": 10, "setup_ok": 9, "completed": 3, "dropped": 1}}), encoding="utf-8"
        )

        result = _invoke(runner, data_dir, "score", str(snapshot), "--json")

        assert result.exit_code == 0, result.output
        tree = json.loads(result.stdout)
        assert tree["voice"]["cssr"] == pytest.approx(0.9)
        assert tree["voice"]["cdr"] == pytest.approx(0.25)
        assert tree["data"]["score"] is None

    def test_score_empty_session_table(self, runner, data_dir):
        result = _invoke(runner, data_dir, "score", "--details")

        assert result.exit_code == 0, result.output
        assert "Overall" in result.output
        assert "--" in result.output

    def test_score_invalid_snapshot(self, runner, data_dir, tmp_path):
        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text("[1, 2]", encoding="utf-8")

        result = _invoke(runner, data_dir, "score", str(snapshot))

        assert result.exit_code == 1

    def test_score_snapshot_with_malformed_fields(self, runner, data_dir, tmp_path):
        """
        Given: a snapshot whose attempts counter is a string and setup_times a scalar
        When: it is scored
        Then: the malformed fields count as zero values and the command succeeds
        """
        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text(
            json.dumps({"voice": {"attempts": "ten", "completed": 3, "dropped": 1, "setup_times": 5}}), encoding="utf-8"
        )

        result = _invoke(runner, data_dir, "score", str(snapshot), "--json")

        assert result.exit_code == 0, result.output
        tree = json.loads(result.stdout)
        assert tree["voice"]["cssr"] is None
        assert tree["voice"]["cst_avg"] is None
        assert tree["voice"]["cdr"] == pytest.approx(0.25)

    def test_score_with_millisecond_profile(self, runner, data_dir, tmp_path):
        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text(json.dumps({"voice": {"setup_times": [5000]}}), encoding="utf-8")
        args = ["score", str(snapshot), "--json"]

        default = json.loads(_invoke(runner, data_dir, *args).stdout)
        result = runner.invoke(cli, ["--data-dir", data_dir, "-c", str(MILLISECONDS_PROFILE), *args])

        assert result.exit_code == 0, result.output
        assert default["voice"]["metric_scores"]["cst_avg"] == 0.0
        assert json.loads(result.stdout)["voice"]["metric_scores"]["cst_avg"] == pytest.approx(7000 / 7500)


class TestSessionCommands:
    def test_ingest_then_score(self, runner, data_dir, events_file):
        """
        Given: a JSON lines file with one event per category
        When: it is ingested and the stored session is scored
        Then: the session is persisted and every category has a score
        """
        result = _invoke(runner, data_dir, "ingest", events_file)
        assert result.exit_code == 0, result.output
        assert "6" in result.output

        metrics = JSONStateStore(data_dir).load_metrics()
        assert metrics.voice.attempts == 2
        assert metrics.voice.reasons[0].label == "Radio link failure"

        result = _invoke(runner, data_dir, "score", "--json")
        tree = json.loads(result.stdout)
        for name in ("voice", "http", "browsing", "streaming", "social", "data", "overall"):
            assert tree[name]["score"] is not None

    def test_ingest_rejects_unknown_event(self, runner, data_dir, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text('{"type": "fax"}\n', encoding="utf-8")

        result = _invoke(runner, data_dir, "ingest", str(path))

        assert result.exit_code == 1
        assert "Ligne 1" in result.output

    def test_history_save_list_clear(self, runner, data_dir, events_file):
        _invoke(runner, data_dir, "ingest", events_file)

        assert _invoke(runner, data_dir, "history", "save").exit_code == 0
        assert _invoke(runner, data_dir, "history", "save").exit_code == 0
        assert len(JSONStateStore(data_dir).load_history()) == 2

        result = _invoke(runner, data_dir, "history", "list")
        assert result.exit_code == 0
        assert "2 entrées" in result.output

        assert _invoke(runner, data_dir, "history", "clear", "--yes").exit_code == 0
        assert JSONStateStore(data_dir).load_history() == []

    def test_reset(self, runner, data_dir, events_file):
        _invoke(runner, data_dir, "ingest", events_file)

        result = _invoke(runner, data_dir, "reset", "--yes")

        assert result.exit_code == 0
        assert JSONStateStore(data_dir).load_metrics() is None

    def test_stats(self, runner, data_dir, events_file):
        _invoke(runner, data_dir, "ingest", events_file)

        result = _invoke(runner, data_dir, "stats")

        assert result.exit_code == 0
        assert "Statistiques" in result.output


class TestExportCommand:
    def test_export_json(self, runner, data_dir, events_file, tmp_path):
        _invoke(runner, data_dir, "ingest", events_file)
        output = tmp_path / "export.json"

        result = _invoke(runner, data_dir, "export", "--format", "json", "-o", str(output))

        assert result.exit_code == 0, result.output
        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["current_metrics"]["voice"]["attempts"] == 2

    def test_export_csv(self, runner, data_dir, events_file, tmp_path):
        _invoke(runner, data_dir, "ingest", events_file)
        output_dir = tmp_path / "csv"

        result = _invoke(runner, data_dir, "export", "--format", "csv", "-o", str(output_dir))

        assert result.exit_code == 0, result.output
        assert (output_dir / "history.csv").exists()
        assert (output_dir / "metrics.csv").exists()


class TestGlobalOptions:
    def test_show_config(self, runner, data_dir):
        result = _invoke(runner, data_dir, "show-config")

        assert result.exit_code == 0
        assert "cssr" in result.output
        assert "VOICE" in result.output

    def test_invalid_config_file(self, runner, data_dir, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("scoring: {}\n", encoding="utf-8")

        result = runner.invoke(cli, ["--data-dir", data_dir, "-c", str(path), "show-config"])

        assert result.exit_code == 1
        assert "Configuration invalide" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output
