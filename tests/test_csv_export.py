"""
Test suite for CSV Export functionality

Tests CSV export of QoE session data:
- Session history (current state + history rows)
- Per-metric detail of the score tree
"""

import csv

import pytest

from qoe_analyzer.analyzers.qoe_score import calculate_scores
from qoe_analyzer.exporters.csv_export import HISTORY_FIELDS, METRIC_FIELDS, CSVExporter
from qoe_analyzer.storage import HistoryEntry


def _read_rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


@pytest.fixture
def history(config, busy_snapshot, empty_snapshot):
    """Two entries, newest first."""
    return [
        HistoryEntry(timestamp=1_700_000_060_000, metrics=busy_snapshot, scores=calculate_scores(busy_snapshot, config)),
        HistoryEntry(timestamp=1_700_000_000_000, metrics=empty_snapshot, scores=calculate_scores(empty_snapshot, config)),
    ]


class TestHistoryExport:
    def test_current_row_then_history(self, tmp_path, config, busy_snapshot, history):
        """
        Given: a current snapshot and two history entries
        When: the history CSV is exported
        Then: the header is followed by the current row and one row per entry
        """
        output = tmp_path / "history.csv"
        scores = calculate_scores(busy_snapshot, config)

        CSVExporter().export_history(busy_snapshot, scores, history, str(output))

        with open(output, encoding="utf-8") as f:
            assert f.readline().strip() == ",".join(HISTORY_FIELDS)
        rows = _read_rows(output)
        assert len(rows) == 3
        assert rows[0]["Voice Attempts"] == "10"
        assert rows[0]["HTTP DL Requests"] == "4"
        assert float(rows[0]["Overall Score"]) == pytest.approx(scores.overall.score)
        assert rows[1]["Timestamp"].startswith("2023-11-14T22:14:20")

    def test_null_scores_are_empty_cells(self, tmp_path, config, empty_snapshot):
        output = tmp_path / "history.csv"

        CSVExporter().export_history(empty_snapshot, calculate_scores(empty_snapshot, config), [], str(output))

        row = _read_rows(output)[0]
        assert row["Overall Score"] == ""
        assert row["Voice Score"] == ""
        assert row["Social Completed"] == "0"


class TestCategoryMetricsExport:
    def test_rows_and_weights(self, tmp_path, config, busy_snapshot):
        output = tmp_path / "metrics.csv"

        CSVExporter().export_category_metrics(calculate_scores(busy_snapshot, config), str(output), config)

        rows = _read_rows(output)
        assert list(rows[0]) == METRIC_FIELDS
        by_key = {(r["Category"], r["Metric"]): r for r in rows}
        assert by_key[("voice", "cssr")]["Value"] == "1.0"
        assert float(by_key[("voice", "cssr")]["Weight"]) == pytest.approx(0.3125)
        # Raw scalar without a threshold: exported, not scored
        assert by_key[("http", "dl_success")]["Unit Score"] == ""
        assert by_key[("http", "dl_success")]["Weight"] == ""
        # Scored metric computed from other raw scalars
        assert by_key[("http", "success_ratio")]["Unit Score"] == "1.0"

    def test_export_all(self, tmp_path, config, busy_snapshot, history):
        output_dir = tmp_path / "exports"

        CSVExporter().export_all(busy_snapshot, calculate_scores(busy_snapshot, config), history, str(output_dir), config)

        assert (output_dir / "history.csv").exists()
        assert (output_dir / "metrics.csv").exists()
