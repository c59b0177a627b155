"""
Tests for the JSON export document.
"""

import json
from datetime import datetime

from qoe_analyzer.analyzers.qoe_score import calculate_scores
from qoe_analyzer.exporters.json_export import JSONExporter
from qoe_analyzer.storage import HistoryEntry


class TestJSONExporter:
    def test_document_layout(self, tmp_path, config, busy_snapshot, empty_snapshot):
        """
        Given: a current snapshot and one history entry with null scores
        When: the JSON export is written
        Then: the document holds the four sections and nulls stay null
        """
        entry = HistoryEntry(
            timestamp=1_700_000_000_000, metrics=empty_snapshot, scores=calculate_scores(empty_snapshot, config)
        )
        scores = calculate_scores(busy_snapshot, config)

        path = JSONExporter().export(busy_snapshot, scores, [entry], tmp_path / "out" / "qoe-export.json")

        with open(path, encoding="utf-8") as f:
            document = json.load(f)

        assert set(document) == {"export_date", "current_metrics", "current_scores", "history"}
        datetime.fromisoformat(document["export_date"])
        assert document["current_metrics"]["voice"]["attempts"] == 10
        assert document["current_scores"]["overall"]["score"] == scores.overall.score
        assert document["history"][0]["timestamp"] == 1_700_000_000_000
        assert document["history"][0]["scores"]["overall"]["score"] is None

    def test_build_without_history(self, config, empty_snapshot):
        document = JSONExporter().build(empty_snapshot, calculate_scores(empty_snapshot, config), [])

        assert document["history"] == []
        assert document["current_scores"]["voice"]["cssr"] is None
