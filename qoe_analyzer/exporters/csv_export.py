"""
CSV Export Module

Exports QoE data to CSV format:
- Session history (current state + one row per history entry)
- Per-metric detail of a score tree
"""

import csv
import os
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..config import Config, get_config
from ..samples import MetricsSnapshot
from ..scores import CATEGORIES, ScoreTree
from ..storage import HistoryEntry

HISTORY_FIELDS = [
    "Timestamp",
    "Overall Score",
    "Voice Score",
    "Data Score",
    "Voice Attempts",
    "Voice Completed",
    "Voice Dropped",
    "Browsing Requests",
    "Browsing Completed",
    "Streaming Requests",
    "Streaming Completed",
    "HTTP DL Requests",
    "HTTP DL Completed",
    "HTTP UL Requests",
    "HTTP UL Completed",
    "Social Requests",
    "Social Completed",
]

METRIC_FIELDS = ["Category", "Metric", "Value", "Unit Score", "Weight"]


def _cell(value: Optional[float]) -> str:
    """Null values become empty cells."""
    return "" if value is None else str(value)


class CSVExporter:
    """Exports QoE session data to CSV files."""

    def __init__(self):
        pass

    def _history_row(self, timestamp: datetime, metrics: MetricsSnapshot, scores: ScoreTree) -> Dict[str, Any]:
        voice = metrics.voice
        data = metrics.data
        return {
            "Timestamp": timestamp.isoformat(),
            "Overall Score": _cell(scores.overall.score),
            "Voice Score": _cell(scores.voice.score),
            "Data Score": _cell(scores.data.score),
            "Voice Attempts": voice.attempts,
            "Voice Completed": voice.completed,
            "Voice Dropped": voice.dropped,
            "Browsing Requests": data.browsing.requests,
            "Browsing Completed": data.browsing.completed,
            "Streaming Requests": data.streaming.requests,
            "Streaming Completed": data.streaming.completed,
            "HTTP DL Requests": data.http.dl.requests,
            "HTTP DL Completed": data.http.dl.completed,
            "HTTP UL Requests": data.http.ul.requests,
            "HTTP UL Completed": data.http.ul.completed,
            "Social Requests": data.social.requests,
            "Social Completed": data.social.completed,
        }

    def export_history(
        self,
        metrics: MetricsSnapshot,
        scores: ScoreTree,
        history: Iterable[HistoryEntry],
        output_path: str,
    ):
        """
        Export current state and history to a flat CSV.

        The first data row is the current state, then one row per history
        entry, newest first.

        Args:
            metrics: Current snapshot
            scores: Current score tree
            history: History entries (newest first)
            output_path: Path to output CSV file
        """
        rows: List[Dict[str, Any]] = [self._history_row(datetime.now(timezone.utc), metrics, scores)]
        for entry in history:
            timestamp = datetime.fromtimestamp(entry.timestamp / 1000, tz=timezone.utc)
            rows.append(self._history_row(timestamp, entry.metrics, entry.scores))

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=HISTORY_FIELDS)
            writer.writeheader()
            writer.writerows(rows)

    def export_category_metrics(self, scores: ScoreTree, output_path: str, config: Optional[Config] = None):
        """
        Export every derived metric of a score tree to CSV.

        Raw scalars that are not scored (e.g. HTTP dl_success) have an
        empty unit score and weight.

        Args:
            scores: Score tree
            output_path: Path to output CSV file
            config: Scoring configuration providing the weights
        """
        config = config or get_config()

        rows = []
        for category_name in CATEGORIES:
            category = getattr(scores, category_name)
            weights = {metric.name: metric.weight for metric in config.category(category_name).metrics}
            names = list(category.metrics) + [n for n in category.metric_scores if n not in category.metrics]
            for metric_name in names:
                rows.append(
                    {
                        "Category": category_name,
                        "Metric": metric_name,
                        "Value": _cell(category.metrics.get(metric_name)),
                        "Unit Score": _cell(category.metric_scores.get(metric_name)),
                        "Weight": _cell(weights.get(metric_name)),
                    }
                )

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=METRIC_FIELDS)
            writer.writeheader()
            writer.writerows(rows)

    def export_all(
        self,
        metrics: MetricsSnapshot,
        scores: ScoreTree,
        history: Iterable[HistoryEntry],
        output_dir: str,
        config: Optional[Config] = None,
    ):
        """
        Export all data to multiple CSV files in a directory.

        Args:
            output_dir: Path to output directory
        """
        os.makedirs(output_dir, exist_ok=True)

        self.export_history(metrics, scores, history, os.path.join(output_dir, "history.csv"))
        self.export_category_metrics(scores, os.path.join(output_dir, "metrics.csv"), config)
