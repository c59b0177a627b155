"""
JSON state store

Persists the two keyed blobs of a QoE session in a directory:
- metrics.json: current sample accumulator snapshot
- history.json: list of history entries, newest first

Writes go to a temporary file in the same directory, then replace the
blob with os.replace() so a reader never sees a half-written file.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .samples import MetricsSnapshot
from .scores import ScoreTree

logger = logging.getLogger(__name__)

METRICS_BLOB = "metrics.json"
HISTORY_BLOB = "history.json"


class StorageError(Exception):
    """Raised when a persisted blob cannot be read or written."""


@dataclass(frozen=True)
class HistoryEntry:
    """
    Immutable snapshot of a session at a point in time.

    Attributes:
        timestamp: Creation time in epoch milliseconds
        metrics: Copy of the sample accumulator snapshot
        scores: Copy of the score tree computed from it
    """

    timestamp: int
    metrics: MetricsSnapshot
    scores: ScoreTree

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "metrics": self.metrics.to_dict(),
            "scores": self.scores.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            timestamp=int(data.get("timestamp") or 0),
            metrics=MetricsSnapshot.from_dict(data.get("metrics")),
            scores=ScoreTree.from_dict(data.get("scores")),
        )


class JSONStateStore:
    """
    File-backed store for the session blobs.

    Usage:
        >>> store = JSONStateStore("qoe_data")
        >>> store.save_metrics(snapshot)
        >>> store.load_metrics()
    """

    def __init__(self, data_dir: Union[str, Path] = "qoe_data") -> None:
        """
        Initialise le stockage

        Args:
            data_dir: Répertoire contenant les fichiers JSON
        """
        self.data_dir = Path(data_dir)
        self.metrics_path = self.data_dir / METRICS_BLOB
        self.history_path = self.data_dir / HISTORY_BLOB

    def load_metrics(self) -> Optional[MetricsSnapshot]:
        """
        Load the persisted snapshot.

        Returns:
            MetricsSnapshot, or None if nothing was persisted

        Raises:
            StorageError: If the blob exists but cannot be parsed
        """
        data = self._read(self.metrics_path)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise StorageError(f"{self.metrics_path}: expected a JSON object, got {type(data).__name__}")
        try:
            return MetricsSnapshot.from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"Malformed snapshot in {self.metrics_path}: {e}") from e

    def save_metrics(self, metrics: MetricsSnapshot) -> None:
        self._write(self.metrics_path, metrics.to_dict())

    def clear_metrics(self) -> None:
        self._remove(self.metrics_path)

    def load_history(self) -> List[HistoryEntry]:
        """
        Load the persisted history, newest first.

        Raises:
            StorageError: If the blob exists but cannot be parsed
        """
        data = self._read(self.history_path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageError(f"{self.history_path}: expected a JSON array, got {type(data).__name__}")
        try:
            return [HistoryEntry.from_dict(item) for item in data if isinstance(item, dict)]
        except (TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"Malformed history entry in {self.history_path}: {e}") from e

    def save_history(self, history: List[HistoryEntry]) -> None:
        self._write(self.history_path, [entry.to_dict() for entry in history])

    def clear_history(self) -> None:
        self._remove(self.history_path)

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt JSON in {path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def _write(self, path: Path, data: Any) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

        logger.debug(f"Saved {path}")

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Cannot remove {path}: {e}") from e
