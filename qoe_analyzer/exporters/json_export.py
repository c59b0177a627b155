"""
Générateur d'export JSON pour les données QoE

Exports the current snapshot, its score tree and the full history in
a single JSON document. Null scores are kept as JSON null.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Union

from ..samples import MetricsSnapshot
from ..scores import ScoreTree
from ..storage import HistoryEntry


class JSONExporter:
    """
    Générateur d'export JSON

    Usage:
        >>> exporter = JSONExporter()
        >>> exporter.export(metrics, scores, history, Path("qoe-export.json"))
    """

    def build(
        self, metrics: MetricsSnapshot, scores: ScoreTree, history: Iterable[HistoryEntry]
    ) -> Dict[str, Any]:
        """
        Construit le document d'export

        Args:
            metrics: Snapshot courant
            scores: Arbre de scores courant
            history: Entrées d'historique (plus récente en premier)
        """
        return {
            "export_date": datetime.now(timezone.utc).isoformat(),
            "current_metrics": metrics.to_dict(),
            "current_scores": scores.to_dict(),
            "history": [entry.to_dict() for entry in history],
        }

    def export(
        self,
        metrics: MetricsSnapshot,
        scores: ScoreTree,
        history: Iterable[HistoryEntry],
        output_path: Union[str, Path],
    ) -> Path:
        """
        Génère le fichier JSON

        Args:
            output_path: Chemin du fichier JSON de sortie

        Returns:
            Chemin du fichier écrit
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.build(metrics, scores, history), f, indent=2, ensure_ascii=False)
        return output_path
