"""
HTTP Transfer Metrics Extractor

Download and upload throughput KPIs (Mbps): success ratio, average,
10th and 90th percentiles per direction.
"""

from typing import Dict, Optional

from ..samples import HttpDirectionMetrics, MetricsSnapshot
from ..utils.stats import percentile, ratio, safe_average
from .base_extractor import BaseExtractor


class HttpExtractor(BaseExtractor):
    """
    HTTP transfer KPIs.

    A single success ratio is scored: the download ratio, falling back
    to the upload ratio only when no download request was made. The two
    are never averaged.
    """

    category = "http"

    def _direction(self, prefix: str, direction: HttpDirectionMetrics) -> Dict[str, Optional[float]]:
        throughputs = direction.throughputs
        return {
            f"{prefix}_success": ratio(direction.completed, direction.requests),
            f"{prefix}_avg": safe_average(throughputs),
            f"{prefix}_p10": percentile(throughputs, 0.1),
            f"{prefix}_p90": percentile(throughputs, 0.9),
        }

    def extract(self, metrics: MetricsSnapshot) -> Dict[str, Optional[float]]:
        http = metrics.data.http
        raw = self._direction("dl", http.dl)
        raw.update(self._direction("ul", http.ul))
        return raw

    def scoring_inputs(self, raw: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
        inputs = super().scoring_inputs(raw)
        success_ratio = raw["dl_success"]
        if success_ratio is None:
            success_ratio = raw["ul_success"]
        inputs["success_ratio"] = success_ratio
        return inputs
