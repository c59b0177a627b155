"""
Web Browsing Metrics Extractor

Page load KPIs: success ratio, average duration and the share of
page loads slower than 6 s.
"""

from abc import abstractmethod
from typing import Dict, Optional, Sequence, Tuple

from ..samples import MetricsSnapshot
from ..utils.stats import count_above, ratio, safe_average
from .base_extractor import BaseExtractor

# Page load time above which a session counts as slow (ms)
BROWSING_SLOW_MS = 6_000


class RequestDurationExtractor(BaseExtractor):
    """
    Shared KPIs for request/response services timed end to end.

    Subclasses set the slow-request limit and the name of the
    corresponding tail-ratio metric.
    """

    slow_threshold_ms: float = 0.0
    slow_metric: str = ""

    @abstractmethod
    def _counters(self, metrics: MetricsSnapshot) -> Tuple[int, int, Sequence[float]]:
        """Return (requests, completed, durations) for the service."""
        pass

    def extract(self, metrics: MetricsSnapshot) -> Dict[str, Optional[float]]:
        requests, completed, durations = self._counters(metrics)
        return {
            "success_ratio": ratio(completed, requests),
            "duration_avg": safe_average(durations),
            self.slow_metric: ratio(count_above(durations, self.slow_threshold_ms), len(durations)),
        }


class BrowsingExtractor(RequestDurationExtractor):
    """Web browsing KPIs. DNS times and throughputs are exported, not scored."""

    category = "browsing"
    slow_threshold_ms = BROWSING_SLOW_MS
    slow_metric = "duration_over_6"

    def _counters(self, metrics: MetricsSnapshot):
        browsing = metrics.data.browsing
        return browsing.requests, browsing.completed, browsing.durations
