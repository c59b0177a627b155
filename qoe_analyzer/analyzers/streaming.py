"""
Video Streaming Metrics Extractor

Streaming KPIs: success ratio, MOS average and 10th percentile,
average setup time and the share of setups slower than 10 s.
"""

from typing import Dict, Optional

from ..samples import MetricsSnapshot
from ..utils.stats import count_above, percentile, ratio, safe_average
from .base_extractor import BaseExtractor

# Playback start delay above which a setup counts as slow (ms)
STREAMING_SETUP_SLOW_MS = 10_000


class StreamingExtractor(BaseExtractor):
    """Video streaming KPIs."""

    category = "streaming"

    def extract(self, metrics: MetricsSnapshot) -> Dict[str, Optional[float]]:
        streaming = metrics.data.streaming
        mos_samples = streaming.mos_samples
        setup_times = streaming.setup_times

        return {
            "success_ratio": ratio(streaming.completed, streaming.requests),
            "mos_avg": safe_average(mos_samples),
            "mos_p10": percentile(mos_samples, 0.1),
            "setup_avg": safe_average(setup_times),
            "setup_over_10": ratio(count_above(setup_times, STREAMING_SETUP_SLOW_MS), len(setup_times)),
        }
