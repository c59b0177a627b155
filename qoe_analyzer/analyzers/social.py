"""
Social Media Metrics Extractor

Same KPIs as browsing, with a 15 s slow-request limit.
"""

from ..samples import MetricsSnapshot
from .browsing import RequestDurationExtractor

SOCIAL_SLOW_MS = 15_000


class SocialExtractor(RequestDurationExtractor):
    """Social media request KPIs."""

    category = "social"
    slow_threshold_ms = SOCIAL_SLOW_MS
    slow_metric = "duration_over_15"

    def _counters(self, metrics: MetricsSnapshot):
        social = metrics.data.social
        return social.requests, social.completed, social.durations
