"""
Unit tests for the browsing, social and streaming extractors.

Browsing and social share the request/duration KPIs.
"""

import pytest

from qoe_analyzer.analyzers.browsing import BrowsingExtractor, RequestDurationExtractor
from qoe_analyzer.analyzers.social import SocialExtractor
from qoe_analyzer.analyzers.streaming import StreamingExtractor
from qoe_analyzer.samples import BrowsingMetrics, DataMetrics, MetricsSnapshot, SocialMetrics, StreamingMetrics


class TestBrowsingExtractor:
    def test_metrics(self, config):
        snapshot = MetricsSnapshot(
            data=DataMetrics(browsing=BrowsingMetrics(requests=4, completed=3, durations=(2000.0, 7000.0)))
        )

        raw = BrowsingExtractor(config).extract(snapshot)

        assert raw == {
            "success_ratio": pytest.approx(0.75),
            "duration_avg": pytest.approx(4500.0),
            "duration_over_6": pytest.approx(0.5),
        }

    def test_dns_and_throughput_are_not_scored(self, config):
        snapshot = MetricsSnapshot(
            data=DataMetrics(browsing=BrowsingMetrics(dns_resolution_times=(20.0,), throughputs=(900.0,)))
        )

        result = BrowsingExtractor(config).score(snapshot)

        assert result.score is None
        assert result.applied_weight == 0.0


class TestRequestDurationExtractor:
    def test_counters_hook_is_abstract(self, config):
        """
        Given: a subclass that does not implement _counters
        When: it is instantiated
        Then: TypeError is raised
        """

        class Incomplete(RequestDurationExtractor):
            category = "browsing"

        with pytest.raises(TypeError, match="_counters"):
            Incomplete(config)


class TestSocialExtractor:
    def test_metrics(self, config):
        """
        Given: one fast and one very slow social request
        When: metrics are extracted
        Then: half the requests are above the 15 s limit
        """
        snapshot = MetricsSnapshot(
            data=DataMetrics(social=SocialMetrics(requests=2, completed=2, durations=(1000.0, 20000.0)))
        )

        raw = SocialExtractor(config).extract(snapshot)

        assert raw["success_ratio"] == 1.0
        assert raw["duration_avg"] == pytest.approx(10500.0)
        assert raw["duration_over_15"] == pytest.approx(0.5)

    def test_score_bounds(self, ms_config):
        snapshot = MetricsSnapshot(
            data=DataMetrics(social=SocialMetrics(requests=2, completed=2, durations=(1000.0, 2000.0)))
        )

        result = SocialExtractor(ms_config).score(snapshot)

        assert result.score == pytest.approx(1.0)
        assert result.applied_weight == pytest.approx(0.15)


class TestStreamingExtractor:
    def test_metrics(self, config):
        snapshot = MetricsSnapshot(
            data=DataMetrics(
                streaming=StreamingMetrics(
                    requests=4,
                    completed=3,
                    mos_samples=(2.0, 4.0),
                    setup_times=(1500.0, 12000.0),
                )
            )
        )

        raw = StreamingExtractor(config).extract(snapshot)

        assert raw["success_ratio"] == pytest.approx(0.75)
        assert raw["mos_avg"] == pytest.approx(3.0)
        assert raw["mos_p10"] == pytest.approx(2.2)
        assert raw["setup_avg"] == pytest.approx(6750.0)
        assert raw["setup_over_10"] == pytest.approx(0.5)

    def test_requests_only(self, config):
        snapshot = MetricsSnapshot(data=DataMetrics(streaming=StreamingMetrics(requests=4, completed=4)))

        result = StreamingExtractor(config).score(snapshot)

        assert result.score == 1.0
        assert result.applied_weight == pytest.approx(0.1276)
