"""
Pytest fixtures et configuration commune pour les tests
"""

import itertools
import logging

import pytest

from qoe_analyzer.config import MILLISECONDS_PROFILE, Config
from qoe_analyzer.samples import (
    BrowsingMetrics,
    DataMetrics,
    HttpDirectionMetrics,
    HttpMetrics,
    MetricsSnapshot,
    SocialMetrics,
    StreamingMetrics,
    VoiceMetrics,
)
from qoe_analyzer.storage import JSONStateStore


@pytest.fixture(scope="session")
def config():
    """Bundled scoring profile."""
    return Config()


@pytest.fixture(scope="session")
def ms_config():
    """Bundled profile with duration thresholds in milliseconds."""
    return Config(str(MILLISECONDS_PROFILE))


@pytest.fixture
def empty_snapshot():
    return MetricsSnapshot()


@pytest.fixture
def perfect_voice():
    """Voice metrics hitting the 'good' anchor of every voice KPI (millisecond profile)."""
    return VoiceMetrics(
        attempts=10,
        setup_ok=10,
        completed=10,
        dropped=0,
        setup_times=(3000.0, 4000.0),
        mos_samples=(4.5, 4.8),
    )


@pytest.fixture
def busy_snapshot(perfect_voice):
    """Snapshot with data in every category."""
    return MetricsSnapshot(
        voice=perfect_voice,
        data=DataMetrics(
            http=HttpMetrics(
                dl=HttpDirectionMetrics(requests=4, completed=4, throughputs=(10.0, 20.0, 30.0, 100.0)),
                ul=HttpDirectionMetrics(requests=2, completed=1, throughputs=(5.0,)),
            ),
            browsing=BrowsingMetrics(requests=2, completed=2, durations=(2000.0, 7000.0)),
            streaming=StreamingMetrics(requests=4, completed=3, mos_samples=(4.0, 4.5), setup_times=(1500.0,)),
            social=SocialMetrics(requests=2, completed=2, durations=(1000.0, 20000.0)),
        ),
    )


@pytest.fixture
def store(tmp_path):
    return JSONStateStore(tmp_path / "qoe_data")


@pytest.fixture
def fake_clock():
    """Deterministic clock advancing one second per call."""
    counter = itertools.count(1_700_000_000)
    return lambda: float(next(counter))


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI reconfigures logging on every invocation."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler.get_name() in ("console", "file"):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
