"""
QoE Analyzer - score de qualité d'expérience voix et données mobiles
"""

from .__version__ import __version__
from .analyzers.qoe_score import QoEScoreCalculator, calculate_scores
from .config import Config, get_config
from .samples import (
    BrowsingSample,
    HttpSample,
    MetricsSnapshot,
    SocialSample,
    StreamingSample,
    VoiceSample,
    parse_sample,
)
from .scores import CategoryScore, ScoreNode, ScoreTree, format_score
from .session import QoESession
from .storage import HistoryEntry, JSONStateStore, StorageError

__all__ = [
    "__version__",
    "BrowsingSample",
    "CategoryScore",
    "Config",
    "HistoryEntry",
    "HttpSample",
    "JSONStateStore",
    "MetricsSnapshot",
    "QoEScoreCalculator",
    "QoESession",
    "ScoreNode",
    "ScoreTree",
    "SocialSample",
    "StorageError",
    "StreamingSample",
    "VoiceSample",
    "calculate_scores",
    "format_score",
    "get_config",
    "parse_sample",
]
