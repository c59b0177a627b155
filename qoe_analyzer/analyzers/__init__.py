"""
Extracteurs de métriques et calcul du score QoE
"""

from .base_extractor import BaseExtractor
from .browsing import BrowsingExtractor
from .http import HttpExtractor
from .qoe_score import QoEScoreCalculator, calculate_scores, normalize_score
from .social import SocialExtractor
from .streaming import StreamingExtractor
from .voice import VoiceExtractor

__all__ = [
    "BaseExtractor",
    "VoiceExtractor",
    "HttpExtractor",
    "BrowsingExtractor",
    "StreamingExtractor",
    "SocialExtractor",
    "QoEScoreCalculator",
    "calculate_scores",
    "normalize_score",
]
