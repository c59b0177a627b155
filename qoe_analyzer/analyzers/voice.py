"""
Voice Metrics Extractor

Reduces call events to the ETSI voice KPIs:
- CSSR: call setup success ratio
- CDR: call drop rate over answered calls
- Call setup time: average, share above 15 s, 10th percentile
- MOS: average, share below 1.6, 90th percentile
"""

from typing import Dict, Optional

from ..samples import MetricsSnapshot
from ..utils.stats import count_above, count_below, percentile, ratio, safe_average
from .base_extractor import BaseExtractor

# Call setup time above which a setup counts as failed-slow (ms)
CALL_SETUP_SLOW_MS = 15_000

# MOS below which a call counts as unintelligible
MOS_UNINTELLIGIBLE = 1.6


class VoiceExtractor(BaseExtractor):
    """Voice call KPIs."""

    category = "voice"

    def extract(self, metrics: MetricsSnapshot) -> Dict[str, Optional[float]]:
        voice = metrics.voice
        setup_times = voice.setup_times
        mos_samples = voice.mos_samples

        # Answered calls only: a call that never connected is neither
        # completed nor dropped
        answered = voice.completed + voice.dropped

        return {
            "cssr": ratio(voice.setup_ok, voice.attempts),
            "cdr": ratio(voice.dropped, answered),
            "cst_avg": safe_average(setup_times),
            "cst_over_15": ratio(count_above(setup_times, CALL_SETUP_SLOW_MS), len(setup_times)),
            "cst_p10": percentile(setup_times, 0.1),
            "mos_avg": safe_average(mos_samples),
            "mos_under_16": ratio(count_below(mos_samples, MOS_UNINTELLIGIBLE), len(mos_samples)),
            "mos_p90": percentile(mos_samples, 0.9),
        }
