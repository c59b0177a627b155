"""
QoE session: owner of the sample accumulator.

A QoESession holds the current MetricsSnapshot and is the only place
where it changes. Every sample is applied as an atomic copy-on-write
transition: a new snapshot is derived from the previous one, only the
touched branch is rebuilt, siblings are shared.

After each transition:
1. subscribers are notified with the new snapshot and its scores
2. the snapshot is flushed to the store in the background

Persistence is at-most-once: a failed flush is logged, never retried,
and never rolls back the in-memory state. Flushes run on a single
worker thread in submission order, so the last write wins.
"""

import copy
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, List, Optional, Tuple, Union

from .analyzers.qoe_score import QoEScoreCalculator
from .config import Config, get_config
from .samples import (
    BrowsingSample,
    CallReason,
    HttpSample,
    MetricsSnapshot,
    SocialSample,
    StreamingSample,
    VoiceSample,
)
from .scores import ScoreTree
from .storage import HistoryEntry, JSONStateStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 100
DEFAULT_MAX_REASONS = 50

Listener = Callable[[MetricsSnapshot, ScoreTree], None]
Sample = Union[VoiceSample, HttpSample, BrowsingSample, StreamingSample, SocialSample]


def _append(series: Tuple[float, ...], value: Optional[float], max_len: Optional[int]) -> Tuple[float, ...]:
    """Append value (if any) and keep at most the last max_len items."""
    if value is None:
        return series
    series = series + (float(value),)
    if max_len is not None and len(series) > max_len:
        series = series[-max_len:]
    return series


# =============================================================================
# Transitions (pure functions: snapshot + sample -> new snapshot)
# =============================================================================


def apply_voice_sample(
    metrics: MetricsSnapshot,
    sample: VoiceSample,
    timestamp_ms: int,
    max_reasons: int = DEFAULT_MAX_REASONS,
    max_samples: Optional[int] = None,
) -> MetricsSnapshot:
    voice = metrics.voice
    reasons = voice.reasons
    if sample.has_reason:
        reason = CallReason(
            timestamp=timestamp_ms,
            code=sample.reason_code,
            label=sample.reason_label,
            source=sample.reason_source,
        )
        reasons = (reasons + (reason,))[-max_reasons:]

    voice = replace(
        voice,
        attempts=voice.attempts + int(sample.attempt),
        setup_ok=voice.setup_ok + int(sample.setup_successful),
        completed=voice.completed + int(sample.call_completed),
        dropped=voice.dropped + int(sample.dropped),
        setup_times=_append(voice.setup_times, sample.setup_time_ms, max_samples),
        mos_samples=_append(voice.mos_samples, sample.mos, max_samples),
        reasons=reasons,
    )
    return replace(metrics, voice=voice)


def apply_http_sample(
    metrics: MetricsSnapshot, sample: HttpSample, max_samples: Optional[int] = None
) -> MetricsSnapshot:
    http = metrics.data.http
    direction = getattr(http, sample.direction)
    direction = replace(
        direction,
        requests=direction.requests + int(sample.request),
        completed=direction.completed + int(sample.completed),
        throughputs=_append(direction.throughputs, sample.throughput_mbps, max_samples),
    )
    http = replace(http, **{sample.direction: direction})
    return replace(metrics, data=replace(metrics.data, http=http))


def apply_browsing_sample(
    metrics: MetricsSnapshot, sample: BrowsingSample, max_samples: Optional[int] = None
) -> MetricsSnapshot:
    browsing = metrics.data.browsing
    browsing = replace(
        browsing,
        requests=browsing.requests + int(sample.request),
        completed=browsing.completed + int(sample.completed),
        durations=_append(browsing.durations, sample.duration_ms, max_samples),
        dns_resolution_times=_append(browsing.dns_resolution_times, sample.dns_resolution_time_ms, max_samples),
        throughputs=_append(browsing.throughputs, sample.throughput_kbps, max_samples),
    )
    return replace(metrics, data=replace(metrics.data, browsing=browsing))


def apply_streaming_sample(
    metrics: MetricsSnapshot, sample: StreamingSample, max_samples: Optional[int] = None
) -> MetricsSnapshot:
    streaming = metrics.data.streaming
    streaming = replace(
        streaming,
        requests=streaming.requests + int(sample.request),
        completed=streaming.completed + int(sample.completed),
        mos_samples=_append(streaming.mos_samples, sample.mos, max_samples),
        setup_times=_append(streaming.setup_times, sample.setup_time_ms, max_samples),
        throughputs=_append(streaming.throughputs, sample.throughput_kbps, max_samples),
    )
    return replace(metrics, data=replace(metrics.data, streaming=streaming))


def apply_social_sample(
    metrics: MetricsSnapshot, sample: SocialSample, max_samples: Optional[int] = None
) -> MetricsSnapshot:
    social = metrics.data.social
    social = replace(
        social,
        requests=social.requests + int(sample.request),
        completed=social.completed + int(sample.completed),
        durations=_append(social.durations, sample.duration_ms, max_samples),
        throughputs=_append(social.throughputs, sample.throughput_kbps, max_samples),
    )
    return replace(metrics, data=replace(metrics.data, social=social))


# =============================================================================
# Session
# =============================================================================


class QoESession:
    """
    State container for one measurement session.

    Example:
        with QoESession(store=JSONStateStore("qoe_data")) as session:
            session.subscribe(lambda metrics, scores: print(scores.overall.score))
            session.add_http_sample(HttpSample("dl", completed=True, throughput_mbps=42.0))
            session.save_history_entry()
    """

    def __init__(
        self,
        store: Optional[JSONStateStore] = None,
        config: Optional[Config] = None,
        autoload: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the session.

        Args:
            store: Persistence backend (None = in-memory only)
            config: Scoring/session configuration (default: bundled profile)
            autoload: Restore persisted metrics and history from the store
            clock: Time source in seconds, used for reason and history timestamps
        """
        self.config = config or get_config()
        self.store = store
        self.calculator = QoEScoreCalculator(self.config)
        self._clock = clock

        session_config = self.config.session_config
        self.max_history: int = session_config["max_history"]
        self.max_reasons: int = session_config["max_reasons"]
        self.max_samples: Optional[int] = session_config["max_samples_per_series"]

        self._lock = threading.RLock()
        self._metrics = MetricsSnapshot()
        self._history: Tuple[HistoryEntry, ...] = ()
        self._scores_cache: Optional[Tuple[MetricsSnapshot, ScoreTree]] = None
        self._listeners: List[Listener] = []
        self._executor: Optional[ThreadPoolExecutor] = None
        if store is not None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="qoe-store")

        if store is not None and autoload:
            self.load()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def metrics(self) -> MetricsSnapshot:
        return self._metrics

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        """History entries, newest first."""
        return self._history

    @property
    def scores(self) -> ScoreTree:
        """Score tree of the current snapshot, recomputed when it changes."""
        metrics = self._metrics
        cached = self._scores_cache
        if cached is not None and cached[0] is metrics:
            return cached[1]
        tree = self.calculator.calculate(metrics)
        self._scores_cache = (metrics, tree)
        return tree

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked after every change.

        Returns:
            Function removing the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def add_voice_sample(self, sample: VoiceSample) -> MetricsSnapshot:
        return self._transition(
            lambda m: apply_voice_sample(m, sample, self._now_ms(), self.max_reasons, self.max_samples)
        )

    def add_http_sample(self, sample: HttpSample) -> MetricsSnapshot:
        return self._transition(lambda m: apply_http_sample(m, sample, self.max_samples))

    def add_browsing_sample(self, sample: BrowsingSample) -> MetricsSnapshot:
        return self._transition(lambda m: apply_browsing_sample(m, sample, self.max_samples))

    def add_streaming_sample(self, sample: StreamingSample) -> MetricsSnapshot:
        return self._transition(lambda m: apply_streaming_sample(m, sample, self.max_samples))

    def add_social_sample(self, sample: SocialSample) -> MetricsSnapshot:
        return self._transition(lambda m: apply_social_sample(m, sample, self.max_samples))

    def add_sample(self, sample: Sample) -> MetricsSnapshot:
        """Apply any sample event to the matching category."""
        if isinstance(sample, VoiceSample):
            return self.add_voice_sample(sample)
        elif isinstance(sample, HttpSample):
            return self.add_http_sample(sample)
        elif isinstance(sample, BrowsingSample):
            return self.add_browsing_sample(sample)
        elif isinstance(sample, StreamingSample):
            return self.add_streaming_sample(sample)
        elif isinstance(sample, SocialSample):
            return self.add_social_sample(sample)
        raise TypeError(f"Unsupported sample type: {type(sample).__name__}")

    def reset(self) -> MetricsSnapshot:
        """Reset the accumulator to an empty snapshot and drop the persisted blob."""
        with self._lock:
            self._metrics = MetricsSnapshot()
            metrics = self._metrics
            self._submit(self._clear_metrics_blob)
        logger.info("Session metrics reset")
        self._notify(metrics)
        return metrics

    def _transition(self, update: Callable[[MetricsSnapshot], MetricsSnapshot]) -> MetricsSnapshot:
        with self._lock:
            metrics = update(self._metrics)
            self._metrics = metrics
            # Submitted under the lock so flushes keep transition order
            self._submit(self._save_metrics_blob, metrics)
        self._notify(metrics)
        return metrics

    def _notify(self, metrics: MetricsSnapshot) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        scores = self.scores if self._metrics is metrics else self.calculator.calculate(metrics)
        for listener in listeners:
            try:
                listener(metrics, scores)
            except Exception:
                logger.exception(f"Session listener {listener!r} failed")

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def save_history_entry(self) -> HistoryEntry:
        """
        Snapshot the current metrics and scores into the history.

        The entry is prepended; beyond max_history the oldest entries are
        evicted. The history blob is persisted in the background.

        Returns:
            The new HistoryEntry
        """
        with self._lock:
            metrics = self._metrics
            entry = HistoryEntry(
                timestamp=self._now_ms(),
                metrics=metrics,
                scores=copy.deepcopy(self.scores),
            )
            self._history = ((entry,) + self._history)[: self.max_history]
            history = list(self._history)
            self._submit(self._save_history_blob, history)

        logger.info(f"History entry saved ({len(history)}/{self.max_history})")
        return entry

    def clear_history(self) -> None:
        with self._lock:
            self._history = ()
            self._submit(self._clear_history_blob)
        logger.info("History cleared")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Restore metrics and history from the store. Errors are logged."""
        if self.store is None:
            return

        try:
            metrics = self.store.load_metrics()
        except StorageError as e:
            logger.error(f"Failed to load stored metrics: {e}")
            metrics = None

        try:
            history = self.store.load_history()
        except StorageError as e:
            logger.error(f"Failed to load stored history: {e}")
            history = []

        with self._lock:
            if metrics is not None:
                self._metrics = metrics
            self._history = tuple(history[: self.max_history])

        logger.debug(f"Session loaded from {self.store.data_dir} ({len(self._history)} history entries)")

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every write submitted so far has been attempted."""
        if self._executor is None:
            return
        marker: Future = self._executor.submit(lambda: None)
        marker.result(timeout=timeout)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "QoESession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _submit(self, fn: Callable, *args) -> None:
        if self._executor is None:
            return
        self._executor.submit(fn, *args)

    def _save_metrics_blob(self, metrics: MetricsSnapshot) -> None:
        try:
            self.store.save_metrics(metrics)
        except StorageError as e:
            logger.error(f"Failed to persist metrics: {e}")
        except Exception:
            logger.exception("Unexpected error while trying to persist metrics")

    def _clear_metrics_blob(self) -> None:
        try:
            self.store.clear_metrics()
        except StorageError as e:
            logger.error(f"Failed to clear persisted metrics: {e}")
        except Exception:
            logger.exception("Unexpected error while trying to clear persisted metrics")

    def _save_history_blob(self, history: List[HistoryEntry]) -> None:
        try:
            self.store.save_history(history)
        except StorageError as e:
            logger.error(f"Failed to save history: {e}")
        except Exception:
            logger.exception("Unexpected error while trying to save history")

    def _clear_history_blob(self) -> None:
        try:
            self.store.clear_history()
        except StorageError as e:
            logger.error(f"Failed to clear history: {e}")
        except Exception:
            logger.exception("Unexpected error while trying to clear history")

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)
