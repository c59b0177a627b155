"""
Sample accumulator snapshot and sample events.

The snapshot is an immutable tree of frozen dataclasses whose series
are tuples. Transitions never mutate a snapshot: they build a new one
with ``dataclasses.replace`` on the touched branch only, so untouched
siblings are shared between consecutive snapshots.

``from_dict`` is the boundary where loose JSON becomes typed data:
missing, null or malformed fields take the zero value of their type, unknown
keys are ignored.

Units:
    - setup times, durations, DNS resolution times: milliseconds
    - HTTP throughputs: Mbps
    - browsing/streaming/social throughputs: Kbps (kept for export only)
    - MOS: 1.0 - 5.0
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

HTTP_DIRECTIONS = ("dl", "ul")


def _section(data: Any) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(value)


def _count(data: Dict[str, Any], key: str) -> int:
    value = _number(data.get(key))
    return int(value) if value is not None else 0


def _items(data: Dict[str, Any], key: str) -> Tuple[Any, ...]:
    values = data.get(key)
    return tuple(values) if isinstance(values, (list, tuple)) else ()


def _series(data: Dict[str, Any], key: str) -> Tuple[float, ...]:
    return tuple(number for number in map(_number, _items(data, key)) if number is not None)


@dataclass(frozen=True)
class CallReason:
    """Reason reported for a call state transition (drop, reject, ...)."""

    timestamp: int
    code: Optional[Any] = None
    label: Optional[str] = None
    source: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CallReason":
        return cls(
            timestamp=_count(data, "timestamp"),
            code=data.get("code"),
            label=data.get("label"),
            source=data.get("source"),
        )


@dataclass(frozen=True)
class VoiceMetrics:
    attempts: int = 0
    setup_ok: int = 0
    completed: int = 0
    dropped: int = 0
    setup_times: Tuple[float, ...] = ()
    mos_samples: Tuple[float, ...] = ()
    reasons: Tuple[CallReason, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "VoiceMetrics":
        data = _section(data)
        return cls(
            attempts=_count(data, "attempts"),
            setup_ok=_count(data, "setup_ok"),
            completed=_count(data, "completed"),
            dropped=_count(data, "dropped"),
            setup_times=_series(data, "setup_times"),
            mos_samples=_series(data, "mos_samples"),
            reasons=tuple(CallReason.from_dict(r) for r in _items(data, "reasons") if isinstance(r, dict)),
        )


@dataclass(frozen=True)
class HttpDirectionMetrics:
    requests: int = 0
    completed: int = 0
    throughputs: Tuple[float, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "HttpDirectionMetrics":
        data = _section(data)
        return cls(
            requests=_count(data, "requests"),
            completed=_count(data, "completed"),
            throughputs=_series(data, "throughputs"),
        )


@dataclass(frozen=True)
class HttpMetrics:
    dl: HttpDirectionMetrics = field(default_factory=HttpDirectionMetrics)
    ul: HttpDirectionMetrics = field(default_factory=HttpDirectionMetrics)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "HttpMetrics":
        data = _section(data)
        return cls(
            dl=HttpDirectionMetrics.from_dict(data.get("dl")),
            ul=HttpDirectionMetrics.from_dict(data.get("ul")),
        )


@dataclass(frozen=True)
class BrowsingMetrics:
    requests: int = 0
    completed: int = 0
    durations: Tuple[float, ...] = ()
    dns_resolution_times: Tuple[float, ...] = ()
    throughputs: Tuple[float, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BrowsingMetrics":
        data = _section(data)
        return cls(
            requests=_count(data, "requests"),
            completed=_count(data, "completed"),
            durations=_series(data, "durations"),
            dns_resolution_times=_series(data, "dns_resolution_times"),
            throughputs=_series(data, "throughputs"),
        )


@dataclass(frozen=True)
class StreamingMetrics:
    requests: int = 0
    completed: int = 0
    mos_samples: Tuple[float, ...] = ()
    setup_times: Tuple[float, ...] = ()
    throughputs: Tuple[float, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "StreamingMetrics":
        data = _section(data)
        return cls(
            requests=_count(data, "requests"),
            completed=_count(data, "completed"),
            mos_samples=_series(data, "mos_samples"),
            setup_times=_series(data, "setup_times"),
            throughputs=_series(data, "throughputs"),
        )


@dataclass(frozen=True)
class SocialMetrics:
    requests: int = 0
    completed: int = 0
    durations: Tuple[float, ...] = ()
    throughputs: Tuple[float, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SocialMetrics":
        data = _section(data)
        return cls(
            requests=_count(data, "requests"),
            completed=_count(data, "completed"),
            durations=_series(data, "durations"),
            throughputs=_series(data, "throughputs"),
        )


@dataclass(frozen=True)
class DataMetrics:
    http: HttpMetrics = field(default_factory=HttpMetrics)
    browsing: BrowsingMetrics = field(default_factory=BrowsingMetrics)
    streaming: StreamingMetrics = field(default_factory=StreamingMetrics)
    social: SocialMetrics = field(default_factory=SocialMetrics)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DataMetrics":
        data = _section(data)
        return cls(
            http=HttpMetrics.from_dict(data.get("http")),
            browsing=BrowsingMetrics.from_dict(data.get("browsing")),
            streaming=StreamingMetrics.from_dict(data.get("streaming")),
            social=SocialMetrics.from_dict(data.get("social")),
        )


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    Immutable snapshot of everything accumulated during a session.

    Example:
        snapshot = MetricsSnapshot.from_dict(json.load(f))
        tree = calculate_scores(snapshot)
    """

    voice: VoiceMetrics = field(default_factory=VoiceMetrics)
    data: DataMetrics = field(default_factory=DataMetrics)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MetricsSnapshot":
        data = _section(data)
        return cls(
            voice=VoiceMetrics.from_dict(data.get("voice")),
            data=DataMetrics.from_dict(data.get("data")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable copy (tuples become lists)."""
        return asdict(self, dict_factory=_json_dict)

    def is_empty(self) -> bool:
        return self == MetricsSnapshot()


def _json_dict(items) -> Dict[str, Any]:
    return {key: list(value) if isinstance(value, tuple) else value for key, value in items}


# =============================================================================
# Sample events
# =============================================================================


@dataclass(frozen=True)
class VoiceSample:
    """One call event. ``attempt`` defaults to True, every outcome to False."""

    attempt: bool = True
    setup_successful: bool = False
    call_completed: bool = False
    dropped: bool = False
    setup_time_ms: Optional[float] = None
    mos: Optional[float] = None
    reason_code: Optional[Any] = None
    reason_label: Optional[str] = None
    reason_source: Optional[str] = None
    # Set when the event carried a reason_code key, even a null one
    reason_code_given: bool = False

    @property
    def has_reason(self) -> bool:
        return bool(self.reason_label) or self.reason_code_given or self.reason_code is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VoiceSample":
        return cls(
            attempt=bool(data.get("attempt", True)),
            setup_successful=bool(data.get("setup_successful", False)),
            call_completed=bool(data.get("call_completed", False)),
            dropped=bool(data.get("dropped", False)),
            setup_time_ms=_number(data.get("setup_time_ms")),
            mos=_number(data.get("mos")),
            reason_code=data.get("reason_code"),
            reason_label=data.get("reason_label"),
            reason_source=data.get("reason_source"),
            reason_code_given="reason_code" in data,
        )


@dataclass(frozen=True)
class HttpSample:
    """One HTTP transfer measurement in a given direction ('dl' or 'ul')."""

    direction: str
    request: bool = True
    completed: bool = False
    throughput_mbps: Optional[float] = None

    def __post_init__(self) -> None:
        if self.direction not in HTTP_DIRECTIONS:
            raise ValueError(f"Invalid HTTP direction: {self.direction!r}. Must be one of {list(HTTP_DIRECTIONS)}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HttpSample":
        return cls(
            direction=data.get("direction"),
            request=bool(data.get("request", True)),
            completed=bool(data.get("completed", False)),
            throughput_mbps=_number(data.get("throughput_mbps")),
        )


@dataclass(frozen=True)
class BrowsingSample:
    request: bool = True
    completed: bool = False
    duration_ms: Optional[float] = None
    dns_resolution_time_ms: Optional[float] = None
    throughput_kbps: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrowsingSample":
        return cls(
            request=bool(data.get("request", True)),
            completed=bool(data.get("completed", False)),
            duration_ms=_number(data.get("duration_ms")),
            dns_resolution_time_ms=_number(data.get("dns_resolution_time_ms")),
            throughput_kbps=_number(data.get("throughput_kbps")),
        )


@dataclass(frozen=True)
class StreamingSample:
    request: bool = True
    completed: bool = False
    mos: Optional[float] = None
    setup_time_ms: Optional[float] = None
    throughput_kbps: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreamingSample":
        return cls(
            request=bool(data.get("request", True)),
            completed=bool(data.get("completed", False)),
            mos=_number(data.get("mos")),
            setup_time_ms=_number(data.get("setup_time_ms")),
            throughput_kbps=_number(data.get("throughput_kbps")),
        )


@dataclass(frozen=True)
class SocialSample:
    request: bool = True
    completed: bool = False
    duration_ms: Optional[float] = None
    throughput_kbps: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SocialSample":
        return cls(
            request=bool(data.get("request", True)),
            completed=bool(data.get("completed", False)),
            duration_ms=_number(data.get("duration_ms")),
            throughput_kbps=_number(data.get("throughput_kbps")),
        )


SAMPLE_TYPES = {
    "voice": VoiceSample,
    "http": HttpSample,
    "browsing": BrowsingSample,
    "streaming": StreamingSample,
    "social": SocialSample,
}


def parse_sample(data: Dict[str, Any]):
    """
    Build a sample event from a dict carrying a ``type`` key.

    Args:
        data: Event dictionary, e.g. {"type": "http", "direction": "dl", ...}

    Returns:
        One of VoiceSample, HttpSample, BrowsingSample, StreamingSample,
        SocialSample

    Raises:
        ValueError: If the type is unknown or the event is not a dict
    """
    if not isinstance(data, dict):
        raise ValueError(f"Sample event must be an object, got {type(data).__name__}")
    sample_type = data.get("type")
    sample_cls = SAMPLE_TYPES.get(sample_type)
    if sample_cls is None:
        raise ValueError(f"Unknown sample type: {sample_type!r}. Must be one of {sorted(SAMPLE_TYPES)}")
    return sample_cls.from_dict(data)
