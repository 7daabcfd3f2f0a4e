"""Session optimizer - Compression and optimization for recorded sessions.

Optimizations applied:
1. Delta time encoding (already in SessionEvent.dt)
2. Element dictionary deduplication (already in Session.elements)
3. Integer encoding of coordinates, durations and performance metrics
4. MessagePack binary serialization
5. Gzip compression

Precision contract (what survives ``deoptimize_session(optimize_session(s))``):
- coordinates, deltas, durations and bounds: nearest integer
- fps: one decimal place (stored as fps * 10)
- memory usage: three decimal places of MB (stored as MB * 1000)
- JS thread lag and time since navigation: integer ms
"""

import gzip
import json
import math
import zlib
from dataclasses import dataclass, field
from typing import Any, Optional

import msgpack
import structlog

from gremlin.config import get_settings
from gremlin.utils.logging import log_operation

from .models import (
    ElementInfo,
    ElementType,
    EventType,
    PerformanceSample,
    Rect,
    Screenshot,
    Session,
    SessionEvent,
    SessionHeader,
    SessionValidationError,
    parse_event_data,
)

logger = structlog.get_logger()


# =============================================================================
# Element type mapping
# =============================================================================

ELEMENT_TYPE_CODES: dict[ElementType, int] = {
    ElementType.BUTTON: 0,
    ElementType.LINK: 1,
    ElementType.INPUT: 2,
    ElementType.TEXT: 3,
    ElementType.IMAGE: 4,
    ElementType.CONTAINER: 5,
    ElementType.SCROLL_VIEW: 6,
    ElementType.LIST: 7,
    ElementType.LIST_ITEM: 8,
    ElementType.MODAL: 9,
    ElementType.PRESSABLE: 10,
    ElementType.TOUCHABLE: 11,
    ElementType.UNKNOWN: 12,
}

CODE_ELEMENT_TYPES: dict[int, ElementType] = {code: tag for tag, code in ELEMENT_TYPE_CODES.items()}

UNKNOWN_ELEMENT_CODE = ELEMENT_TYPE_CODES[ElementType.UNKNOWN]

# Payload keys holding pixel coordinates or millisecond durations
ROUNDED_DATA_KEYS = (
    "x",
    "y",
    "startX",
    "startY",
    "endX",
    "endY",
    "deltaX",
    "deltaY",
    "duration",
)

FPS_SCALE = 10
MEMORY_SCALE = 1000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties towards positive infinity."""
    return int(math.floor(value + 0.5))


# =============================================================================
# Optimized representation
# =============================================================================


@dataclass
class OptimizedPerformanceSample:
    """Integer-scaled performance sample."""

    fps: Optional[int] = None  # fps * 10
    js_thread_lag: Optional[int] = None  # ms
    memory_usage: Optional[int] = None  # MB * 1000
    time_since_navigation: Optional[int] = None  # ms

    def to_dict(self) -> dict:
        return {
            key: value
            for key, value in (
                ("fps", self.fps),
                ("jsThreadLag", self.js_thread_lag),
                ("memoryUsage", self.memory_usage),
                ("timeSinceNavigation", self.time_since_navigation),
            )
            if value is not None
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OptimizedPerformanceSample":
        return cls(
            fps=data.get("fps"),
            js_thread_lag=data.get("jsThreadLag"),
            memory_usage=data.get("memoryUsage"),
            time_since_navigation=data.get("timeSinceNavigation"),
        )


@dataclass
class OptimizedElement:
    """Element with integer type code and integer bounds."""

    type: int
    test_id: Optional[str] = None
    accessibility_label: Optional[str] = None
    text: Optional[str] = None
    bounds: Optional[list[int]] = None  # [x, y, width, height]
    css_selector: Optional[str] = None
    attributes: Optional[dict[str, str]] = None

    def to_dict(self) -> dict:
        element = {"type": self.type}
        for key, value in (
            ("testId", self.test_id),
            ("accessibilityLabel", self.accessibility_label),
            ("text", self.text),
            ("bounds", self.bounds),
            ("cssSelector", self.css_selector),
            ("attributes", self.attributes),
        ):
            if value is not None:
                element[key] = value
        return element

    @classmethod
    def from_dict(cls, data: dict) -> "OptimizedElement":
        return cls(
            type=data.get("type", UNKNOWN_ELEMENT_CODE),
            test_id=data.get("testId"),
            accessibility_label=data.get("accessibilityLabel"),
            text=data.get("text"),
            bounds=data.get("bounds"),
            css_selector=data.get("cssSelector"),
            attributes=data.get("attributes"),
        )


@dataclass
class OptimizedEvent:
    """Event with integer dt, rounded payload and scaled perf sample."""

    dt: int
    type: int
    data: dict[str, Any]
    perf: Optional[OptimizedPerformanceSample] = None

    def to_dict(self) -> dict:
        event = {"dt": self.dt, "type": self.type, "data": self.data}
        if self.perf is not None:
            event["perf"] = self.perf.to_dict()
        return event

    @classmethod
    def from_dict(cls, data: dict) -> "OptimizedEvent":
        perf = data.get("perf")
        return cls(
            dt=data["dt"],
            type=data["type"],
            data=data["data"],
            perf=OptimizedPerformanceSample.from_dict(perf) if perf is not None else None,
        )


@dataclass
class OptimizedSession:
    """Intermediate format serialized with MessagePack."""

    header: SessionHeader
    elements: list[OptimizedElement] = field(default_factory=list)
    events: list[OptimizedEvent] = field(default_factory=list)
    screenshots: list[Screenshot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "header": self.header.to_dict(),
            "elements": [element.to_dict() for element in self.elements],
            "events": [event.to_dict() for event in self.events],
            "screenshots": [screenshot.to_dict() for screenshot in self.screenshots],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OptimizedSession":
        try:
            return cls(
                header=SessionHeader.from_dict(data["header"]),
                elements=[OptimizedElement.from_dict(e) for e in data.get("elements", [])],
                events=[OptimizedEvent.from_dict(e) for e in data.get("events", [])],
                screenshots=[Screenshot.from_dict(s) for s in data.get("screenshots", [])],
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise SessionValidationError(f"Malformed optimized session: {e}") from e


# =============================================================================
# Encoding helpers
# =============================================================================


def encode_rect(rect: Rect) -> list[int]:
    return [
        round_half_up(rect.x),
        round_half_up(rect.y),
        round_half_up(rect.width),
        round_half_up(rect.height),
    ]


def decode_rect(encoded: list[int]) -> Rect:
    return Rect(x=encoded[0], y=encoded[1], width=encoded[2], height=encoded[3])


def encode_event_data(data: dict[str, Any]) -> dict[str, Any]:
    """Round coordinate and duration values in a payload dict."""
    optimized = dict(data)
    for key in ROUNDED_DATA_KEYS:
        value = optimized.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            optimized[key] = round_half_up(value)
    return optimized


def encode_performance_sample(perf: Optional[PerformanceSample]) -> Optional[OptimizedPerformanceSample]:
    if perf is None:
        return None

    return OptimizedPerformanceSample(
        # 59.7 fps -> 597
        fps=round_half_up(perf.fps * FPS_SCALE) if perf.fps is not None else None,
        js_thread_lag=round_half_up(perf.js_thread_lag) if perf.js_thread_lag is not None else None,
        # 45.2 MB -> 45200
        memory_usage=round_half_up(perf.memory_usage * MEMORY_SCALE) if perf.memory_usage is not None else None,
        time_since_navigation=(
            round_half_up(perf.time_since_navigation)
            if perf.time_since_navigation is not None
            else None
        ),
    )


def decode_performance_sample(perf: Optional[OptimizedPerformanceSample]) -> Optional[PerformanceSample]:
    if perf is None:
        return None

    return PerformanceSample(
        fps=perf.fps / FPS_SCALE if perf.fps is not None else None,
        js_thread_lag=perf.js_thread_lag,
        memory_usage=perf.memory_usage / MEMORY_SCALE if perf.memory_usage is not None else None,
        time_since_navigation=perf.time_since_navigation,
    )


# =============================================================================
# Core optimization
# =============================================================================


def optimize_element(element: ElementInfo) -> OptimizedElement:
    return OptimizedElement(
        type=ELEMENT_TYPE_CODES.get(element.type, UNKNOWN_ELEMENT_CODE),
        test_id=element.test_id,
        accessibility_label=element.accessibility_label,
        text=element.text,
        bounds=encode_rect(element.bounds) if element.bounds else None,
        css_selector=element.css_selector,
        attributes=element.attributes,
    )


def deoptimize_element(element: OptimizedElement) -> ElementInfo:
    return ElementInfo(
        type=CODE_ELEMENT_TYPES.get(element.type, ElementType.UNKNOWN),
        test_id=element.test_id,
        accessibility_label=element.accessibility_label,
        text=element.text,
        bounds=decode_rect(element.bounds) if element.bounds else None,
        css_selector=element.css_selector,
        attributes=element.attributes,
    )


def optimize_event(event: SessionEvent) -> OptimizedEvent:
    return OptimizedEvent(
        dt=round_half_up(event.dt),
        type=int(event.type),
        data=encode_event_data(event.data.to_dict()),
        perf=encode_performance_sample(event.perf),
    )


def deoptimize_event(event: OptimizedEvent) -> SessionEvent:
    try:
        event_type = EventType(event.type)
    except ValueError:
        raise SessionValidationError(f"Unknown event type discriminant: {event.type!r}") from None

    return SessionEvent(
        dt=event.dt,
        type=event_type,
        data=parse_event_data(event.data),
        perf=decode_performance_sample(event.perf),
    )


def optimize_session(session: Session) -> OptimizedSession:
    """Optimize a session for compression.

    The session is validated first; a malformed session raises
    SessionValidationError instead of being silently coerced.
    """
    session.ensure_valid()

    return OptimizedSession(
        header=session.header,
        elements=[optimize_element(element) for element in session.elements],
        events=[optimize_event(event) for event in session.events],
        screenshots=list(session.screenshots),
    )


def deoptimize_session(optimized: OptimizedSession) -> Session:
    """Restore a session from its optimized form."""
    return Session(
        header=optimized.header,
        elements=[deoptimize_element(element) for element in optimized.elements],
        events=[deoptimize_event(event) for event in optimized.events],
        screenshots=list(optimized.screenshots),
    )


# =============================================================================
# Compression
# =============================================================================


def pack_optimized(optimized: OptimizedSession) -> bytes:
    """Serialize an optimized session with MessagePack."""
    return msgpack.packb(optimized.to_dict(), use_bin_type=True)


def compress_optimized(optimized: OptimizedSession, level: Optional[int] = None) -> bytes:
    """MessagePack-encode and gzip an optimized session."""
    if level is None:
        level = get_settings().compression_level
    # mtime=0 keeps the output byte-stable for identical input
    return gzip.compress(pack_optimized(optimized), compresslevel=level, mtime=0)


def decompress_optimized(buffer: bytes) -> OptimizedSession:
    """Inverse of compress_optimized."""
    try:
        packed = gzip.decompress(buffer)
        data = msgpack.unpackb(packed, raw=False)
    except (OSError, EOFError, ValueError, zlib.error, msgpack.UnpackException) as e:
        raise SessionValidationError(f"Corrupt compressed session: {e}") from e

    if not isinstance(data, dict):
        raise SessionValidationError("Corrupt compressed session: top-level value is not a map")
    return OptimizedSession.from_dict(data)


def compress_session(session: Session, level: Optional[int] = None) -> bytes:
    """Compress a session to a binary buffer.

    Process:
    1. Optimize session (integer encoding, type codes)
    2. Serialize with MessagePack
    3. Compress with gzip
    """
    with log_operation("compress_session", logger, session_id=session.header.session_id) as op:
        compressed = compress_optimized(optimize_session(session), level=level)
        op["events"] = len(session.events)
        op["compressed_size"] = len(compressed)
    return compressed


def decompress_session(buffer: bytes) -> Session:
    """Decompress a session from a binary buffer.

    Process:
    1. Gunzip
    2. MessagePack decode
    3. Deoptimize (restore element types and metric scales)
    4. Validate the restored session
    """
    with log_operation("decompress_session", logger, compressed_size=len(buffer)) as op:
        session = deoptimize_session(decompress_optimized(buffer))
        session.ensure_valid()
        op["events"] = len(session.events)
    return session


# =============================================================================
# Benchmarking
# =============================================================================


@dataclass
class CompressionStats:
    """Size measurements for one session."""

    original_size: int
    optimized_size: int
    compressed_size: int
    compression_ratio: float
    optimization_ratio: float
    final_ratio: float
    breakdown: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "originalSize": self.original_size,
            "optimizedSize": self.optimized_size,
            "compressedSize": self.compressed_size,
            "compressionRatio": self.compression_ratio,
            "optimizationRatio": self.optimization_ratio,
            "finalRatio": self.final_ratio,
            "breakdown": dict(self.breakdown),
        }


def _json_size(value: Any) -> int:
    return len(json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))


def measure_compression(session: Session) -> CompressionStats:
    """Measure compression ratio and per-section breakdown."""
    canonical = session.to_dict()
    original_size = _json_size(canonical)

    optimized = optimize_session(session)
    optimized_size = len(pack_optimized(optimized))
    compressed_size = len(compress_optimized(optimized))

    breakdown = {
        "header": _json_size(canonical["header"]),
        "elements": _json_size(canonical["elements"]),
        "events": _json_size(canonical["events"]),
        "screenshots": _json_size(canonical["screenshots"]),
    }

    stats = CompressionStats(
        original_size=original_size,
        optimized_size=optimized_size,
        compressed_size=compressed_size,
        compression_ratio=original_size / compressed_size,
        optimization_ratio=original_size / optimized_size,
        final_ratio=original_size / compressed_size,
        breakdown=breakdown,
    )

    logger.info(
        "Compression measured",
        session_id=session.header.session_id,
        original_size=original_size,
        optimized_size=optimized_size,
        compressed_size=compressed_size,
        final_ratio=round(stats.final_ratio, 2),
    )
    return stats


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def format_compression_stats(stats: CompressionStats) -> str:
    """Format compression stats for display."""
    def ratio(value: float) -> str:
        return f"{value:.2f}x"

    rule = "━" * 44
    lines = [
        "Compression Statistics:",
        rule,
        f"Original (JSON):     {format_bytes(stats.original_size)}",
        f"Optimized (MsgPack): {format_bytes(stats.optimized_size)} ({ratio(stats.optimization_ratio)} reduction)",
        f"Compressed (Gzip):   {format_bytes(stats.compressed_size)} ({ratio(stats.compression_ratio)} reduction)",
        "",
        f"Final Ratio:         {ratio(stats.final_ratio)}",
        "",
        "Breakdown (Original):",
        f"  Header:      {format_bytes(stats.breakdown.get('header', 0))}",
        f"  Elements:    {format_bytes(stats.breakdown.get('elements', 0))}",
        f"  Events:      {format_bytes(stats.breakdown.get('events', 0))}",
        f"  Screenshots: {format_bytes(stats.breakdown.get('screenshots', 0))}",
        rule,
    ]
    return "\n".join(lines)
