"""Session module - canonical session model and codec.

Converts verbose recorded sessions into a precision-reduced optimized form
and a compressed byte stream, and back.

Example:
    from gremlin.session import compress_session, decompress_session

    blob = compress_session(session)
    restored = decompress_session(blob)
"""

from .models import (
    AppInfo,
    AppStateData,
    DeviceInfo,
    ElementInfo,
    ElementKey,
    ElementType,
    ErrorData,
    EventData,
    EventType,
    InputData,
    NavigationData,
    NetworkData,
    PerformanceSample,
    Rect,
    ScreenCaptureData,
    ScreenInfo,
    Screenshot,
    ScrollData,
    Session,
    SessionEvent,
    SessionHeader,
    SessionValidationError,
    SwipeData,
    TapData,
    add_event,
    create_session,
    get_or_create_element,
    parse_event_data,
)
from .optimizer import (
    CompressionStats,
    OptimizedElement,
    OptimizedEvent,
    OptimizedPerformanceSample,
    OptimizedSession,
    compress_optimized,
    compress_session,
    decompress_optimized,
    decompress_session,
    deoptimize_session,
    format_compression_stats,
    measure_compression,
    optimize_session,
)

__all__ = [
    # Models
    "Session",
    "SessionHeader",
    "SessionEvent",
    "SessionValidationError",
    "DeviceInfo",
    "ScreenInfo",
    "AppInfo",
    "ElementInfo",
    "ElementKey",
    "ElementType",
    "EventType",
    "EventData",
    "TapData",
    "SwipeData",
    "ScrollData",
    "InputData",
    "NavigationData",
    "NetworkData",
    "ScreenCaptureData",
    "ErrorData",
    "AppStateData",
    "PerformanceSample",
    "Rect",
    "Screenshot",
    "parse_event_data",
    "create_session",
    "get_or_create_element",
    "add_event",
    # Codec
    "OptimizedSession",
    "OptimizedElement",
    "OptimizedEvent",
    "OptimizedPerformanceSample",
    "CompressionStats",
    "optimize_session",
    "deoptimize_session",
    "compress_session",
    "decompress_session",
    "compress_optimized",
    "decompress_optimized",
    "measure_compression",
    "format_compression_stats",
]
