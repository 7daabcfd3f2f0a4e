"""Data models for recorded user sessions.

A session is the canonical interchange format produced by capture SDKs and
format importers: a header, a deduplicated element dictionary, a
delta-encoded event stream and screenshot references.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, ClassVar, NamedTuple, Optional, Union

DT_ROUNDING_SLACK_MS = 0.5


class SessionValidationError(ValueError):
    """Raised when a session violates the canonical schema."""

    pass


class EventType(IntEnum):
    """Event discriminants on the wire."""

    TAP = 0
    DOUBLE_TAP = 1
    LONG_PRESS = 2
    SWIPE = 3
    SCROLL = 4
    INPUT = 5
    NAVIGATION = 6
    APP_STATE = 7
    SCREEN_CAPTURE = 8
    ERROR = 9
    NETWORK = 10


class ElementType(str, Enum):
    """UI element kinds captured by the recorders."""

    BUTTON = "button"
    LINK = "link"
    INPUT = "input"
    TEXT = "text"
    IMAGE = "image"
    CONTAINER = "container"
    SCROLL_VIEW = "scroll_view"
    LIST = "list"
    LIST_ITEM = "list_item"
    MODAL = "modal"
    PRESSABLE = "pressable"
    TOUCHABLE = "touchable"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "ElementType":
        """Parse a type tag, mapping unrecognised tags to UNKNOWN."""
        if isinstance(value, ElementType):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


def _compact(data: dict) -> dict:
    """Drop keys whose value is None (absent optionals)."""
    return {key: value for key, value in data.items() if value is not None}


def _require(data: dict, key: str, context: str) -> Any:
    if key not in data or data[key] is None:
        raise SessionValidationError(f"{context}: missing required field '{key}'")
    return data[key]


# =============================================================================
# Event payloads
# =============================================================================


@dataclass(frozen=True)
class TapData:
    """Tap, double tap or long press at a screen position."""

    x: float
    y: float
    kind: str = "tap"
    element_index: Optional[int] = None

    KINDS: ClassVar[tuple[str, ...]] = ("tap", "double_tap", "long_press")

    def __post_init__(self):
        if self.kind not in self.KINDS:
            raise SessionValidationError(f"TapData: invalid kind '{self.kind}'")

    def to_dict(self) -> dict:
        return _compact({
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "elementIndex": self.element_index,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "TapData":
        return cls(
            kind=data.get("kind", "tap"),
            x=_require(data, "x", "tap"),
            y=_require(data, "y", "tap"),
            element_index=data.get("elementIndex"),
        )


@dataclass(frozen=True)
class SwipeData:
    """Swipe gesture between two points."""

    start_x: float
    start_y: float
    end_x: float
    end_y: float
    duration: float
    direction: str

    kind: ClassVar[str] = "swipe"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "startX": self.start_x,
            "startY": self.start_y,
            "endX": self.end_x,
            "endY": self.end_y,
            "duration": self.duration,
            "direction": self.direction,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SwipeData":
        return cls(
            start_x=_require(data, "startX", "swipe"),
            start_y=_require(data, "startY", "swipe"),
            end_x=_require(data, "endX", "swipe"),
            end_y=_require(data, "endY", "swipe"),
            duration=data.get("duration", 0),
            direction=_require(data, "direction", "swipe"),
        )


@dataclass(frozen=True)
class ScrollData:
    """Scroll delta, possibly coalesced from several raw scroll events."""

    delta_x: float
    delta_y: float
    container_index: Optional[int] = None
    coalesced: Optional[int] = None

    kind: ClassVar[str] = "scroll"

    def to_dict(self) -> dict:
        return _compact({
            "kind": self.kind,
            "deltaX": self.delta_x,
            "deltaY": self.delta_y,
            "containerIndex": self.container_index,
            "coalesced": self.coalesced,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "ScrollData":
        return cls(
            delta_x=data.get("deltaX", 0),
            delta_y=data.get("deltaY", 0),
            container_index=data.get("containerIndex"),
            coalesced=data.get("coalesced"),
        )


@dataclass(frozen=True)
class InputData:
    """Text entered into an element. Values may be masked for PII."""

    value: str
    masked: bool = False
    element_index: Optional[int] = None
    input_type: Optional[str] = None

    kind: ClassVar[str] = "input"

    def to_dict(self) -> dict:
        return _compact({
            "kind": self.kind,
            "elementIndex": self.element_index,
            "value": self.value,
            "masked": self.masked,
            "inputType": self.input_type,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "InputData":
        return cls(
            value=_require(data, "value", "input"),
            masked=bool(data.get("masked", False)),
            element_index=data.get("elementIndex"),
            input_type=data.get("inputType"),
        )


@dataclass(frozen=True)
class NavigationData:
    """Screen or route change."""

    screen: str
    nav_type: str = "push"
    params: Optional[dict] = None
    url: Optional[str] = None

    kind: ClassVar[str] = "navigation"

    def to_dict(self) -> dict:
        return _compact({
            "kind": self.kind,
            "navType": self.nav_type,
            "screen": self.screen,
            "params": self.params,
            "url": self.url,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "NavigationData":
        return cls(
            screen=_require(data, "screen", "navigation"),
            nav_type=data.get("navType", "push"),
            params=data.get("params"),
            url=data.get("url"),
        )


@dataclass(frozen=True)
class NetworkData:
    """One phase of an HTTP request."""

    request_id: str
    method: str
    url: str
    phase: str
    status: Optional[int] = None
    duration: Optional[float] = None
    error: Optional[str] = None

    kind: ClassVar[str] = "network"

    def to_dict(self) -> dict:
        return _compact({
            "kind": self.kind,
            "requestId": self.request_id,
            "method": self.method,
            "url": self.url,
            "status": self.status,
            "duration": self.duration,
            "phase": self.phase,
            "error": self.error,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "NetworkData":
        return cls(
            request_id=_require(data, "requestId", "network"),
            method=_require(data, "method", "network"),
            url=_require(data, "url", "network"),
            phase=_require(data, "phase", "network"),
            status=data.get("status"),
            duration=data.get("duration"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class ScreenCaptureData:
    """Pointer to a screenshot taken at this point of the session."""

    screenshot_index: int
    trigger: str = "manual"

    kind: ClassVar[str] = "screen_capture"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "screenshotIndex": self.screenshot_index,
            "trigger": self.trigger,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScreenCaptureData":
        return cls(
            screenshot_index=_require(data, "screenshotIndex", "screen_capture"),
            trigger=data.get("trigger", "manual"),
        )


@dataclass(frozen=True)
class ErrorData:
    """Runtime error observed during the session."""

    message: str
    error_type: str = "js"
    fatal: bool = False
    stack: Optional[str] = None

    kind: ClassVar[str] = "error"

    def to_dict(self) -> dict:
        return _compact({
            "kind": self.kind,
            "message": self.message,
            "stack": self.stack,
            "errorType": self.error_type,
            "fatal": self.fatal,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "ErrorData":
        return cls(
            message=_require(data, "message", "error"),
            error_type=data.get("errorType", "js"),
            fatal=bool(data.get("fatal", False)),
            stack=data.get("stack"),
        )


@dataclass(frozen=True)
class AppStateData:
    """App lifecycle change (active, background, inactive)."""

    state: str

    kind: ClassVar[str] = "app_state"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "state": self.state}

    @classmethod
    def from_dict(cls, data: dict) -> "AppStateData":
        return cls(state=_require(data, "state", "app_state"))


EventData = Union[
    TapData,
    SwipeData,
    ScrollData,
    InputData,
    NavigationData,
    NetworkData,
    ScreenCaptureData,
    ErrorData,
    AppStateData,
]

PAYLOAD_TYPES: dict[str, type] = {
    "tap": TapData,
    "double_tap": TapData,
    "long_press": TapData,
    "swipe": SwipeData,
    "scroll": ScrollData,
    "input": InputData,
    "navigation": NavigationData,
    "network": NetworkData,
    "screen_capture": ScreenCaptureData,
    "error": ErrorData,
    "app_state": AppStateData,
}

# Discriminant each payload kind must travel with
KIND_EVENT_TYPES: dict[str, EventType] = {
    "tap": EventType.TAP,
    "double_tap": EventType.DOUBLE_TAP,
    "long_press": EventType.LONG_PRESS,
    "swipe": EventType.SWIPE,
    "scroll": EventType.SCROLL,
    "input": EventType.INPUT,
    "navigation": EventType.NAVIGATION,
    "app_state": EventType.APP_STATE,
    "screen_capture": EventType.SCREEN_CAPTURE,
    "error": EventType.ERROR,
    "network": EventType.NETWORK,
}


def parse_event_data(data: dict) -> EventData:
    """Build the payload variant named by ``data["kind"]``."""
    kind = data.get("kind")
    payload_type = PAYLOAD_TYPES.get(kind)
    if payload_type is None:
        raise SessionValidationError(f"Unknown event payload kind: {kind!r}")
    return payload_type.from_dict(data)


# =============================================================================
# Events, elements, screenshots
# =============================================================================


@dataclass
class PerformanceSample:
    """Performance metrics sampled at event time."""

    fps: Optional[float] = None
    js_thread_lag: Optional[float] = None  # ms
    memory_usage: Optional[float] = None  # MB
    time_since_navigation: Optional[float] = None  # ms

    def to_dict(self) -> dict:
        return _compact({
            "fps": self.fps,
            "jsThreadLag": self.js_thread_lag,
            "memoryUsage": self.memory_usage,
            "timeSinceNavigation": self.time_since_navigation,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "PerformanceSample":
        return cls(
            fps=data.get("fps"),
            js_thread_lag=data.get("jsThreadLag"),
            memory_usage=data.get("memoryUsage"),
            time_since_navigation=data.get("timeSinceNavigation"),
        )


@dataclass
class SessionEvent:
    """A recorded event with delta-encoded timestamp."""

    dt: float  # ms since previous event
    type: EventType
    data: EventData
    perf: Optional[PerformanceSample] = None

    def to_dict(self) -> dict:
        event = {"dt": self.dt, "type": int(self.type), "data": self.data.to_dict()}
        if self.perf is not None:
            event["perf"] = self.perf.to_dict()
        return event

    @classmethod
    def from_dict(cls, data: dict) -> "SessionEvent":
        raw_type = _require(data, "type", "event")
        try:
            event_type = EventType(raw_type)
        except ValueError:
            raise SessionValidationError(f"Unknown event type discriminant: {raw_type!r}") from None
        perf = data.get("perf")
        return cls(
            dt=_require(data, "dt", "event"),
            type=event_type,
            data=parse_event_data(_require(data, "data", "event")),
            perf=PerformanceSample.from_dict(perf) if perf is not None else None,
        )


@dataclass
class Rect:
    """Bounding rectangle in screen points."""

    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> "Rect":
        return cls(
            x=data.get("x", 0),
            y=data.get("y", 0),
            width=data.get("width", 0),
            height=data.get("height", 0),
        )


class ElementKey(NamedTuple):
    """Structural identity of an element in the dictionary."""

    test_id: Optional[str]
    accessibility_label: Optional[str]
    text: Optional[str]
    type: "ElementType"
    css_selector: Optional[str]


@dataclass
class ElementInfo:
    """An entry in the session's element dictionary."""

    type: ElementType = ElementType.UNKNOWN
    test_id: Optional[str] = None
    accessibility_label: Optional[str] = None
    text: Optional[str] = None
    bounds: Optional[Rect] = None
    css_selector: Optional[str] = None
    attributes: Optional[dict[str, str]] = None

    def __post_init__(self):
        self.type = ElementType.parse(self.type)

    @property
    def key(self) -> ElementKey:
        return ElementKey(
            self.test_id,
            self.accessibility_label,
            self.text,
            self.type,
            self.css_selector,
        )

    def to_dict(self) -> dict:
        return _compact({
            "testId": self.test_id,
            "accessibilityLabel": self.accessibility_label,
            "text": self.text,
            "type": self.type.value,
            "bounds": self.bounds.to_dict() if self.bounds else None,
            "cssSelector": self.css_selector,
            "attributes": self.attributes,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "ElementInfo":
        bounds = data.get("bounds")
        return cls(
            type=ElementType.parse(data.get("type", "unknown")),
            test_id=data.get("testId"),
            accessibility_label=data.get("accessibilityLabel"),
            text=data.get("text"),
            bounds=Rect.from_dict(bounds) if bounds else None,
            css_selector=data.get("cssSelector"),
            attributes=data.get("attributes"),
        )


@dataclass
class Screenshot:
    """Screenshot reference (inline base64 or URL)."""

    id: str
    timestamp: int
    format: str = "webp"
    data: str = ""
    is_url: bool = False
    width: int = 0
    height: int = 0
    quality: int = 80
    is_diff: bool = False
    diff_from_id: Optional[str] = None

    def to_dict(self) -> dict:
        return _compact({
            "id": self.id,
            "timestamp": self.timestamp,
            "format": self.format,
            "data": self.data,
            "isUrl": self.is_url,
            "width": self.width,
            "height": self.height,
            "quality": self.quality,
            "isDiff": self.is_diff,
            "diffFromId": self.diff_from_id,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "Screenshot":
        return cls(
            id=_require(data, "id", "screenshot"),
            timestamp=data.get("timestamp", 0),
            format=data.get("format", "webp"),
            data=data.get("data", ""),
            is_url=bool(data.get("isUrl", False)),
            width=data.get("width", 0),
            height=data.get("height", 0),
            quality=data.get("quality", 80),
            is_diff=bool(data.get("isDiff", False)),
            diff_from_id=data.get("diffFromId"),
        )


# =============================================================================
# Header
# =============================================================================


@dataclass
class ScreenInfo:
    width: int
    height: int
    pixel_ratio: float = 1

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height, "pixelRatio": self.pixel_ratio}

    @classmethod
    def from_dict(cls, data: dict) -> "ScreenInfo":
        return cls(
            width=data.get("width", 0),
            height=data.get("height", 0),
            pixel_ratio=data.get("pixelRatio", 1),
        )


@dataclass
class DeviceInfo:
    """Device the session was recorded on."""

    platform: str  # web | ios | android
    os_version: str
    screen: ScreenInfo
    model: Optional[str] = None
    user_agent: Optional[str] = None
    locale: Optional[str] = None

    def to_dict(self) -> dict:
        return _compact({
            "platform": self.platform,
            "osVersion": self.os_version,
            "model": self.model,
            "screen": self.screen.to_dict(),
            "userAgent": self.user_agent,
            "locale": self.locale,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "DeviceInfo":
        return cls(
            platform=_require(data, "platform", "device"),
            os_version=data.get("osVersion", ""),
            screen=ScreenInfo.from_dict(data.get("screen", {})),
            model=data.get("model"),
            user_agent=data.get("userAgent"),
            locale=data.get("locale"),
        )


@dataclass
class AppInfo:
    """Application under test."""

    name: str
    version: str
    identifier: str  # bundle id (mobile) or origin (web)
    build: Optional[str] = None

    def to_dict(self) -> dict:
        return _compact({
            "name": self.name,
            "version": self.version,
            "build": self.build,
            "identifier": self.identifier,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "AppInfo":
        return cls(
            name=_require(data, "name", "app"),
            version=data.get("version", ""),
            identifier=_require(data, "identifier", "app"),
            build=data.get("build"),
        )


@dataclass
class SessionHeader:
    """Session metadata, sent once per session."""

    session_id: str
    start_time: int  # Unix ms
    device: DeviceInfo
    app: AppInfo
    schema_version: int = 1
    end_time: Optional[int] = None

    def to_dict(self) -> dict:
        return _compact({
            "sessionId": self.session_id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "device": self.device.to_dict(),
            "app": self.app.to_dict(),
            "schemaVersion": self.schema_version,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "SessionHeader":
        return cls(
            session_id=_require(data, "sessionId", "header"),
            start_time=_require(data, "startTime", "header"),
            device=DeviceInfo.from_dict(_require(data, "device", "header")),
            app=AppInfo.from_dict(_require(data, "app", "header")),
            schema_version=data.get("schemaVersion", 1),
            end_time=data.get("endTime"),
        )


# =============================================================================
# Session
# =============================================================================


@dataclass
class Session:
    """A complete recorded session."""

    header: SessionHeader
    elements: list[ElementInfo] = field(default_factory=list)
    events: list[SessionEvent] = field(default_factory=list)
    screenshots: list[Screenshot] = field(default_factory=list)
    _element_lookup: dict[ElementKey, int] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    @property
    def duration_ms(self) -> float:
        """Sum of all event deltas."""
        return sum(event.dt for event in self.events)

    def element_index(self, key: ElementKey) -> Optional[int]:
        """Look up an element by structural key."""
        if len(self._element_lookup) != len(self.elements):
            self._element_lookup = {}
            for index, element in enumerate(self.elements):
                self._element_lookup.setdefault(element.key, index)
        return self._element_lookup.get(key)

    def validate(self) -> list[str]:
        """Check the session invariants.

        Returns:
            List of violation messages (empty if valid)
        """
        errors = []
        element_count = len(self.elements)
        screenshot_count = len(self.screenshots)

        for position, event in enumerate(self.events):
            if event.dt < 0:
                errors.append(f"Event {position}: negative dt {event.dt}")

            expected_type = KIND_EVENT_TYPES.get(event.data.kind)
            if expected_type is not None and expected_type != event.type:
                errors.append(
                    f"Event {position}: type {int(event.type)} does not match "
                    f"payload kind '{event.data.kind}'"
                )

            for name in ("element_index", "container_index"):
                index = getattr(event.data, name, None)
                if index is not None and not 0 <= index < element_count:
                    errors.append(
                        f"Event {position}: {name} {index} out of range "
                        f"for {element_count} elements"
                    )

            if isinstance(event.data, ScreenCaptureData):
                if not 0 <= event.data.screenshot_index < screenshot_count:
                    errors.append(
                        f"Event {position}: screenshot_index "
                        f"{event.data.screenshot_index} out of range"
                    )

        if self.header.end_time is not None:
            timeline_end = self.header.start_time + self.duration_ms
            # Integer dt encoding may shift each event by up to half a millisecond
            slack = DT_ROUNDING_SLACK_MS * len(self.events)
            if timeline_end > self.header.end_time + slack:
                errors.append(
                    f"Events end at {timeline_end}, after session end_time "
                    f"{self.header.end_time}"
                )

        return errors

    def ensure_valid(self) -> None:
        """Raise SessionValidationError if any invariant is violated."""
        errors = self.validate()
        if errors:
            raise SessionValidationError("; ".join(errors))

    def to_dict(self) -> dict:
        """Convert to the canonical JSON schema."""
        return {
            "header": self.header.to_dict(),
            "elements": [element.to_dict() for element in self.elements],
            "events": [event.to_dict() for event in self.events],
            "screenshots": [screenshot.to_dict() for screenshot in self.screenshots],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        """Create a Session from the canonical JSON schema."""
        return cls(
            header=SessionHeader.from_dict(_require(data, "header", "session")),
            elements=[ElementInfo.from_dict(e) for e in data.get("elements", [])],
            events=[SessionEvent.from_dict(e) for e in data.get("events", [])],
            screenshots=[Screenshot.from_dict(s) for s in data.get("screenshots", [])],
        )


# =============================================================================
# Factory functions
# =============================================================================


def _to_base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    encoded = []
    while value:
        value, remainder = divmod(value, 36)
        encoded.append(digits[remainder])
    return "".join(reversed(encoded))


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_session_id(now_ms: Optional[int] = None) -> str:
    """Create a session id of the form ``<base36 ms>-<random>``."""
    timestamp = _to_base36(now_ms if now_ms is not None else _now_ms())
    return f"{timestamp}-{uuid.uuid4().hex[:8]}"


def create_session(
    device: DeviceInfo,
    app: AppInfo,
    now_ms: Optional[int] = None,
) -> Session:
    """Start a new, empty session."""
    start = now_ms if now_ms is not None else _now_ms()
    return Session(
        header=SessionHeader(
            session_id=generate_session_id(start),
            start_time=start,
            device=device,
            app=app,
            schema_version=1,
        ),
    )


def get_or_create_element(session: Session, element: ElementInfo) -> int:
    """Get or add an element in the dictionary and return its index."""
    existing = session.element_index(element.key)
    if existing is not None:
        return existing

    session.elements.append(element)
    index = len(session.elements) - 1
    session._element_lookup[element.key] = index
    return index


def add_event(
    session: Session,
    event_type: EventType,
    data: EventData,
    previous_timestamp: int,
    perf: Optional[PerformanceSample] = None,
    now_ms: Optional[int] = None,
) -> int:
    """Append an event with delta encoding.

    Returns:
        The absolute timestamp of the new event, to pass as
        ``previous_timestamp`` on the next call.
    """
    timestamp = now_ms if now_ms is not None else _now_ms()
    dt = timestamp - previous_timestamp
    if dt < 0:
        raise SessionValidationError(
            f"Event timestamp {timestamp} precedes previous event {previous_timestamp}"
        )
    session.events.append(SessionEvent(dt=dt, type=EventType(event_type), data=data, perf=perf))
    return timestamp
