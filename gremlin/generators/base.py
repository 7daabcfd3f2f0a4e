"""Base generator class shared by the framework emitters."""

import re
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Callable, Optional

import structlog

from ..spec.flows import Flow, extract_flows, shortest_path
from ..spec.models import GremlinSpec, State, Transition, TransitionEvent, TransitionEventType, ensure_valid_spec
from .models import GeneratorConfig

logger = structlog.get_logger()

EventLowering = Callable[[TransitionEvent], list[str]]

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BaseGenerator(ABC):
    """Base class for test generators.

    Each framework implements this class to lower flows and transitions
    into its own syntax. Subclasses provide one lowering per
    ``TransitionEventType`` through ``event_handlers``.
    """

    # Override these in subclasses
    framework: str = "unknown"
    file_extension: str = ".txt"
    comment_prefix: str = "//"

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize generator with optional config."""
        self.config = config or GeneratorConfig(framework=self.framework)
        self.log = logger.bind(component=f"{self.framework}_generator")
        self.event_handlers: dict[TransitionEventType, EventLowering] = self.build_event_handlers()

    @abstractmethod
    def build_event_handlers(self) -> dict[TransitionEventType, EventLowering]:
        """Map every event type to its lowering."""
        pass

    @abstractmethod
    def generate(self, spec: GremlinSpec) -> str:
        """Generate the primary artifact for a spec."""
        pass

    @abstractmethod
    def generate_files(self, spec: GremlinSpec) -> dict[str, str]:
        """Generate every artifact for a spec, keyed by file name."""
        pass

    def lower_event(self, event: TransitionEvent) -> list[str]:
        """Lower an event into target lines."""
        handler = self.event_handlers.get(event.type)
        if handler is None:
            return self.unsupported(event.type.value)
        return handler(event)

    def unsupported(self, kind: str) -> list[str]:
        """Placeholder for an event the target cannot express."""
        self.log.warning("Unsupported event kind", kind=kind)
        return [f"{self.comment_prefix} Unsupported event: {kind}"]

    # =========================================================================
    # Spec helpers
    # =========================================================================

    def prepare(self, spec: GremlinSpec) -> None:
        """Reject specs that violate structural invariants."""
        ensure_valid_spec(spec)

    def flows(self, spec: GremlinSpec) -> list[Flow]:
        return extract_flows(spec, max_depth=self.config.max_depth, limit=self.config.flow_limit)

    def prerequisite_path(self, spec: GremlinSpec, transition: Transition) -> Optional[list[Transition]]:
        """Transitions leading from the initial state to a transition's source."""
        return shortest_path(spec, spec.initial_state, transition.from_state)

    def transition_test_name(self, spec: GremlinSpec, transition: Transition) -> str:
        return (
            f"{spec.state_name(transition.from_state)}_to_"
            f"{spec.state_name(transition.to_state)}_via_{transition.event.type.value}"
        )

    def step_label(self, spec: GremlinSpec, transition: Transition) -> str:
        return f"{spec.state_name(transition.from_state)} → {spec.state_name(transition.to_state)}"

    def destination(self, spec: GremlinSpec, transition: Transition) -> Optional[State]:
        return spec.get_state(transition.to_state)

    @property
    def generated_at(self) -> str:
        return self.config.generated_at or utc_timestamp()

    # =========================================================================
    # Naming and escaping
    # =========================================================================

    def sanitize_name(self, name: str) -> str:
        """Convert name to a file-safe identifier."""
        sanitized = re.sub(r"[^a-zA-Z0-9_-]", "_", name)
        sanitized = re.sub(r"_+", "_", sanitized).strip("_")
        return sanitized or "gremlin"

    def escape_string(self, value: Optional[str]) -> str:
        """Escape a value for a single-quoted string literal."""
        if value is None:
            return ""
        escaped = (
            value.replace("\\", "\\\\")
            .replace("'", "\\'")
            .replace("\n", "\\n")
            .replace("\r", "\\r")
            .replace("\t", "\\t")
        )
        return _CONTROL_CHARS.sub(lambda m: f"\\x{ord(m.group()):02x}", escaped)

    def comment_text(self, text: str) -> str:
        """Collapse text onto one line so it cannot escape a comment."""
        return " ".join(str(text).split()).replace("*/", "* /")
