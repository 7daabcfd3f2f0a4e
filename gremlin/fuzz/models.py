"""Data models for fuzz test generation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..config import get_settings
from ..spec.models import TransitionEvent
from ..spec.refs import ElementRef


class FuzzStrategy(str, Enum):
    """Fuzzing strategies."""

    RANDOM_WALK = "random_walk"
    BOUNDARY_ABUSE = "boundary_abuse"
    SEQUENCE_MUTATION = "sequence_mutation"
    BACK_BUTTON_CHAOS = "back_button_chaos"
    RAPID_FIRE = "rapid_fire"
    INVALID_STATE_ACCESS = "invalid_state_access"


DEFAULT_STRATEGIES = [
    FuzzStrategy.RANDOM_WALK,
    FuzzStrategy.BOUNDARY_ABUSE,
    FuzzStrategy.SEQUENCE_MUTATION,
    FuzzStrategy.BACK_BUTTON_CHAOS,
]


class FuzzStepType(str, Enum):
    NAVIGATE = "navigate"
    ACTION = "action"
    WAIT = "wait"
    ASSERTION = "assertion"
    FUZZ_INPUT = "fuzz_input"
    BACK = "back"
    FORWARD = "forward"


class CustomActionType(str, Enum):
    EVIL_INPUT = "evil_input"
    RAPID_CLICK = "rapid_click"
    SCROLL_SPAM = "scroll_spam"
    INVALID_NAVIGATION = "invalid_navigation"


class ExpectedOutcome(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CustomFuzzAction:
    """Fuzz-specific action attached to a step."""

    type: CustomActionType
    target: Optional[ElementRef] = None
    data: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict:
        action: dict[str, Any] = {"type": self.type.value}
        if self.target is not None:
            action["target"] = self.target.to_dict()
        if self.data is not None:
            action["data"] = dict(self.data)
        return action


@dataclass(frozen=True)
class FuzzStep:
    """One step of a fuzz test."""

    type: FuzzStepType
    description: str
    state: Optional[str] = None
    transition: Optional[str] = None
    event: Optional[TransitionEvent] = None
    custom_action: Optional[CustomFuzzAction] = None

    def to_dict(self) -> dict:
        step: dict[str, Any] = {"type": self.type.value, "description": self.description}
        if self.state is not None:
            step["state"] = self.state
        if self.transition is not None:
            step["transition"] = self.transition
        if self.event is not None:
            step["event"] = self.event.to_dict()
        if self.custom_action is not None:
            step["customAction"] = self.custom_action.to_dict()
        return step


@dataclass
class FuzzTest:
    """A generated fuzz test.

    Attributes:
        name: Deterministic name, ``<strategy>_<n>``
        description: What the test does
        strategy: Strategy that produced it
        steps: Ordered steps to execute
        expected_outcome: Hint for whoever triages the run
        bug_categories: Kinds of defects the test may surface
    """

    name: str
    description: str
    strategy: FuzzStrategy
    steps: list[FuzzStep] = field(default_factory=list)
    expected_outcome: ExpectedOutcome = ExpectedOutcome.UNKNOWN
    bug_categories: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "strategy": self.strategy.value,
            "steps": [step.to_dict() for step in self.steps],
            "expectedOutcome": self.expected_outcome.value,
            "bugCategories": list(self.bug_categories),
        }


@dataclass
class FuzzOptions:
    """Options for fuzz generation.

    Attributes:
        num_tests: Number of tests to generate (settings default)
        max_steps: Maximum steps per walk (settings default)
        strategies: Strategies to draw tests from, in order
        seed: PRNG seed; None derives one from the clock
        base_url: URL opened before each lowered test (settings default)
        include_comments: Whether lowered code carries comments
    """

    num_tests: int | None = None
    max_steps: int | None = None
    strategies: list[FuzzStrategy | str] = field(default_factory=lambda: list(DEFAULT_STRATEGIES))
    seed: int | None = None
    base_url: str | None = None
    include_comments: bool = True

    def __post_init__(self):
        """Convert strategy names to enums and fill defaults from settings."""
        self.strategies = [FuzzStrategy(s) if isinstance(s, str) else s for s in self.strategies]

        settings = get_settings()
        if self.num_tests is None:
            self.num_tests = settings.fuzz_num_tests
        if self.max_steps is None:
            self.max_steps = settings.fuzz_max_steps
        if self.base_url is None:
            self.base_url = settings.base_url
