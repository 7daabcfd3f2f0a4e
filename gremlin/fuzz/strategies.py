"""Fuzzing strategies.

Each strategy builds at most one FuzzTest from a spec. Randomness comes
only from the SeededRandom passed in, so the same spec, options and seed
always produce the same steps.
"""

from typing import Callable, Optional

from ..spec.flows import shortest_path
from ..spec.models import GremlinSpec, Transition, TransitionEvent, TransitionEventType
from .corpus import EVIL_STRINGS, describe_evil_string
from .models import (
    CustomActionType,
    CustomFuzzAction,
    ExpectedOutcome,
    FuzzOptions,
    FuzzStep,
    FuzzStepType,
    FuzzStrategy,
    FuzzTest,
)
from .rng import SeededRandom

EVIL_INPUTS_PER_TEST = 5
COMMON_FLOW_LENGTH = 10
FORWARD_FRACTION = 0.6
SKIP_PROBABILITY = 0.3
RAPID_FIRE_MIN = 10
RAPID_FIRE_SPREAD = 20

StrategyFn = Callable[[GremlinSpec, FuzzOptions, SeededRandom, str], Optional[FuzzTest]]


def _transition_step(description: str, transition: Transition, state: Optional[str] = None) -> FuzzStep:
    return FuzzStep(
        type=FuzzStepType.ACTION,
        description=description,
        state=state if state is not None else transition.from_state,
        transition=transition.id,
        event=transition.event,
    )


def path_steps(spec: GremlinSpec, source: str, target: str) -> list[FuzzStep]:
    """Action steps along the shortest path, empty if unreachable."""
    path = shortest_path(spec, source, target) or []
    return [_transition_step(f"Navigate to {spec.state_name(t.to_state)}", t) for t in path]


def _by_frequency(spec: GremlinSpec) -> list[Transition]:
    # sorted() is stable, so ties keep spec order
    return sorted(spec.transitions, key=lambda t: t.frequency, reverse=True)


# =============================================================================
# Random walk
# =============================================================================


def random_walk(spec: GremlinSpec, options: FuzzOptions, rng: SeededRandom, name: str) -> FuzzTest:
    steps = []
    current = spec.initial_state

    for _ in range(options.max_steps):
        candidates = spec.outgoing(current)
        if not candidates:
            break
        transition = rng.choice(candidates)
        steps.append(_transition_step(f"Random action: {transition.event.type.value}", transition, current))
        current = transition.to_state

    return FuzzTest(
        name=name,
        description=f"Random walk through state machine with {len(steps)} steps",
        strategy=FuzzStrategy.RANDOM_WALK,
        steps=steps,
        expected_outcome=ExpectedOutcome.PASS,
        bug_categories=["state machine violations", "unexpected crashes"],
    )


# =============================================================================
# Boundary abuse
# =============================================================================


def boundary_abuse(spec: GremlinSpec, options: FuzzOptions, rng: SeededRandom, name: str) -> Optional[FuzzTest]:
    """Feed evil strings into a random input field, submitting after each."""
    inputs = [t for t in spec.transitions if t.event.type == TransitionEventType.INPUT]
    if not inputs:
        return None

    target = rng.choice(inputs)
    element = target.event.element
    steps = path_steps(spec, spec.initial_state, target.from_state)

    for _ in range(min(EVIL_INPUTS_PER_TEST, len(EVIL_STRINGS))):
        evil = rng.choice(EVIL_STRINGS)
        steps.append(
            FuzzStep(
                type=FuzzStepType.FUZZ_INPUT,
                description=f"Evil input: {describe_evil_string(evil)}",
                state=target.from_state,
                event=TransitionEvent(type=TransitionEventType.INPUT, element=element, data={"value": evil}),
                custom_action=CustomFuzzAction(type=CustomActionType.EVIL_INPUT, target=element),
            )
        )
        steps.append(
            FuzzStep(
                type=FuzzStepType.ACTION,
                description="Attempt to submit evil input",
                event=TransitionEvent(type=TransitionEventType.SUBMIT, element=element),
            )
        )

    return FuzzTest(
        name=name,
        description="Test input validation with evil/boundary strings",
        strategy=FuzzStrategy.BOUNDARY_ABUSE,
        steps=steps,
        expected_outcome=ExpectedOutcome.UNKNOWN,
        bug_categories=["input validation", "XSS", "injection", "buffer overflow", "unicode handling"],
    )


# =============================================================================
# Sequence mutation
# =============================================================================


def common_flow(spec: GremlinSpec) -> list[FuzzStep]:
    """Greedy highest-frequency walk from the initial state without reusing transitions."""
    ranked = _by_frequency(spec)
    steps: list[FuzzStep] = []
    used: set[str] = set()
    current = spec.initial_state

    for _ in range(COMMON_FLOW_LENGTH):
        transition = next((t for t in ranked if t.from_state == current and t.id not in used), None)
        if transition is None:
            break
        used.add(transition.id)
        steps.append(_transition_step(f"Execute {transition.event.type.value}", transition, current))
        current = transition.to_state

    return steps


def sequence_mutation(spec: GremlinSpec, options: FuzzOptions, rng: SeededRandom, name: str) -> Optional[FuzzTest]:
    """Shuffle, repeat or drop steps of the most common flow."""
    flow = common_flow(spec)
    if not flow:
        return None

    mutation = rng.randint_below(3)
    if mutation == 0:
        mutated = rng.shuffle(flow)
    elif mutation == 1:
        mutated = list(flow)
        index = rng.randint_below(len(flow))
        copies = rng.randint_below(3) + 2
        for _ in range(copies):
            mutated.insert(index, flow[index])
    else:
        mutated = [step for step in flow if rng.random() > SKIP_PROBABILITY]

    return FuzzTest(
        name=name,
        description="Mutated sequence of common user flow",
        strategy=FuzzStrategy.SEQUENCE_MUTATION,
        steps=mutated,
        expected_outcome=ExpectedOutcome.UNKNOWN,
        bug_categories=["race conditions", "state machine violations", "missing validation"],
    )


# =============================================================================
# Back button chaos
# =============================================================================


def back_button_chaos(spec: GremlinSpec, options: FuzzOptions, rng: SeededRandom, name: str) -> FuzzTest:
    steps = []
    current = spec.initial_state

    for _ in range(int(options.max_steps * FORWARD_FRACTION)):
        candidates = spec.outgoing(current)
        if not candidates:
            break
        transition = rng.choice(candidates)
        steps.append(_transition_step(f"Navigate forward: {transition.event.type.value}", transition, current))
        current = transition.to_state

    back_count = rng.randint_below(len(steps)) + 1
    for _ in range(back_count):
        steps.append(
            FuzzStep(
                type=FuzzStepType.BACK,
                description="Press back button",
                event=TransitionEvent(type=TransitionEventType.BACK),
            )
        )

    candidates = spec.outgoing(current)
    if candidates:
        transition = rng.choice(candidates)
        steps.append(
            FuzzStep(
                type=FuzzStepType.ACTION,
                description="Try to interact after back spam",
                event=transition.event,
            )
        )

    return FuzzTest(
        name=name,
        description="Navigate forward then rapidly press back button",
        strategy=FuzzStrategy.BACK_BUTTON_CHAOS,
        steps=steps,
        expected_outcome=ExpectedOutcome.UNKNOWN,
        bug_categories=["navigation bugs", "history management", "state restoration"],
    )


# =============================================================================
# Rapid fire
# =============================================================================


def rapid_fire(spec: GremlinSpec, options: FuzzOptions, rng: SeededRandom, name: str) -> Optional[FuzzTest]:
    """Repeat the most frequent transition many times without waiting."""
    ranked = _by_frequency(spec)
    if not ranked:
        return None

    target = ranked[0]
    steps = path_steps(spec, spec.initial_state, target.from_state)

    clicks = rng.randint_below(RAPID_FIRE_SPREAD) + RAPID_FIRE_MIN
    for i in range(clicks):
        steps.append(
            FuzzStep(
                type=FuzzStepType.ACTION,
                description=f"Rapid click {i + 1}/{clicks}",
                state=target.from_state,
                event=target.event,
                custom_action=CustomFuzzAction(type=CustomActionType.RAPID_CLICK, target=target.event.element),
            )
        )

    return FuzzTest(
        name=name,
        description="Rapidly trigger same action multiple times",
        strategy=FuzzStrategy.RAPID_FIRE,
        steps=steps,
        expected_outcome=ExpectedOutcome.UNKNOWN,
        bug_categories=["race conditions", "double submission", "event handler bugs"],
    )


# =============================================================================
# Invalid state access
# =============================================================================


def invalid_state_access(
    spec: GremlinSpec, options: FuzzOptions, rng: SeededRandom, name: str
) -> Optional[FuzzTest]:
    """Jump straight into a non-initial state, then try to act there."""
    candidates = [s for s in spec.states if s.id != spec.initial_state]
    if not candidates:
        return None

    target = rng.choice(candidates)
    data = {"stateId": target.id, "stateName": target.name}
    if target.url:
        data["url"] = target.url

    steps = [
        FuzzStep(
            type=FuzzStepType.NAVIGATE,
            description=f"Try to access {target.name} directly without proper navigation",
            state=target.id,
            custom_action=CustomFuzzAction(type=CustomActionType.INVALID_NAVIGATION, data=data),
        )
    ]

    outgoing = spec.outgoing(target.id)
    if outgoing:
        transition = rng.choice(outgoing)
        steps.append(
            FuzzStep(
                type=FuzzStepType.ACTION,
                description="Try to interact in invalid state",
                event=transition.event,
            )
        )

    return FuzzTest(
        name=name,
        description="Try to access state without proper navigation flow",
        strategy=FuzzStrategy.INVALID_STATE_ACCESS,
        steps=steps,
        expected_outcome=ExpectedOutcome.FAIL,
        bug_categories=["authorization", "state validation", "deep linking"],
    )


STRATEGY_REGISTRY: dict[FuzzStrategy, StrategyFn] = {
    FuzzStrategy.RANDOM_WALK: random_walk,
    FuzzStrategy.BOUNDARY_ABUSE: boundary_abuse,
    FuzzStrategy.SEQUENCE_MUTATION: sequence_mutation,
    FuzzStrategy.BACK_BUTTON_CHAOS: back_button_chaos,
    FuzzStrategy.RAPID_FIRE: rapid_fire,
    FuzzStrategy.INVALID_STATE_ACCESS: invalid_state_access,
}
