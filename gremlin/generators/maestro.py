"""Maestro generator - lowers a GremlinSpec into Maestro YAML flows."""

from typing import Optional

import yaml

from ..spec.flows import Flow
from ..spec.models import GremlinSpec, Transition, TransitionEvent, TransitionEventType
from ..spec.predicates import ElementExists, ElementVisible, Predicate, format_predicate
from ..spec.refs import ElementRef
from .base import BaseGenerator, EventLowering
from .formatters import CodeFormatter
from .locators import Locator, LocatorStrategy, resolve_locator
from .models import Framework, GroupBy, MaestroFlow

INDEX_FILE_NAME = "config.yaml"
ERASE_CHARS = 50
SETTLE_TIMEOUT_MS = 5000
DEFAULT_INPUT_VALUE = "test input"
DEFAULT_WAIT_MS = 1000
MASKED_INPUT_ENV = "GREMLIN_MASKED_INPUT"
SWIPE_DIRECTIONS = ("UP", "DOWN", "LEFT", "RIGHT")


def yaml_quote(value: str) -> str:
    """Render a value as a double-quoted YAML scalar on one line."""
    dumped = yaml.safe_dump(value, default_style='"', allow_unicode=True, width=float("inf"))
    return dumped.removesuffix("...\n").rstrip("\n")


class MaestroGenerator(BaseGenerator):
    """Generator for Maestro mobile flows."""

    framework = "maestro"
    file_extension = ".yaml"
    comment_prefix = "#"

    def build_event_handlers(self) -> dict[TransitionEventType, EventLowering]:
        return {
            TransitionEventType.TAP: self._tap,
            TransitionEventType.DOUBLE_TAP: self._double_tap,
            TransitionEventType.LONG_PRESS: self._long_press,
            TransitionEventType.SWIPE: self._swipe,
            TransitionEventType.SCROLL: self._scroll,
            TransitionEventType.INPUT: self._input,
            TransitionEventType.SUBMIT: self._submit,
            TransitionEventType.NAVIGATION: self._navigation,
            TransitionEventType.BACK: self._back,
            TransitionEventType.APP_BACKGROUND: self._unsupported_event,
            TransitionEventType.APP_FOREGROUND: self._unsupported_event,
            TransitionEventType.NETWORK_RESPONSE: self._unsupported_event,
            TransitionEventType.TIMEOUT: self._timeout,
        }

    # =========================================================================
    # Documents
    # =========================================================================

    def generate(self, spec: GremlinSpec) -> str:
        """Single-document output: the top-ranked flow."""
        return self.generate_suite(spec)

    def generate_files(self, spec: GremlinSpec) -> dict[str, str]:
        """Every flow document plus the index that runs them."""
        flows = self.generate_flows(spec)
        files = {flow.file_name: flow.yaml for flow in flows}
        files[INDEX_FILE_NAME] = self.generate_index(flows)
        return files

    def generate_flows(self, spec: GremlinSpec) -> list[MaestroFlow]:
        """One flow document per ranked flow, or per transition."""
        self.prepare(spec)
        used_names: set[str] = set()

        if self.config.group_by == GroupBy.TRANSITION:
            documents = []
            for transition in spec.transitions:
                name = self.transition_test_name(spec, transition)
                documents.append(self._maestro_flow(name, self.transition_document(spec, transition), used_names))
        else:
            documents = [
                self._maestro_flow(flow.name, self.flow_document(spec, flow), used_names)
                for flow in self.flows(spec)
            ]

        self.log.info(
            "Generated Maestro flows",
            spec=spec.name,
            flows=len(documents),
            group_by=self.config.group_by.value,
        )
        return documents

    def generate_suite(self, spec: GremlinSpec) -> str:
        """Combined document running the highest-frequency flow."""
        self.prepare(spec)
        lines = self._app_header()

        if self.config.include_comments:
            lines.append(f"# Auto-generated Maestro tests from GremlinSpec: {self.comment_text(spec.name)}")
            lines.append(f"# Generated at: {self.generated_at}")
            lines.append(f"# Sessions analyzed: {spec.metadata.session_count}")
            lines.append(f"# Platform: {self.config.platform.value}")
            lines.append("")

        lines.extend(["---", "", "- launchApp:", "    clearState: true", ""])

        flows = self.flows(spec)
        if flows:
            top = flows[0]
            if self.config.include_comments:
                lines.append(f"# Flow: {self.comment_text(top.description)}")
                lines.append("")
            lines.extend(self._flow_steps(spec, top))

        return self._format(lines)

    def generate_index(self, flows: list[MaestroFlow]) -> str:
        """Index document listing every flow file."""
        header = [
            "# Maestro Test Suite Configuration",
            "# Run all flows: maestro test .",
            "",
        ]
        body = yaml.safe_dump(
            {"flows": [flow.file_name for flow in flows]},
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
        return self._format(header + body.splitlines())

    def flow_document(self, spec: GremlinSpec, flow: Flow) -> str:
        lines = self._app_header()
        if self.config.include_comments:
            lines.append(f"# {self.comment_text(flow.description)}")
            lines.append(f"# Steps: {len(flow.transitions)}")
            lines.append("")
        lines.extend(self._launch())
        lines.extend(self._flow_steps(spec, flow))
        return self._format(lines)

    def transition_document(self, spec: GremlinSpec, transition: Transition) -> str:
        lines = self._app_header()
        if self.config.include_comments:
            lines.append(f"# Transition: {self.comment_text(self.step_label(spec, transition))}")
            lines.append(f"# Event: {transition.event.type.value}")
            lines.append(f"# Observed {transition.frequency} times")
            lines.append("")
        lines.extend(self._launch())

        if transition.from_state != spec.initial_state:
            lines.extend(self.prerequisite_steps(spec, transition))
            lines.append("")

        lines.extend(self.transition_steps(spec, transition))
        return self._format(lines)

    def prerequisite_steps(self, spec: GremlinSpec, transition: Transition) -> list[str]:
        """Steps that reach a transition's source state from the initial state."""
        source = self.comment_text(spec.state_name(transition.from_state))
        path = self.prerequisite_path(spec, transition)
        if path is None:
            return [f"# No observed path from {self.comment_text(spec.state_name(spec.initial_state))} to {source}"]

        lines = []
        if self.config.include_comments:
            lines.append(f"# Prerequisite path to {source}")
        for step in path:
            lines.extend(self.lower_event(step.event))
        return lines

    def transition_steps(self, spec: GremlinSpec, transition: Transition) -> list[str]:
        """Guard, action and settle wait for one transition."""
        lines = []
        if transition.guard is not None:
            lines.extend(self.guard_steps(transition.guard))
        lines.extend(self.lower_event(transition.event))
        if self.destination(spec, transition) is not None:
            lines.extend(self.settle_steps())
        return lines

    def _flow_steps(self, spec: GremlinSpec, flow: Flow) -> list[str]:
        lines = []
        for index, transition in enumerate(flow.transitions, start=1):
            if self.config.include_comments:
                lines.append(f"# Step {index}: {self.comment_text(self.step_label(spec, transition))}")
            lines.extend(self.transition_steps(spec, transition))
            if self.config.include_screenshots:
                lines.append(f"- takeScreenshot: {self.sanitize_name(flow.name)}_step_{index}")
            lines.append("")
        return lines

    def _app_header(self) -> list[str]:
        return [f"appId: {yaml_quote(self.config.app_id)}", ""]

    def _launch(self) -> list[str]:
        return ["---", "", "- launchApp:", "    clearState: true", ""]

    def _maestro_flow(self, name: str, document: str, used_names: set[str]) -> MaestroFlow:
        stem = self.sanitize_name(name)
        candidate, counter = stem, 1
        while candidate in used_names:
            counter += 1
            candidate = f"{stem}_{counter}"
        used_names.add(candidate)
        return MaestroFlow(name=name, file_name=f"{candidate}{self.file_extension}", yaml=document)

    def _format(self, lines: list[str]) -> str:
        return CodeFormatter(Framework.MAESTRO).format_code("\n".join(lines))

    # =========================================================================
    # Selectors
    # =========================================================================

    def selector(self, element: Optional[ElementRef]) -> str:
        """Render the best selector for an element as a YAML value."""
        return self.render_selector(resolve_locator(element, structural=False))

    def render_selector(self, locator: Locator) -> str:
        strategy = locator.strategy
        if strategy == LocatorStrategy.TEST_ID:
            value = locator.value.replace("*", ".*") if locator.is_wildcard else locator.value
            return f"{{ id: {yaml_quote(value)} }}"
        if strategy in (LocatorStrategy.LABEL, LocatorStrategy.ROLE, LocatorStrategy.TEXT):
            return yaml_quote(locator.value)
        if strategy == LocatorStrategy.COORDINATES:
            x, y = locator.coordinates
            return f'{{ point: "{round(x)},{round(y)}" }}'
        return '{ point: "50%,50%" }'

    # =========================================================================
    # Event lowering
    # =========================================================================

    def _tap(self, event: TransitionEvent) -> list[str]:
        return [f"- tapOn: {self.selector(event.element)}"]

    def _double_tap(self, event: TransitionEvent) -> list[str]:
        return [f"- doubleTapOn: {self.selector(event.element)}"]

    def _long_press(self, event: TransitionEvent) -> list[str]:
        return [f"- longPressOn: {self.selector(event.element)}"]

    def _swipe(self, event: TransitionEvent) -> list[str]:
        direction = str(event.get("direction", "UP")).upper()
        if direction not in SWIPE_DIRECTIONS:
            direction = "UP"
        return ["- swipe:", f"    direction: {direction}"]

    def _scroll(self, event: TransitionEvent) -> list[str]:
        delta_y = event.get("deltaY")
        if isinstance(delta_y, (int, float)) and not isinstance(delta_y, bool) and delta_y < 0:
            # Content moves back up when the finger swipes down
            return ["- swipe:", "    direction: DOWN"]
        return ["- scroll"]

    def _input(self, event: TransitionEvent) -> list[str]:
        steps = []
        if event.element is not None:
            steps.append(f"- tapOn: {self.selector(event.element)}")
        steps.append(f"- eraseText: {ERASE_CHARS}")
        if event.get("masked"):
            steps.append(f"- inputText: {yaml_quote('${' + MASKED_INPUT_ENV + '}')}")
        else:
            value = event.get("value")
            if not isinstance(value, str):
                value = DEFAULT_INPUT_VALUE
            steps.append(f"- inputText: {yaml_quote(value)}")
        return steps

    def _submit(self, event: TransitionEvent) -> list[str]:
        return ["- pressKey: Enter"]

    def _navigation(self, event: TransitionEvent) -> list[str]:
        url = event.get("url")
        if isinstance(url, str) and url:
            return [f"- openLink: {yaml_quote(url)}"]
        return [f"# Navigation to: {self.comment_text(event.get('screen') or 'unknown')}"]

    def _back(self, event: TransitionEvent) -> list[str]:
        return ["- pressKey: back"]

    def _timeout(self, event: TransitionEvent) -> list[str]:
        duration = event.get("duration")
        if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration <= 0:
            duration = DEFAULT_WAIT_MS
        return ["- waitForAnimationToEnd:", f"    timeout: {round(duration)}"]

    def _unsupported_event(self, event: TransitionEvent) -> list[str]:
        return self.unsupported(event.type.value)

    # =========================================================================
    # Assertions
    # =========================================================================

    def guard_steps(self, guard: Predicate) -> list[str]:
        """Pre-condition steps for a guarded transition."""
        if isinstance(guard, (ElementVisible, ElementExists)):
            return [f"- assertVisible: {self.selector(guard.element)}"]
        return [f"# Guard: {self.comment_text(format_predicate(guard))}"]

    def settle_steps(self) -> list[str]:
        """Wait for the destination screen to settle."""
        return [
            "- extendedWaitUntil:",
            '    visible: ".*"',
            f"    timeout: {SETTLE_TIMEOUT_MS}",
        ]
