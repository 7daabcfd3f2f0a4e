"""Playwright generator - lowers a GremlinSpec into a TypeScript test suite."""

import re
from typing import Any, Optional
from urllib.parse import urlsplit

from ..spec.flows import Flow
from ..spec.models import GremlinSpec, State, Transition, TransitionEvent, TransitionEventType
from ..spec.predicates import (
    Comparison,
    ElementExists,
    ElementVisible,
    LiteralValue,
    Predicate,
    VariableValue,
    format_predicate,
)
from ..spec.refs import ElementRef
from .base import BaseGenerator, EventLowering
from .formatters import CodeFormatter
from .locators import Locator, LocatorStrategy, resolve_locator
from .models import Framework, GeneratedTest, GroupBy

DEFAULT_INPUT_VALUE = "test input"
DEFAULT_SCROLL_DELTA = 500
DEFAULT_LONG_PRESS_MS = 1000
DEFAULT_WAIT_MS = 1000
MASKED_INPUT_ENV = "GREMLIN_MASKED_INPUT"

# Wheel deltas that reproduce a finger swipe in each direction
SWIPE_WHEEL_DELTAS = {
    "up": (0, 500),
    "down": (0, -500),
    "left": (500, 0),
    "right": (-500, 0),
}

_REGEX_SPECIALS = re.compile(r"[.*+?^${}()|[\]\\/]")
_UNESCAPED_SLASH = re.compile(r"(?<!\\)/")


def regex_literal(text: str) -> str:
    """Escape text for use inside a JavaScript regex literal."""
    return _REGEX_SPECIALS.sub(lambda m: "\\" + m.group(), text)


def escape_slashes(pattern: str) -> str:
    """Escape bare slashes so a pattern can sit inside a regex literal."""
    return _UNESCAPED_SLASH.sub(lambda m: "\\/", pattern)


def _number(data: Optional[dict[str, Any]], key: str) -> Optional[float]:
    if not data:
        return None
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _fmt_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class PlaywrightGenerator(BaseGenerator):
    """Generator for ``@playwright/test`` suites."""

    framework = "playwright"
    file_extension = ".spec.ts"
    comment_prefix = "//"

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
    # Suite
    # =========================================================================

    def generate(self, spec: GremlinSpec) -> str:
        """Generate a complete test file for a spec."""
        self.prepare(spec)

        lines = ["import { test, expect } from '@playwright/test';", ""]

        if self.config.include_comments:
            lines.append("/**")
            lines.append(f" * Auto-generated Playwright tests from GremlinSpec: {self.comment_text(spec.name)}")
            lines.append(f" * Generated at: {self.generated_at}")
            lines.append(f" * Sessions analyzed: {spec.metadata.session_count}")
            lines.append(" */")
            lines.append("")

        lines.extend(self.describe_open(spec.name))

        tests = self.generate_tests(spec)
        for generated in tests:
            lines.append(generated.code)
            lines.append("")

        lines.append("});")
        lines.append("")
        lines.append(self.helper_functions(spec))

        self.log.info(
            "Generated Playwright suite",
            spec=spec.name,
            tests=len(tests),
            group_by=self.config.group_by.value,
        )
        return CodeFormatter(Framework.PLAYWRIGHT).format_code("\n".join(lines))

    def generate_files(self, spec: GremlinSpec) -> dict[str, str]:
        return {f"{self.sanitize_name(spec.name)}{self.file_extension}": self.generate(spec)}

    def describe_open(self, name: str) -> list[str]:
        """Open a describe block with the shared navigation hook."""
        return [
            f"test.describe('{self.escape_string(name)}', () => {{",
            "  test.beforeEach(async ({ page }) => {",
            f"    await page.goto('{self.escape_string(self.config.base_url)}');",
            "  });",
            "",
        ]

    def generate_tests(self, spec: GremlinSpec) -> list[GeneratedTest]:
        if self.config.group_by == GroupBy.TRANSITION:
            return [self.transition_test(spec, t) for t in spec.transitions]
        return [self.flow_test(spec, flow) for flow in self.flows(spec)]

    def flow_test(self, spec: GremlinSpec, flow: Flow) -> GeneratedTest:
        """One test walking a flow step by step."""
        lines = []
        if self.config.include_comments:
            lines.append("  /**")
            lines.append(f"   * {self.comment_text(flow.description)}")
            lines.append(f"   * Steps: {len(flow.transitions)}")
            lines.append("   */")

        lines.append(f"  test('{self.escape_string(flow.name)}', async ({{ page }}) => {{")
        lines.append(f"    test.setTimeout({self.config.timeout_ms});")
        lines.append("")

        for index, transition in enumerate(flow.transitions, start=1):
            if self.config.include_comments:
                lines.append(f"    // Step {index}: {self.comment_text(self.step_label(spec, transition))}")
            lines.extend(self._indent(self.transition_body(spec, transition), 4))
            if self.config.include_screenshots and self.destination(spec, transition):
                artifact = f"{self.sanitize_name(flow.name)}-step-{index}.png"
                lines.append(f"    await expect(page).toHaveScreenshot('{artifact}');")
            lines.append("")

        lines.append("  });")
        return GeneratedTest(name=flow.name, code="\n".join(lines), transitions=list(flow.transition_ids))

    def transition_test(self, spec: GremlinSpec, transition: Transition) -> GeneratedTest:
        """One test exercising a single transition."""
        name = self.transition_test_name(spec, transition)
        lines = []
        if self.config.include_comments:
            lines.append("  /**")
            lines.append(f"   * Transition: {self.comment_text(self.step_label(spec, transition))}")
            lines.append(f"   * Event: {transition.event.type.value}")
            lines.append(f"   * Observed {transition.frequency} times")
            lines.append("   */")

        lines.append(f"  test('{self.escape_string(name)}', async ({{ page }}) => {{")
        lines.append(f"    test.setTimeout({self.config.timeout_ms});")
        lines.append("")

        if transition.from_state != spec.initial_state:
            lines.extend(self._indent(self.prerequisite_lines(spec, transition), 4))
            lines.append("")

        lines.extend(self._indent(self.transition_body(spec, transition), 4))
        lines.append("  });")
        return GeneratedTest(name=name, code="\n".join(lines), transitions=[transition.id])

    def prerequisite_lines(self, spec: GremlinSpec, transition: Transition) -> list[str]:
        """Actions that reach a transition's source state from the initial state."""
        source = self.comment_text(spec.state_name(transition.from_state))
        path = self.prerequisite_path(spec, transition)
        if path is None:
            return [f"// No observed path from {self.comment_text(spec.state_name(spec.initial_state))} to {source}"]

        lines = []
        if self.config.include_comments:
            route = " → ".join(
                [self.comment_text(spec.state_name(spec.initial_state))]
                + [self.comment_text(spec.state_name(t.to_state)) for t in path]
            )
            lines.append(f"// Prerequisite path to {source}: {route}")
        for step in path:
            lines.extend(self.lower_event(step.event))
        return lines

    def transition_body(self, spec: GremlinSpec, transition: Transition) -> list[str]:
        """Guard, action and post-condition for one transition."""
        lines = []
        if transition.guard is not None:
            lines.append(self.guard_assertion(transition.guard))
        lines.extend(self.lower_event(transition.event))
        destination = self.destination(spec, transition)
        if destination is not None:
            lines.append(self.state_assertion(destination))
        return lines

    # =========================================================================
    # Locators
    # =========================================================================

    def locator(self, element: Optional[ElementRef]) -> str:
        """Render the best locator for an element as a Playwright expression."""
        return self.render_locator(resolve_locator(element))

    def render_locator(self, locator: Locator) -> str:
        strategy = locator.strategy
        value = self.escape_string(locator.value)

        if strategy == LocatorStrategy.TEST_ID:
            if locator.is_wildcard:
                return f"page.locator('{self._wildcard_selector(locator.value)}').first()"
            return f"page.getByTestId('{value}')"
        if strategy == LocatorStrategy.LABEL:
            return f"page.getByLabel('{value}')"
        if strategy == LocatorStrategy.ROLE:
            return f"page.getByRole('{locator.role}', {{ name: '{value}' }})"
        if strategy == LocatorStrategy.TEXT:
            return f"page.getByText('{value}')"
        if strategy == LocatorStrategy.CSS:
            return f"page.locator('{value}')"
        if strategy == LocatorStrategy.XPATH:
            return f"page.locator('xpath={value}')"
        return "page.locator('body')"

    def _wildcard_selector(self, pattern: str) -> str:
        parts = [p for p in pattern.split("*") if p]
        if not parts:
            return "[data-testid]"
        if pattern.endswith("*") and pattern.count("*") == 1:
            operator, fragment = "^=", parts[0]
        else:
            operator, fragment = "*=", max(parts, key=len)
        fragment = fragment.replace('"', '\\"')
        return self.escape_string(f'[data-testid{operator}"{fragment}"]')

    # =========================================================================
    # Event lowering
    # =========================================================================

    def _pointer(self, event: TransitionEvent, method: str, options: str = "") -> list[str]:
        locator = resolve_locator(event.element)
        args = f"{{ {options} }}" if options else ""
        if locator.strategy == LocatorStrategy.COORDINATES:
            x, y = locator.coordinates
            mouse_args = f"{_fmt_number(x)}, {_fmt_number(y)}" + (f", {args}" if args else "")
            return [f"await page.mouse.{method}({mouse_args}); // fragile: coordinate fallback"]
        return [f"await {self.render_locator(locator)}.{method}({args});"]

    def _tap(self, event: TransitionEvent) -> list[str]:
        return self._pointer(event, "click")

    def _double_tap(self, event: TransitionEvent) -> list[str]:
        return self._pointer(event, "dblclick")

    def _long_press(self, event: TransitionEvent) -> list[str]:
        delay = _number(event.data, "duration") or DEFAULT_LONG_PRESS_MS
        return self._pointer(event, "click", f"delay: {_fmt_number(delay)}")

    def _swipe(self, event: TransitionEvent) -> list[str]:
        direction = str(event.get("direction", "up")).lower()
        dx, dy = SWIPE_WHEEL_DELTAS.get(direction, SWIPE_WHEEL_DELTAS["up"])
        return [f"await page.mouse.wheel({dx}, {dy});"]

    def _scroll(self, event: TransitionEvent) -> list[str]:
        dx = _number(event.data, "deltaX") or 0
        dy = _number(event.data, "deltaY")
        if dy is None:
            dy = DEFAULT_SCROLL_DELTA
        return [f"await page.mouse.wheel({_fmt_number(dx)}, {_fmt_number(dy)});"]

    def _input(self, event: TransitionEvent) -> list[str]:
        locator = self.locator(event.element)
        if event.get("masked"):
            return [f"await {locator}.fill(process.env.{MASKED_INPUT_ENV} ?? '{DEFAULT_INPUT_VALUE}');"]
        value = event.get("value")
        if not isinstance(value, str):
            value = DEFAULT_INPUT_VALUE
        return [f"await {locator}.fill('{self.escape_string(value)}');"]

    def _submit(self, event: TransitionEvent) -> list[str]:
        if event.element is not None:
            return [f"await {self.locator(event.element)}.press('Enter');"]
        return ["await page.keyboard.press('Enter');"]

    def _navigation(self, event: TransitionEvent) -> list[str]:
        url = event.get("url")
        if isinstance(url, str) and url:
            return [f"await page.goto('{self.escape_string(url)}');"]
        return [f"// Navigation to {self.comment_text(event.get('screen') or 'unknown')}"]

    def _back(self, event: TransitionEvent) -> list[str]:
        return ["await page.goBack();"]

    def _timeout(self, event: TransitionEvent) -> list[str]:
        duration = _number(event.data, "duration") or DEFAULT_WAIT_MS
        return [f"await page.waitForTimeout({_fmt_number(duration)});"]

    def _unsupported_event(self, event: TransitionEvent) -> list[str]:
        return self.unsupported(event.type.value)

    # =========================================================================
    # Assertions
    # =========================================================================

    def guard_assertion(self, guard: Predicate) -> str:
        """Pre-condition for a guarded transition."""
        if isinstance(guard, ElementVisible):
            return f"await expect({self.locator(guard.element)}).toBeVisible();"
        if isinstance(guard, ElementExists):
            return f"await expect({self.locator(guard.element)}).toBeAttached();"
        return f"// Guard: {self.comment_text(format_predicate(guard))}"

    def state_assertion(self, state: State) -> str:
        """Post-condition once a transition lands in ``state``."""
        url = state.url
        if url:
            parts = urlsplit(url)
            target = (parts.path or "/") if parts.scheme and parts.netloc else url
            return f"await expect(page).toHaveURL(/{regex_literal(target)}/);"

        if state.description and "url:" in state.description:
            match = re.search(r"url:\s*(\S+)", state.description)
            if match:
                return f"await expect(page).toHaveURL(/{escape_slashes(match.group(1))}/);"

        for invariant in state.invariants:
            if (
                isinstance(invariant, Comparison)
                and isinstance(invariant.left, VariableValue)
                and invariant.left.name == "url"
                and isinstance(invariant.right, LiteralValue)
            ):
                pattern = str(invariant.right.value)
                if pattern:
                    return f"await expect(page).toHaveURL(/{escape_slashes(pattern)}/);"

        return "await page.waitForLoadState('networkidle');"

    # =========================================================================
    # Helpers section
    # =========================================================================

    def helper_functions(self, spec: GremlinSpec) -> str:
        """Navigation helpers keyed by the spec's known state URLs."""
        lines = [
            "// ============================================================================",
            "// Helper Functions",
            "// ============================================================================",
            "",
            "const STATE_URLS: Record<string, string> = {",
        ]
        for state in spec.states:
            if state.url:
                lines.append(f"  '{self.escape_string(state.id)}': '{self.escape_string(state.url)}',")
        lines.extend([
            "};",
            "",
            "/**",
            " * Navigate directly to a state with a known URL",
            " */",
            "async function navigateToState(page: any, stateId: string): Promise<void> {",
            "  const url = STATE_URLS[stateId];",
            "  if (!url) {",
            "    throw new Error(`No known URL for state: ${stateId}`);",
            "  }",
            "  await page.goto(url);",
            "}",
            "",
            "/**",
            " * Wait for the app to settle after a transition",
            " */",
            "async function waitForState(page: any, stateId: string, timeout = 10000): Promise<void> {",
            "  await page.waitForLoadState('networkidle', { timeout });",
            "}",
            "",
        ])
        return "\n".join(lines)

    @staticmethod
    def _indent(lines: list[str], spaces: int) -> list[str]:
        pad = " " * spaces
        return [f"{pad}{line}" if line else "" for line in lines]
