"""Lower fuzz tests into Playwright code."""

from typing import Optional

import structlog

from ..config import get_settings
from ..generators.base import utc_timestamp
from ..generators.formatters import CodeFormatter
from ..generators.models import Framework, GeneratorConfig
from ..generators.playwright import PlaywrightGenerator
from ..spec.models import GremlinSpec, TransitionEventType
from .models import CustomActionType, FuzzOptions, FuzzStep, FuzzStepType, FuzzTest

logger = structlog.get_logger()

DEFAULT_FUZZ_VALUE = "test"
WAIT_STEP_MS = 1000


def _lowering(base_url: Optional[str], include_comments: bool) -> PlaywrightGenerator:
    return PlaywrightGenerator(
        GeneratorConfig(framework=Framework.PLAYWRIGHT, base_url=base_url, include_comments=include_comments)
    )


def _step_code(generator: PlaywrightGenerator, step: FuzzStep) -> list[str]:
    if step.type == FuzzStepType.ACTION:
        if step.event is None:
            return ["// Action (no event specified)"]
        return generator.lower_event(step.event)

    if step.type == FuzzStepType.FUZZ_INPUT:
        if step.event is None or step.event.type != TransitionEventType.INPUT:
            return ["// Fuzz input (no event specified)"]
        value = step.event.get("value")
        if not isinstance(value, str):
            value = DEFAULT_FUZZ_VALUE
        return [f"await {generator.locator(step.event.element)}.fill('{generator.escape_string(value)}');"]

    if step.type == FuzzStepType.BACK:
        return ["await page.goBack();"]

    if step.type == FuzzStepType.FORWARD:
        return ["await page.goForward();"]

    if step.type == FuzzStepType.WAIT:
        return [f"await page.waitForTimeout({WAIT_STEP_MS});"]

    if step.type == FuzzStepType.NAVIGATE:
        action = step.custom_action
        if action is not None and action.type == CustomActionType.INVALID_NAVIGATION:
            data = action.data or {}
            url = data.get("url")
            if isinstance(url, str) and url:
                return [f"await page.goto('{generator.escape_string(url)}');"]
            state_id = generator.comment_text(data.get("stateId") or "unknown")
            return [f"// Try direct navigation to {state_id} (implementation specific)"]
        return ["// Navigate (implementation specific)"]

    return ["// Assertion (implementation specific)"]


def fuzz_test_to_playwright(
    test: FuzzTest,
    base_url: Optional[str] = None,
    include_comments: bool = True,
    rapid_fire_delay_ms: Optional[int] = None,
) -> str:
    """Render one fuzz test as a Playwright ``test(...)`` block."""
    settings = get_settings()
    base_url = base_url or settings.base_url
    delay = settings.rapid_fire_delay_ms if rapid_fire_delay_ms is None else rapid_fire_delay_ms
    generator = _lowering(base_url, include_comments)

    lines = []
    if include_comments:
        lines.append("/**")
        lines.append(f" * Fuzz Test: {test.name}")
        lines.append(f" * Strategy: {test.strategy.value}")
        lines.append(f" * Description: {generator.comment_text(test.description)}")
        if test.bug_categories:
            lines.append(f" * May catch: {', '.join(test.bug_categories)}")
        lines.append(" */")

    lines.append(f"test('{generator.escape_string(test.name)}', async ({{ page }}) => {{")
    lines.append(f"  await page.goto('{generator.escape_string(base_url)}');")
    lines.append("")

    for index, step in enumerate(test.steps, start=1):
        if include_comments:
            lines.append(f"  // Step {index}: {generator.comment_text(step.description)}")
        lines.extend(f"  {code}" for code in _step_code(generator, step))
        if step.custom_action is not None and step.custom_action.type == CustomActionType.RAPID_CLICK:
            lines.append(f"  await page.waitForTimeout({delay}); // Rapid fire delay")
        lines.append("")

    lines.append("});")
    return "\n".join(lines)


def fuzz_tests_to_playwright_file(
    spec: GremlinSpec,
    tests: list[FuzzTest],
    options: Optional[FuzzOptions] = None,
    generated_at: Optional[str] = None,
) -> str:
    """Render fuzz tests as one Playwright suite file."""
    options = options or FuzzOptions()
    generator = _lowering(options.base_url, options.include_comments)

    lines = ["import { test, expect } from '@playwright/test';", ""]

    if options.include_comments:
        strategies = list(dict.fromkeys(t.strategy.value for t in tests))
        lines.append("/**")
        lines.append(f" * Auto-generated Fuzz Tests from GremlinSpec: {generator.comment_text(spec.name)}")
        lines.append(f" * Generated at: {generated_at or utc_timestamp()}")
        lines.append(f" * Number of tests: {len(tests)}")
        lines.append(f" * Strategies: {', '.join(strategies)}")
        lines.append(" */")
        lines.append("")

    lines.extend(generator.describe_open(f"{spec.name} - Fuzz Tests"))

    for fuzz_test in tests:
        code = fuzz_test_to_playwright(fuzz_test, options.base_url, options.include_comments)
        lines.extend(f"  {line}" if line else "" for line in code.split("\n"))
        lines.append("")

    lines.append("});")

    logger.info("Rendered fuzz suite", spec=spec.name, tests=len(tests))
    return CodeFormatter(Framework.PLAYWRIGHT).format_code("\n".join(lines))
