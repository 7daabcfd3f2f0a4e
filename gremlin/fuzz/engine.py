"""Fuzz engine - distribute a test budget across strategies."""

import math
import time
from typing import Optional

import structlog

from ..spec.models import GremlinSpec, ensure_valid_spec
from .models import FuzzOptions, FuzzTest
from .rng import SeededRandom
from .strategies import STRATEGY_REGISTRY

logger = structlog.get_logger()


def generate_fuzz_tests(spec: GremlinSpec, options: Optional[FuzzOptions] = None) -> list[FuzzTest]:
    """Generate fuzz tests for a spec.

    Each strategy gets ``ceil(num_tests / len(strategies))`` attempts, in
    order, until ``num_tests`` tests exist. Strategies with nothing to work
    on (no input fields, no transitions) contribute no test.

    Args:
        spec: The behavior model to fuzz
        options: Fuzz options (uses defaults if not provided)

    Returns:
        Generated tests, named ``<strategy>_<n>``
    """
    options = options or FuzzOptions()
    ensure_valid_spec(spec)

    seed = options.seed if options.seed is not None else int(time.time() * 1000)
    log = logger.bind(component="fuzz_engine", spec=spec.name, seed=seed)
    if options.seed is None:
        log.info("No fuzz seed given, derived one from the clock")

    if options.num_tests <= 0 or not options.strategies:
        return []

    rng = SeededRandom(seed)
    tests: list[FuzzTest] = []
    per_strategy = math.ceil(options.num_tests / len(options.strategies))

    for strategy in options.strategies:
        build = STRATEGY_REGISTRY[strategy]
        attempts = min(per_strategy, options.num_tests - len(tests))
        produced = 0

        for _ in range(attempts):
            test = build(spec, options, rng, f"{strategy.value}_{produced + 1}")
            if test is not None:
                tests.append(test)
                produced += 1

        log.debug("Strategy finished", strategy=strategy.value, attempts=attempts, produced=produced)
        if len(tests) >= options.num_tests:
            break

    log.info("Generated fuzz tests", tests=len(tests), strategies=[s.value for s in options.strategies])
    return tests
