"""Fuzz/chaos test generation from a GremlinSpec."""

from .corpus import EVIL_STRINGS, describe_evil_string
from .engine import generate_fuzz_tests
from .models import (
    DEFAULT_STRATEGIES,
    CustomActionType,
    CustomFuzzAction,
    ExpectedOutcome,
    FuzzOptions,
    FuzzStep,
    FuzzStepType,
    FuzzStrategy,
    FuzzTest,
)
from .playwright import fuzz_test_to_playwright, fuzz_tests_to_playwright_file
from .rng import SeededRandom
from .strategies import STRATEGY_REGISTRY, common_flow, path_steps

__all__ = [
    "DEFAULT_STRATEGIES",
    "EVIL_STRINGS",
    "STRATEGY_REGISTRY",
    "CustomActionType",
    "CustomFuzzAction",
    "ExpectedOutcome",
    "FuzzOptions",
    "FuzzStep",
    "FuzzStepType",
    "FuzzStrategy",
    "FuzzTest",
    "SeededRandom",
    "common_flow",
    "describe_evil_string",
    "fuzz_test_to_playwright",
    "fuzz_tests_to_playwright_file",
    "generate_fuzz_tests",
    "path_steps",
]
