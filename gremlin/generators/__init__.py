"""Test generators.

Lower a GremlinSpec into executable test artifacts:
- Playwright (TypeScript) suites for web apps
- Maestro YAML flows for mobile apps
"""

from .base import BaseGenerator
from .engine import GENERATOR_REGISTRY, GenerationEngine, generate_tests
from .formatters import CodeFormatter
from .locators import Locator, LocatorStrategy, resolve_locator
from .maestro import MaestroGenerator, yaml_quote
from .models import (
    FILE_EXTENSIONS,
    FRAMEWORK_DEPENDENCIES,
    Framework,
    GeneratedTest,
    GenerationResult,
    GeneratorConfig,
    GroupBy,
    MaestroFlow,
    MobilePlatform,
)
from .playwright import PlaywrightGenerator

__all__ = [
    "BaseGenerator",
    "CodeFormatter",
    "FILE_EXTENSIONS",
    "FRAMEWORK_DEPENDENCIES",
    "Framework",
    "GENERATOR_REGISTRY",
    "GeneratedTest",
    "GenerationEngine",
    "GenerationResult",
    "GeneratorConfig",
    "GroupBy",
    "Locator",
    "LocatorStrategy",
    "MaestroFlow",
    "MaestroGenerator",
    "MobilePlatform",
    "PlaywrightGenerator",
    "generate_tests",
    "resolve_locator",
    "yaml_quote",
]
