"""Generation Engine - main entry point for test generation."""

from typing import Optional

import structlog

from ..spec.models import GremlinSpec
from ..utils.logging import LogContext
from .base import BaseGenerator
from .maestro import MaestroGenerator
from .models import (
    FILE_EXTENSIONS,
    FRAMEWORK_DEPENDENCIES,
    Framework,
    GenerationResult,
    GeneratorConfig,
)
from .playwright import PlaywrightGenerator

logger = structlog.get_logger()


# Generator registry mapping framework to generator class
GENERATOR_REGISTRY: dict[Framework, type[BaseGenerator]] = {
    Framework.PLAYWRIGHT: PlaywrightGenerator,
    Framework.MAESTRO: MaestroGenerator,
}


class GenerationEngine:
    """Orchestrates test generation for a spec.

    This class:
    1. Validates the generator configuration
    2. Selects the generator for the framework
    3. Generates the primary artifact and every file
    4. Wraps failures into a result instead of raising

    Example:
        engine = GenerationEngine()

        result = engine.generate(
            spec,
            GeneratorConfig(framework="maestro", app_id="com.shop.app"),
        )

        if result.success:
            for name, content in result.files.items():
                print(name, len(content))
    """

    def __init__(self):
        """Initialize the generation engine."""
        self.log = logger.bind(component="generation_engine")

    def generate(
        self,
        spec: GremlinSpec,
        config: Optional[GeneratorConfig] = None,
    ) -> GenerationResult:
        """Generate tests for a spec.

        Args:
            spec: The behavior model to lower into tests
            config: Generator configuration (uses defaults if not provided)

        Returns:
            GenerationResult with generated code or error
        """
        config = config or GeneratorConfig()

        errors = config.validate()
        if errors:
            return GenerationResult(success=False, framework=config.framework, error="; ".join(errors))

        generator_class = GENERATOR_REGISTRY.get(config.framework)
        if not generator_class:
            return GenerationResult(
                success=False,
                framework=config.framework,
                error=f"No generator available for {config.framework.value}",
            )

        try:
            generator = generator_class(config)
            with LogContext(spec_name=spec.name, framework=config.framework.value):
                code = generator.generate(spec)
                files = generator.generate_files(spec)

            self.log.info(
                "Generation successful",
                framework=config.framework.value,
                spec=spec.name,
                files=len(files),
            )

            return GenerationResult(
                success=True,
                code=code,
                files=files,
                framework=config.framework,
                file_extension=FILE_EXTENSIONS.get(config.framework, ".txt"),
                dependencies=FRAMEWORK_DEPENDENCIES.get(config.framework, []),
                metadata={
                    "spec_name": spec.name,
                    "group_by": config.group_by.value,
                    "states_count": len(spec.states),
                    "transitions_count": len(spec.transitions),
                    "files_count": len(files),
                },
            )

        except Exception as e:
            self.log.error("Generation failed", framework=config.framework.value, error=str(e))
            return GenerationResult(
                success=False,
                framework=config.framework,
                error=str(e),
            )

    def get_supported_frameworks(self) -> list[str]:
        return [framework.value for framework in GENERATOR_REGISTRY]


# Convenience function for quick generation
def generate_tests(
    spec: GremlinSpec,
    framework: str = "playwright",
    **config_kwargs,
) -> GenerationResult:
    """Quick generation function.

    Args:
        spec: The behavior model
        framework: Target framework
        **config_kwargs: Additional GeneratorConfig options

    Returns:
        GenerationResult
    """
    engine = GenerationEngine()
    config = GeneratorConfig(framework=framework, **config_kwargs)
    return engine.generate(spec, config)
