"""Data models for test generation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..config import get_settings


class Framework(str, Enum):
    """Supported output frameworks."""

    PLAYWRIGHT = "playwright"
    MAESTRO = "maestro"


class GroupBy(str, Enum):
    """How generated tests are grouped."""

    FLOW = "flow"
    TRANSITION = "transition"


class MobilePlatform(str, Enum):
    IOS = "ios"
    ANDROID = "android"


@dataclass
class GeneratorConfig:
    """Configuration for test generation.

    Attributes:
        framework: Target framework
        base_url: URL opened before each Playwright test (settings default)
        app_id: Bundle identifier launched by Maestro flows (settings default)
        include_comments: Whether to emit explanatory comments
        include_screenshots: Emit a visual capture per flow step
        group_by: One test per flow or one test per transition
        timeout_ms: Per-test timeout for Playwright (settings default)
        platform: Mobile platform for Maestro output
        max_depth: Flow extraction depth bound (settings default)
        flow_limit: Number of ranked flows kept (settings default)
        generated_at: Fixed timestamp for header comments
    """

    framework: Framework | str = Framework.PLAYWRIGHT
    base_url: str | None = None
    app_id: str | None = None
    include_comments: bool = True
    include_screenshots: bool = False
    group_by: GroupBy | str = GroupBy.FLOW
    timeout_ms: int | None = None
    platform: MobilePlatform | str = MobilePlatform.IOS
    max_depth: int | None = None
    flow_limit: int | None = None
    generated_at: str | None = None

    def __post_init__(self):
        """Convert string values to enums and fill defaults from settings."""
        if isinstance(self.framework, str):
            self.framework = Framework(self.framework.lower())
        if isinstance(self.group_by, str):
            self.group_by = GroupBy(self.group_by.lower())
        if isinstance(self.platform, str):
            self.platform = MobilePlatform(self.platform.lower())

        settings = get_settings()
        if self.base_url is None:
            self.base_url = settings.base_url
        if self.app_id is None:
            self.app_id = settings.app_id
        if self.timeout_ms is None:
            self.timeout_ms = settings.test_timeout_ms
        if self.max_depth is None:
            self.max_depth = settings.flow_max_depth
        if self.flow_limit is None:
            self.flow_limit = settings.flow_limit

    def validate(self) -> list[str]:
        """Validate the configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.framework == Framework.PLAYWRIGHT and not self.base_url:
            errors.append("base_url is required for Playwright output")
        if self.framework == Framework.MAESTRO and not self.app_id:
            errors.append("app_id is required for Maestro output")
        if self.timeout_ms <= 0:
            errors.append(f"timeout_ms must be positive, got {self.timeout_ms}")
        if self.max_depth <= 0:
            errors.append(f"max_depth must be positive, got {self.max_depth}")
        if self.flow_limit <= 0:
            errors.append(f"flow_limit must be positive, got {self.flow_limit}")

        return errors


@dataclass
class GeneratedTest:
    """A single emitted test and the transitions it exercises."""

    name: str
    code: str
    transitions: list[str] = field(default_factory=list)


@dataclass
class MaestroFlow:
    """One Maestro flow document."""

    name: str
    file_name: str
    yaml: str


@dataclass
class GenerationResult:
    """Result from generating tests for a spec.

    Attributes:
        success: Whether generation succeeded
        code: Primary generated artifact
        files: Every generated file keyed by file name
        framework: Framework the artifacts target
        file_extension: Extension of the primary artifact
        dependencies: Packages needed to run the output
        error: Error message if failed
        metadata: Counts and provenance
    """

    success: bool
    code: str = ""
    files: dict[str, str] = field(default_factory=dict)
    framework: Framework | None = None
    file_extension: str = ".ts"
    dependencies: list[str] = field(default_factory=list)
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "code": self.code,
            "files": dict(self.files),
            "framework": self.framework.value if self.framework else None,
            "file_extension": self.file_extension,
            "dependencies": self.dependencies,
            "error": self.error,
            "metadata": self.metadata,
        }


FILE_EXTENSIONS = {
    Framework.PLAYWRIGHT: ".spec.ts",
    Framework.MAESTRO: ".yaml",
}


FRAMEWORK_DEPENDENCIES = {
    Framework.PLAYWRIGHT: ["@playwright/test"],
    Framework.MAESTRO: ["maestro"],
}
