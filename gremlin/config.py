"""Configuration management for Gremlin test generation."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GREMLIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    log_level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_json: bool = Field(False, description="Render logs as JSON instead of console output")

    # Generation targets
    base_url: str = Field("http://localhost:3000", description="Base URL used by generated Playwright tests")
    app_id: str = Field("com.example.app", description="Application identifier used by generated Maestro flows")
    test_timeout_ms: int = Field(30000, description="Per-test timeout written into generated Playwright tests")

    # Flow extraction
    flow_max_depth: int = Field(10, description="Maximum number of transitions in an extracted flow")
    flow_limit: int = Field(10, description="Number of ranked flows kept after extraction")

    # Fuzzing
    fuzz_num_tests: int = Field(10, description="Default number of fuzz tests to generate")
    fuzz_max_steps: int = Field(20, description="Default maximum steps per fuzz test")
    rapid_fire_delay_ms: int = Field(50, description="Delay written after each rapid-fire step")

    # Session codec
    compression_level: int = Field(9, ge=0, le=9, description="Gzip level for compressed sessions")


@lru_cache
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
