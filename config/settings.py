"""Configuration settings loaded from .env file."""

from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

from config.exceptions import InvalidConfigError
from models.enums import AnalysisDimension


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    The grace delay controls how long a terminal progress state stays
    visible before it is cleared. Batch concurrency only applies to the
    in-process backend; remote backends schedule units themselves.
    """

    # LLM model used by the in-process SDK analyzer
    llm_model_analysis: str = "claude-sonnet-4-5"

    # Dimensions analyzed when the open novel does not choose its own
    default_dimensions: list[str] = [d.value for d in AnalysisDimension]

    # Orchestration
    grace_delay_seconds: float = 3.0
    reject_busy_starts: bool = False

    # Local backend
    batch_concurrency: int = 3

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("grace_delay_seconds")
    @classmethod
    def validate_grace_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("grace_delay_seconds must be >= 0")
        return v

    @field_validator("batch_concurrency")
    @classmethod
    def validate_batch_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("batch_concurrency must be >= 1")
        return v

    @field_validator("default_dimensions")
    @classmethod
    def validate_dimensions(cls, v: list[str]) -> list[str]:
        known = {d.value for d in AnalysisDimension}
        unknown = [d for d in v if d not in known]
        if unknown:
            raise ValueError(f"Unknown analysis dimension(s): {', '.join(unknown)}")
        return v

    @field_validator("log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        InvalidConfigError: If the environment or .env file holds invalid values.
    """
    global _settings_instance
    if _settings_instance is None:
        try:
            _settings_instance = Settings()
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise InvalidConfigError(f"Invalid configuration: {e.error_count()} error(s)", {"fields": fields}) from e
    return _settings_instance
