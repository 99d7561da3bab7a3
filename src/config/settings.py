# src/config/settings.py
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for directory layout, batch timing, report sync,
summary generation and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Directories ===
    documents_path: Path = Path("~/Documents")
    input_dir: Path | None = None
    results_dir: Path | None = None
    archive_dir: Path | None = None
    tracking_filename: str = "sf_tracking.json"

    # === File naming ===
    anchor_suffix: str = ".bin"
    member_suffix: str = ".txt"
    result_suffix: str = "_result"

    # === Batch assembly ===
    member_matching: Literal["loose", "strict"] = "loose"
    completion_timeout_seconds: float = 10.0
    reconcile_interval_seconds: float = 30.0
    watch_use_polling: bool = False

    # === Report sync (Google Sheets) ===
    sheet_id: str = ""
    sheet_name: str = ""
    service_account_path: str = ""

    # === Summary generation ===
    summary_backend: Literal["rule", "llm"] = "rule"
    summary_timeout_seconds: float = 15.0
    llm_provider: str = "anthropic"
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 60
    llm_temperature: float = 0.3
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "completion_timeout_seconds",
        "reconcile_interval_seconds",
        "summary_timeout_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts and intervals must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        for name in ("anchor_suffix", "member_suffix"):
            if not getattr(self, name).startswith("."):
                errors.append(f"{name.upper()} must start with '.'")

        if self.anchor_suffix.lower() == self.member_suffix.lower():
            errors.append("ANCHOR_SUFFIX and MEMBER_SUFFIX must differ")

        if self.summary_backend == "llm" and not self.llm_provider:
            errors.append("SUMMARY_BACKEND=llm requires LLM_PROVIDER")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def documents_root(self) -> Path:
        return self.documents_path.expanduser()

    @property
    def intake_path(self) -> Path:
        """Directory watched for incoming anchor and member files."""
        return (self.input_dir or self.documents_root / "input").expanduser()

    @property
    def output_path(self) -> Path:
        """Directory receiving merged results and the tracking store."""
        return (self.results_dir or self.documents_root / "results").expanduser()

    @property
    def archive_path(self) -> Path:
        """Directory receiving relocated anchor files."""
        return (self.archive_dir or self.documents_root / "bin").expanduser()

    @property
    def tracking_path(self) -> Path:
        return self.output_path / self.tracking_filename

    @property
    def sheets_enabled(self) -> bool:
        return bool(self.sheet_id and self.sheet_name)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
