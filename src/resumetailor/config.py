"""Configuration loading and management."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from resumetailor.exceptions import ConfigError


class GatewaySettings(BaseModel):
    """Completion gateway resilience and caching knobs."""

    timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=2, ge=0)
    backoff_multiplier: float = Field(default=1.0, ge=0)
    backoff_min_seconds: float = Field(default=1.0, ge=0)
    backoff_max_seconds: float = Field(default=8.0, ge=0)
    cache_backend: Literal["memory", "file", "none"] = "memory"
    cache_ttl_seconds: int = Field(default=3600, ge=0)
    cache_max_entries: int = Field(default=256, ge=1)
    min_prompt_length: int = Field(default=10, ge=0)
    min_response_length: int = Field(default=10, ge=0)
    default_model: str = "gemini-1.5-flash"
    max_tokens: int = Field(default=4096, gt=0)


class TailoringSettings(BaseModel):
    """Tailoring loop parameters."""

    max_attempts: int = Field(default=3, ge=1)
    early_stop_score: int = Field(default=170, ge=0, le=200)
    significance_threshold: float = Field(default=0.05, ge=0, le=1)
    min_result_length: int = Field(default=50, ge=0)
    default_mode: str = "personalized"
    analyze_job_description: bool = True
    tailoring_model: str = "gemini-1.5-flash"
    scoring_model: str = "gemini-1.5-flash"
    golden_rules_model: str = "gemini-1.5-flash"
    jd_model: str = "gemini-1.5-flash"
    high_value_sections: list[str] = Field(
        default_factory=lambda: ["EXPERIENCE", "SKILLS", "SUMMARY", "EDUCATION"]
    )

    @field_validator("high_value_sections")
    @classmethod
    def normalize_section_names(cls, v: list[str]) -> list[str]:
        return [name.strip().upper() for name in v if name.strip()]


class PollingSettings(BaseModel):
    """Progress polling cadence for callers waiting on a job."""

    interval_seconds: float = Field(default=5.0, ge=0)
    max_polls: int = Field(default=30, ge=1)


class Config(BaseModel):
    """ResumeTailor configuration model."""

    paths: dict[str, str] = Field(default_factory=dict)
    models: dict[str, dict[str, str]] = Field(default_factory=dict)
    providers: dict[str, dict[str, Any]] = Field(default_factory=dict)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    tailoring: TailoringSettings = Field(default_factory=TailoringSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    logging: dict[str, Any] = Field(default_factory=dict)


def load_config(config_path: str | Path = "./config.yaml") -> Config:
    """Load configuration from YAML file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return Config(**data)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e
    except Exception as e:
        raise ConfigError(f"Error loading configuration: {e}") from e
