"""Configuration management for FlowSearch."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml


class SerializationLimits(BaseModel):
    """Per-type caps on how many records enter a prompt."""

    deals: int = Field(default=100, ge=0)
    contacts: int = Field(default=100, ge=0)
    events: int = Field(default=50, ge=0)


class SearchOptions(BaseModel):
    """Per-request search options. Model settings pass through to the model client."""

    use_cache: bool = True
    provider: str | None = None
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)


class SearchThresholds(BaseModel):
    """
    Qualitative vocabulary shared by the serializer and the prompt.

    The serializer derives ``value_band`` and ``risk_band`` from these numbers
    and the system prompt explains the same terms with the same numbers, so the
    model reads bands that agree with its instructions.
    """

    high_value: int = Field(default=50_000, ge=0, description="'high value' deal floor (exclusive)")
    large_deal: int = Field(default=100_000, ge=0, description="'large deal' floor (exclusive)")
    small_deal: int = Field(default=10_000, ge=0, description="'small deal' ceiling (exclusive)")
    at_risk_churn: int = Field(
        default=60, ge=0, le=100, description="churn_risk above this is at risk"
    )
    at_risk_probability: int = Field(
        default=30, ge=0, le=100, description="deal probability below this is at risk"
    )
    at_risk_health_score: int = Field(
        default=40, ge=0, le=100, description="health_score below this is a risk factor"
    )
    hot_probability: int = Field(
        default=70, ge=0, le=100, description="deal probability above this is hot"
    )
    hot_health_score: int = Field(
        default=80, ge=0, le=100, description="health_score above this is hot"
    )
    stale_days: int = Field(default=30, ge=1, description="days without activity before stale")
    soon_days: int = Field(default=7, ge=1, description="window for 'soon'")
    recent_days: int = Field(default=7, ge=1, description="window for 'recently'")
    min_reported_score: int = Field(
        default=40, ge=0, le=100, description="model is asked to omit matches below this"
    )


class FlowSearchConfig(BaseSettings):
    """
    Configuration for FlowSearch.

    Can be loaded from:
    - Environment variables (prefix: FLOWSEARCH_)
    - YAML file
    - Direct initialization

    Example:
        >>> config = FlowSearchConfig(llm_provider="ollama", llm_model="mistral:latest")
        >>> config = FlowSearchConfig.from_yaml("config.yaml")
        >>> config = FlowSearchConfig()
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOWSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    llm_provider: str = Field(
        default="gemini",
        description="LLM provider used for matching (gemini, ollama, openai)",
    )
    llm_model: str = Field(
        default="gemini-2.5-flash-lite",
        description="Default model name for the provider",
    )
    llm_api_key: str | None = Field(
        default=None,
        description="API key for the LLM provider (required for Gemini/OpenAI)",
    )
    llm_base_url: str | None = Field(
        default=None,
        description="Provider base URL override (Ollama: http://localhost:11434)",
    )
    llm_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    llm_timeout: float = Field(
        default=30.0,
        ge=1,
        description="Model request timeout in seconds",
    )
    llm_max_retries: int = Field(
        default=2,
        ge=0,
        description="Transport-level retries inside providers",
    )

    min_query_bytes: int = Field(default=3, ge=1, description="Shortest accepted query")
    max_query_bytes: int = Field(default=500, ge=1, description="Longest accepted query")

    max_deals: int = Field(default=100, ge=0, description="Deals included in a prompt")
    max_contacts: int = Field(default=100, ge=0, description="Contacts included in a prompt")
    max_events: int = Field(default=50, ge=0, description="Events included in a prompt")
    text_field_max_bytes: int = Field(
        default=200,
        ge=1,
        description="Byte budget for description/notes before truncation",
    )

    cache_ttl_seconds: float = Field(default=300.0, gt=0, description="Search cache TTL")
    cache_sweep_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval of the background expiry sweep",
    )
    cache_max_entries: int = Field(default=10_000, ge=1, description="Cache capacity")

    max_response_chars: int = Field(
        default=200_000,
        ge=1,
        description="Model replies longer than this are rejected by the parser",
    )

    thresholds: SearchThresholds = Field(default_factory=SearchThresholds)

    @property
    def limits(self) -> SerializationLimits:
        """Per-type caps for the serializer."""
        return SerializationLimits(
            deals=self.max_deals,
            contacts=self.max_contacts,
            events=self.max_events,
        )

    def search_options(self) -> SearchOptions:
        """Default per-request options derived from the LLM settings."""
        return SearchOptions(
            provider=self.llm_provider,
            model=self.llm_model,
            temperature=self.llm_temperature,
        )

    @classmethod
    def find_config_yaml(cls) -> Path | None:
        """
        Search for config.yaml in standard locations.

        Search order:
        1. Current working directory
        2. Project root (parent of flowsearch package)
        3. ~/.flowsearch/config.yaml

        Returns:
            Path to config.yaml if found, None otherwise
        """
        search_paths = [
            Path.cwd() / "config.yaml",
            Path(__file__).parent.parent.parent / "config.yaml",
            Path.home() / ".flowsearch" / "config.yaml",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> FlowSearchConfig:
        """
        Load configuration from YAML file.

        Keys that are also set as FLOWSEARCH_* environment variables are
        skipped so the environment wins.

        Args:
            path: Path to YAML configuration file. If None, searches standard locations.

        Returns:
            FlowSearchConfig instance

        Raises:
            FileNotFoundError: If no config file can be found
        """
        if path is None:
            path = cls.find_config_yaml()
            if path is None:
                raise FileNotFoundError(
                    "Config file not found. Searched:\n"
                    "  1. ./config.yaml\n"
                    "  2. <project_root>/config.yaml\n"
                    "  3. ~/.flowsearch/config.yaml"
                )
        else:
            path = Path(path)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        result_data = {}
        for key, value in yaml_data.items():
            if f"FLOWSEARCH_{key.upper()}" in os.environ:
                continue
            result_data[key] = value

        return cls(**result_data)

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
            )

    def __repr__(self) -> str:
        return (
            f"FlowSearchConfig(llm_provider={self.llm_provider!r}, "
            f"llm_model={self.llm_model!r}, cache_ttl_seconds={self.cache_ttl_seconds})"
        )
