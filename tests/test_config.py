"""FlowSearchConfig: defaults, environment, YAML and derived settings."""

import pydantic
import pytest
import yaml

from flowsearch.core.config import FlowSearchConfig, SearchOptions, SearchThresholds


def test_defaults():
    config = FlowSearchConfig()

    assert config.llm_provider == "gemini"
    assert config.llm_model == "gemini-2.5-flash-lite"
    assert config.llm_api_key is None
    assert config.llm_temperature == 0.3
    assert config.min_query_bytes == 3
    assert config.max_query_bytes == 500
    assert config.cache_ttl_seconds == 300
    assert config.thresholds == SearchThresholds()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FLOWSEARCH_LLM_PROVIDER", "ollama")
    monkeypatch.setenv("FLOWSEARCH_LLM_MODEL", "mistral:latest")
    monkeypatch.setenv("FLOWSEARCH_CACHE_TTL_SECONDS", "60")

    config = FlowSearchConfig()

    assert config.llm_provider == "ollama"
    assert config.llm_model == "mistral:latest"
    assert config.cache_ttl_seconds == 60


def test_nested_threshold_from_environment(monkeypatch):
    monkeypatch.setenv("FLOWSEARCH_THRESHOLDS__HIGH_VALUE", "80000")
    monkeypatch.setenv("FLOWSEARCH_THRESHOLDS__AT_RISK_HEALTH_SCORE", "35")

    config = FlowSearchConfig()

    assert config.thresholds.high_value == 80_000
    assert config.thresholds.at_risk_health_score == 35
    assert config.thresholds.large_deal == 100_000


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("FLOWSEARCH_LLM_API_KEY=from-dotenv\n", encoding="utf-8")

    assert FlowSearchConfig().llm_api_key == "from-dotenv"


def test_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "llm_provider": "openai",
                "llm_model": "gpt-4o-mini",
                "max_deals": 25,
                "thresholds": {"stale_days": 14},
            }
        ),
        encoding="utf-8",
    )

    config = FlowSearchConfig.from_yaml(path)

    assert config.llm_provider == "openai"
    assert config.max_deals == 25
    assert config.thresholds.stale_days == 14
    assert config.thresholds.high_value == 50_000


def test_environment_wins_over_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("llm_provider: openai\nllm_model: gpt-4o\n", encoding="utf-8")
    monkeypatch.setenv("FLOWSEARCH_LLM_PROVIDER", "ollama")

    config = FlowSearchConfig.from_yaml(path)

    assert config.llm_provider == "ollama"
    assert config.llm_model == "gpt-4o"


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert FlowSearchConfig.from_yaml(path).llm_provider == "gemini"


def test_yaml_round_trip(tmp_path):
    original = FlowSearchConfig(
        llm_provider="ollama",
        llm_base_url="http://gpu-box:11434",
        thresholds=SearchThresholds(min_reported_score=55),
    )
    path = tmp_path / "saved.yaml"

    original.to_yaml(path)
    loaded = FlowSearchConfig.from_yaml(path)

    assert loaded == original


def test_missing_yaml_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        FlowSearchConfig.from_yaml(tmp_path / "missing.yaml")


def test_find_config_yaml_prefers_working_directory(tmp_path):
    (tmp_path / "config.yaml").write_text("llm_provider: mock\n", encoding="utf-8")

    assert FlowSearchConfig.find_config_yaml() == tmp_path / "config.yaml"
    assert FlowSearchConfig.from_yaml().llm_provider == "mock"


def test_limits():
    limits = FlowSearchConfig(max_deals=10, max_contacts=20, max_events=5).limits

    assert (limits.deals, limits.contacts, limits.events) == (10, 20, 5)


def test_search_options():
    options = FlowSearchConfig(llm_provider="ollama", llm_model="llama3.2").search_options()

    assert options == SearchOptions(provider="ollama", model="llama3.2", temperature=0.3)
    assert options.use_cache is True


@pytest.mark.parametrize(
    "field, value",
    [
        ("llm_temperature", 2.5),
        ("cache_ttl_seconds", 0),
        ("min_query_bytes", 0),
        ("llm_max_retries", -1),
    ],
)
def test_out_of_range_values_are_rejected(field, value):
    with pytest.raises(pydantic.ValidationError):
        FlowSearchConfig(**{field: value})


def test_search_options_validation():
    with pytest.raises(pydantic.ValidationError):
        SearchOptions(temperature=5)
    with pytest.raises(pydantic.ValidationError):
        SearchOptions(max_tokens=0)


def test_repr_hides_api_key():
    config = FlowSearchConfig(llm_api_key="secret-key")

    assert "secret-key" not in repr(config)
