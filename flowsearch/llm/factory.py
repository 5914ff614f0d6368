"""
LLM provider factory and the model client used by the search pipeline.

Architecture:
- Provider Registry: name -> provider class, easy to extend
- LLMProviderFactory: build providers from config or explicit arguments
- LLMClient: per-request provider selection with one cached provider per name
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from flowsearch.core.exceptions import ConfigurationError, ModelError, ModelErrorKind

if TYPE_CHECKING:
    from flowsearch.core.config import FlowSearchConfig
    from flowsearch.llm.models import ModelRequest, ModelResponse
    from flowsearch.llm.providers.base import BaseLLMProvider

logger = logging.getLogger(__name__)


LLM_PROVIDER_REGISTRY: dict[str, type[BaseLLMProvider]] = {}

_KEYED_PROVIDERS = {"gemini", "openai"}


def register_llm_provider(name: str, provider_class: type[BaseLLMProvider]) -> None:
    """
    Register a new LLM provider.

    Args:
        name: Provider name (gemini, ollama, openai)
        provider_class: Provider class
    """
    LLM_PROVIDER_REGISTRY[name.lower()] = provider_class
    logger.debug("Registered LLM provider: %s", name)


_builtins_loaded = False


def _lazy_load_providers() -> None:
    """Register built-in providers on first use; explicit registrations win."""
    global _builtins_loaded
    if _builtins_loaded:
        return

    from flowsearch.llm.providers.gemini import GeminiProvider
    from flowsearch.llm.providers.mock_provider import MockLLMProvider
    from flowsearch.llm.providers.ollama import OllamaProvider
    from flowsearch.llm.providers.openai import OpenAIProvider

    built_in: dict[str, type[BaseLLMProvider]] = {
        "gemini": GeminiProvider,
        "ollama": OllamaProvider,
        "openai": OpenAIProvider,
        "mock": MockLLMProvider,
    }
    for name, provider_class in built_in.items():
        if name not in LLM_PROVIDER_REGISTRY:
            register_llm_provider(name, provider_class)
    _builtins_loaded = True


@runtime_checkable
class ModelClient(Protocol):
    """Stateless request/response boundary to a text-completion service."""

    def complete(self, request: ModelRequest) -> ModelResponse:
        """
        Run one completion.

        Raises:
            ModelError: For any failure (config, connection, API, response format)
        """
        ...


class LLMProviderFactory:
    """Factory for creating LLM providers from the registry."""

    @staticmethod
    def create_from_config(
        config: FlowSearchConfig,
        provider: str | None = None,
    ) -> BaseLLMProvider:
        """
        Create an LLM provider from configuration.

        Args:
            config: FlowSearchConfig with LLM settings
            provider: Provider name overriding ``config.llm_provider``

        Raises:
            ConfigurationError: If provider is unknown or its API key is missing
        """
        provider_name = (provider or config.llm_provider).lower()

        if provider_name in _KEYED_PROVIDERS and not config.llm_api_key:
            raise ConfigurationError(
                f"Provider '{provider_name}' requires llm_api_key. "
                f"Set it in config.yaml or via FLOWSEARCH_LLM_API_KEY env variable"
            )

        # The configured model only applies to the configured provider.
        model = config.llm_model if provider_name == config.llm_provider.lower() else ""

        created = LLMProviderFactory.create(
            provider=provider_name,
            model=model,
            api_key=config.llm_api_key,
            base_url=config.llm_base_url if provider_name == config.llm_provider.lower() else None,
            temperature=config.llm_temperature,
            timeout=config.llm_timeout,
            max_retries=config.llm_max_retries,
        )

        logger.info(
            "Created LLM provider: %s (model=%s, temperature=%s)",
            provider_name,
            created.model or "<per request>",
            config.llm_temperature,
        )
        return created

    @staticmethod
    def create(
        provider: str,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.3,
        **kwargs: Any,
    ) -> BaseLLMProvider:
        """
        Create LLM provider directly.

        Raises:
            ConfigurationError: If provider is unknown
        """
        _lazy_load_providers()

        provider_name = provider.lower()
        if provider_name not in LLM_PROVIDER_REGISTRY:
            available = ", ".join(sorted(LLM_PROVIDER_REGISTRY))
            raise ConfigurationError(
                f"Unknown LLM provider: {provider_name}. Available providers: {available}"
            )

        return LLM_PROVIDER_REGISTRY[provider_name](
            model=model,
            api_key=api_key,
            base_url=base_url,
            temperature=temperature,
            **kwargs,
        )


class LLMClient:
    """
    Model client that routes each request to a provider.

    The provider comes from ``request.options.provider`` or the configured
    default. One provider instance is created per name and reused.

    Usage:
        >>> client = LLMClient(config)
        >>> response = client.complete(request)
    """

    def __init__(
        self,
        config: FlowSearchConfig,
        providers: dict[str, BaseLLMProvider] | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: FlowSearchConfig with LLM settings
            providers: Pre-built providers by name (tests, custom providers)
        """
        self.config = config
        self._providers: dict[str, BaseLLMProvider] = {
            name.lower(): provider for name, provider in (providers or {}).items()
        }
        self._lock = Lock()

    def provider(self, name: str | None = None) -> BaseLLMProvider:
        """
        Get (or lazily create) a provider.

        Raises:
            ModelError: config_error when the provider cannot be created
        """
        provider_name = (name or self.config.llm_provider).lower()

        with self._lock:
            if provider_name not in self._providers:
                try:
                    self._providers[provider_name] = LLMProviderFactory.create_from_config(
                        self.config, provider=provider_name
                    )
                except ConfigurationError as e:
                    raise ModelError(
                        str(e),
                        ModelErrorKind.CONFIG_ERROR,
                        {"provider": provider_name},
                    ) from e
            return self._providers[provider_name]

    def complete(self, request: ModelRequest) -> ModelResponse:
        """Run one completion on the selected provider."""
        provider = self.provider(request.options.provider)
        logger.info(
            "LLM request to %s: %d messages",
            provider.get_provider_name(),
            len(request.messages),
        )
        try:
            return provider.complete(request)
        except ModelError:
            raise
        except Exception as e:
            logger.exception("Unexpected %s provider failure", provider.get_provider_name())
            raise ModelError(
                f"Unexpected provider failure: {type(e).__name__}",
                ModelErrorKind.API_ERROR,
                {"provider": provider.get_provider_name()},
            ) from e

    def health_check(self, provider: str | None = None) -> bool:
        try:
            return self.provider(provider).health_check()
        except ModelError as e:
            logger.warning(
                "Health check failed for %s: %s", provider or self.config.llm_provider, e
            )
            return False

    def list_models(self, provider: str | None = None) -> list[str]:
        return self.provider(provider).list_models()

    def close(self) -> None:
        """Close every provider created by this client."""
        with self._lock:
            for provider in self._providers.values():
                provider.close()
            self._providers.clear()

    def __repr__(self) -> str:
        return f"LLMClient(default={self.config.llm_provider!r}, loaded={sorted(self._providers)})"
