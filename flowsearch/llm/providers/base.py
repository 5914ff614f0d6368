"""Abstract base class for LLM providers."""

from abc import ABC, abstractmethod
import logging
from typing import Any

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from flowsearch.core.exceptions import ModelError, ModelErrorKind
from flowsearch.llm.models import Message, ModelOptions, ModelRequest, ModelResponse, Role

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    A provider turns a ``ModelRequest`` into a ``ModelResponse`` with exactly
    one logical call. Transport retries (connection resets, timeouts) happen
    inside the provider; every failure that survives them is raised as
    ``ModelError``.
    """

    default_model: str = ""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.3,
        timeout: float = 30.0,
        max_retries: int = 2,
        **kwargs: Any,
    ) -> None:
        """
        Initialize LLM provider.

        Args:
            model: Default model name
            api_key: Optional API key
            base_url: Optional custom base URL
            temperature: Default sampling temperature
            timeout: Request timeout in seconds
            max_retries: Transport-level retries per request
            **kwargs: Additional provider-specific arguments
        """
        self.model = model or self.default_model
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries
        self.kwargs = kwargs
        self._client: Any = None

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the provider client."""

    @abstractmethod
    def complete(self, request: ModelRequest) -> ModelResponse:
        """
        Send a completion request.

        Raises:
            ModelError: On configuration, transport, API or response-format failure
        """

    @abstractmethod
    def health_check(self) -> bool:
        """Return True when the provider is reachable and configured."""

    @abstractmethod
    def list_models(self) -> list[str]:
        """List model names offered by the provider."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the provider name."""

    def ask(self, question: str, **options: Any) -> ModelResponse:
        """Single user message, no system prompt."""
        return self.complete(
            ModelRequest(
                messages=[Message(role=Role.USER, content=question)],
                options=ModelOptions(**options),
            )
        )

    def close(self) -> None:
        """Release the underlying client."""
        if self._client is not None and hasattr(self._client, "close"):
            self._client.close()
        self._client = None

    def _resolve_model(self, options: ModelOptions) -> str:
        return options.model or self.model

    def _resolve_temperature(self, options: ModelOptions) -> float:
        return options.temperature if options.temperature is not None else self.temperature


class HTTPLLMProvider(BaseLLMProvider):
    """Base for providers spoken to over plain HTTP with httpx."""

    default_base_url: str = ""

    def __init__(self, model: str, **kwargs: Any) -> None:
        super().__init__(model, **kwargs)
        if not self.base_url:
            self.base_url = self.default_base_url
        self._transport: httpx.BaseTransport | None = kwargs.get("transport")

    def initialize(self) -> None:
        """Initialize the httpx client."""
        if self._client is not None:
            return

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )
        logger.info(
            "%s client initialized (model=%s, url=%s)",
            self.get_provider_name(),
            self.model,
            self.base_url,
        )

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send one HTTP request, retrying transport failures only.

        Raises:
            ModelError: connection_error after retries, api_error on non-2xx
        """
        self.initialize()
        provider = self.get_provider_name()

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.max_retries + 1),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.error("%s connection error: %s", provider, e)
            raise ModelError(
                f"Failed to connect to {provider}: {e}",
                ModelErrorKind.CONNECTION_ERROR,
                {"provider": provider, "reason": type(e).__name__},
            ) from e

        if response.is_success:
            return response

        logger.error("%s API error: %s - %s", provider, response.status_code, response.text[:500])
        raise ModelError(
            f"{provider} API returned status {response.status_code}",
            ModelErrorKind.API_ERROR,
            {"provider": provider, "status": response.status_code, "body": response.text[:2000]},
        )

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ModelError(
                "Failed to decode JSON response",
                ModelErrorKind.PARSE_ERROR,
                {"provider": self.get_provider_name(), "reason": str(e)},
            ) from e

    def __del__(self) -> None:
        """Clean up httpx client."""
        if getattr(self, "_client", None) is not None:
            self._client.close()
