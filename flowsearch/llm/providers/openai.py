"""OpenAI LLM provider."""

import logging
from typing import Any

from flowsearch.core.exceptions import ModelError, ModelErrorKind
from flowsearch.llm.models import ModelRequest, ModelResponse
from flowsearch.llm.providers.base import BaseLLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """OpenAI LLM provider (GPT-4o, GPT-4.1, etc.) and OpenAI-compatible servers."""

    default_model = "gpt-4o-mini"

    def initialize(self) -> None:
        """Initialize OpenAI client."""
        if self._client is not None:
            return

        try:
            import openai
        except ImportError as e:
            msg = "OpenAI package not installed. Run: pip install openai"
            raise ImportError(msg) from e

        if not self.api_key:
            raise ModelError(
                "OpenAI API key not configured",
                ModelErrorKind.CONFIG_ERROR,
                {"provider": "openai"},
            )

        self._client = openai.OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )
        logger.info("OpenAI client initialized (model=%s)", self.model)

    def complete(self, request: ModelRequest) -> ModelResponse:
        """Generate completion using the chat completions API."""
        import openai

        self.initialize()
        model = self._resolve_model(request.options)

        messages = []
        if request.system_prompt is not None:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend(
            {"role": message.role.value, "content": message.content} for message in request.messages
        )

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": self._resolve_temperature(request.options),
        }
        if request.options.top_p is not None:
            kwargs["top_p"] = request.options.top_p
        if request.options.max_tokens is not None:
            kwargs["max_tokens"] = request.options.max_tokens

        try:
            response = self._client.chat.completions.create(**kwargs)
        except openai.APIConnectionError as e:
            logger.error("OpenAI connection error: %s", e)
            raise ModelError(
                "Failed to connect to OpenAI",
                ModelErrorKind.CONNECTION_ERROR,
                {"provider": "openai", "reason": type(e).__name__},
            ) from e
        except openai.APIStatusError as e:
            logger.error("OpenAI API error: %s", e)
            raise ModelError(
                f"OpenAI API returned status {e.status_code}",
                ModelErrorKind.API_ERROR,
                {"provider": "openai", "status": e.status_code},
            ) from e

        try:
            content = response.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise ModelError(
                "Unexpected response format",
                ModelErrorKind.PARSE_ERROR,
                {"provider": "openai"},
            ) from e

        metadata: dict[str, Any] = {"finish_reason": response.choices[0].finish_reason}
        if response.usage:
            metadata.update(
                {
                    "tokens_prompt": response.usage.prompt_tokens,
                    "tokens_completion": response.usage.completion_tokens,
                    "tokens_total": response.usage.total_tokens,
                }
            )

        return ModelResponse(content=content, model=model, provider="openai", metadata=metadata)

    def health_check(self) -> bool:
        try:
            self.list_models()
        except ModelError as e:
            logger.warning("OpenAI health check failed: %s", e)
            return False
        return True

    def list_models(self) -> list[str]:
        import openai

        self.initialize()
        try:
            return [model.id for model in self._client.models.list()]
        except openai.OpenAIError as e:
            raise ModelError(
                "Failed to list OpenAI models",
                ModelErrorKind.API_ERROR,
                {"provider": "openai", "reason": type(e).__name__},
            ) from e

    def get_provider_name(self) -> str:
        """Get provider name."""
        return "openai"
