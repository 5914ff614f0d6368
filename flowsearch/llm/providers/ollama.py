"""Ollama LLM provider for local models."""

import logging
from typing import Any

from flowsearch.core.exceptions import ModelError, ModelErrorKind
from flowsearch.llm.models import ModelOptions, ModelRequest, ModelResponse
from flowsearch.llm.providers.base import HTTPLLMProvider

logger = logging.getLogger(__name__)


class OllamaProvider(HTTPLLMProvider):
    """
    Ollama LLM provider for local models.

    Supports models like mistral, llama3.2, gemma2, etc.
    API: https://github.com/ollama/ollama/blob/main/docs/api.md
    """

    default_base_url = "http://localhost:11434"
    default_model = "llama3.2"

    def complete(self, request: ModelRequest) -> ModelResponse:
        """Generate a chat completion using ``/api/chat``."""
        model = self._resolve_model(request.options)

        payload: dict[str, Any] = {
            "model": model,
            "messages": self._build_messages(request),
            "stream": False,
            "options": self._build_options(request.options),
        }

        response = self._send("POST", "/api/chat", json=payload)
        result = self._json(response)

        try:
            content = result["message"]["content"]
        except (KeyError, TypeError) as e:
            logger.warning("Unexpected Ollama response format: %r", result)
            raise ModelError(
                "Unexpected response format",
                ModelErrorKind.PARSE_ERROR,
                {"provider": "ollama"},
            ) from e

        metadata = {
            "base_url": self.base_url,
            "total_duration_ms": (result.get("total_duration") or 0) / 1_000_000,
            "load_duration_ms": (result.get("load_duration") or 0) / 1_000_000,
            "prompt_eval_count": result.get("prompt_eval_count", 0),
            "eval_count": result.get("eval_count", 0),
        }

        logger.debug(
            "Ollama generation complete: %d tokens, %.2fms",
            metadata["eval_count"] or 0,
            metadata["total_duration_ms"],
        )

        return ModelResponse(content=content, model=model, provider="ollama", metadata=metadata)

    def health_check(self) -> bool:
        """Ollama is healthy when ``/api/tags`` answers 200."""
        try:
            self._send("GET", "/api/tags", timeout=5.0)
        except ModelError as e:
            logger.warning("Ollama health check failed: %s", e)
            return False
        return True

    def list_models(self) -> list[str]:
        """List locally pulled models."""
        result = self._json(self._send("GET", "/api/tags", timeout=5.0))
        try:
            return [model["name"] for model in result["models"]]
        except (KeyError, TypeError) as e:
            raise ModelError(
                "Failed to parse models list",
                ModelErrorKind.PARSE_ERROR,
                {"provider": "ollama"},
            ) from e

    def get_provider_name(self) -> str:
        """Get provider name."""
        return "ollama"

    def _build_messages(self, request: ModelRequest) -> list[dict[str, str]]:
        messages = []
        if request.system_prompt is not None:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend(
            {"role": message.role.value, "content": message.content} for message in request.messages
        )
        return messages

    def _build_options(self, options: ModelOptions) -> dict[str, Any]:
        built = {
            "temperature": self._resolve_temperature(options),
            "top_p": options.top_p,
            "top_k": options.top_k,
            "num_predict": options.max_tokens,
        }
        return {key: value for key, value in built.items() if value is not None}
