"""Google Gemini LLM provider (REST, generateContent)."""

import logging
from typing import Any

from flowsearch.core.exceptions import ModelError, ModelErrorKind
from flowsearch.llm.models import ModelOptions, ModelRequest, ModelResponse, Role
from flowsearch.llm.providers.base import HTTPLLMProvider

logger = logging.getLogger(__name__)


class GeminiProvider(HTTPLLMProvider):
    """
    Gemini provider speaking the ``generateContent`` REST API.

    Usage:
        provider = GeminiProvider(model="gemini-2.5-flash-lite", api_key="...")
        response = provider.ask("Summarize this deal")
    """

    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    default_model = "gemini-2.5-flash-lite"

    _ROLES = {Role.USER: "user", Role.ASSISTANT: "model"}

    def complete(self, request: ModelRequest) -> ModelResponse:
        """Generate a completion using ``models/{model}:generateContent``."""
        self._require_api_key()
        model = self._resolve_model(request.options)

        body: dict[str, Any] = {"contents": self._build_contents(request)}
        if request.system_prompt is not None:
            body["systemInstruction"] = {"parts": [{"text": request.system_prompt}]}
        generation_config = self._build_generation_config(request.options)
        if generation_config:
            body["generationConfig"] = generation_config

        response = self._send(
            "POST",
            f"/models/{model}:generateContent",
            params={"key": self.api_key},
            json=body,
        )
        result = self._json(response)

        try:
            candidate = result["candidates"][0]
            content = "".join(part.get("text", "") for part in candidate["content"]["parts"])
        except (KeyError, IndexError, TypeError) as e:
            logger.warning("Unexpected Gemini response format: %r", result)
            raise ModelError(
                "Unexpected response format",
                ModelErrorKind.PARSE_ERROR,
                {"provider": "gemini"},
            ) from e

        usage = result.get("usageMetadata") or {}
        metadata = {
            "finish_reason": candidate.get("finishReason"),
            "tokens_prompt": usage.get("promptTokenCount", 0),
            "tokens_completion": usage.get("candidatesTokenCount", 0),
            "tokens_total": usage.get("totalTokenCount", 0),
        }

        logger.debug(
            "Gemini generation completed: %d prompt + %d completion tokens",
            metadata["tokens_prompt"],
            metadata["tokens_completion"],
        )

        return ModelResponse(content=content, model=model, provider="gemini", metadata=metadata)

    def health_check(self) -> bool:
        """Gemini is healthy when the model list can be fetched."""
        try:
            self.list_models()
        except ModelError as e:
            logger.warning("Gemini health check failed: %s", e)
            return False
        return True

    def list_models(self) -> list[str]:
        """List Gemini generation models."""
        self._require_api_key()
        result = self._json(self._send("GET", "/models", params={"key": self.api_key}, timeout=5.0))
        try:
            names = [model["name"] for model in result["models"]]
        except (KeyError, TypeError) as e:
            raise ModelError(
                "Failed to parse models list",
                ModelErrorKind.PARSE_ERROR,
                {"provider": "gemini"},
            ) from e
        return [name.removeprefix("models/") for name in names if "gemini" in name]

    def get_provider_name(self) -> str:
        """Get provider name."""
        return "gemini"

    def _require_api_key(self) -> None:
        if not self.api_key:
            raise ModelError(
                "Gemini API key not configured",
                ModelErrorKind.CONFIG_ERROR,
                {"provider": "gemini"},
            )

    def _build_contents(self, request: ModelRequest) -> list[dict[str, Any]]:
        # Gemini has no system role inside contents; system text goes to systemInstruction.
        return [
            {"role": self._ROLES[message.role], "parts": [{"text": message.content}]}
            for message in request.messages
            if message.role in self._ROLES
        ]

    def _build_generation_config(self, options: ModelOptions) -> dict[str, Any]:
        config = {
            "temperature": self._resolve_temperature(options),
            "topP": options.top_p,
            "topK": options.top_k,
            "maxOutputTokens": options.max_tokens,
        }
        return {key: value for key, value in config.items() if value is not None}
