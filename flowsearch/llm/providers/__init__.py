"""LLM providers for FlowSearch."""

from flowsearch.llm.providers.base import BaseLLMProvider, HTTPLLMProvider
from flowsearch.llm.providers.gemini import GeminiProvider
from flowsearch.llm.providers.mock_provider import MockLLMProvider
from flowsearch.llm.providers.ollama import OllamaProvider
from flowsearch.llm.providers.openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "GeminiProvider",
    "HTTPLLMProvider",
    "MockLLMProvider",
    "OllamaProvider",
    "OpenAIProvider",
]
