"""LLM layer for FlowSearch - request models, tag scanner, providers, client."""

from flowsearch.llm.factory import (
    LLM_PROVIDER_REGISTRY,
    LLMClient,
    LLMProviderFactory,
    ModelClient,
    register_llm_provider,
)
from flowsearch.llm.models import Message, ModelOptions, ModelRequest, ModelResponse, Role
from flowsearch.llm.parser import (
    extract_all,
    extract_tag,
    parse_all_tags,
    parse_code_blocks,
    parse_tags,
)
from flowsearch.llm.providers import (
    BaseLLMProvider,
    GeminiProvider,
    MockLLMProvider,
    OllamaProvider,
    OpenAIProvider,
)

__all__ = [
    "LLM_PROVIDER_REGISTRY",
    "BaseLLMProvider",
    "GeminiProvider",
    "LLMClient",
    "LLMProviderFactory",
    "Message",
    "MockLLMProvider",
    "ModelClient",
    "ModelOptions",
    "ModelRequest",
    "ModelResponse",
    "OllamaProvider",
    "OpenAIProvider",
    "Role",
    "extract_all",
    "extract_tag",
    "parse_all_tags",
    "parse_code_blocks",
    "parse_tags",
    "register_llm_provider",
]
