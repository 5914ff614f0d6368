"""Pydantic models for model requests and responses."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message author roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One role-tagged chat message."""

    role: Role = Field(..., description="Author of the message")
    content: str = Field(..., description="Message text")


class ModelOptions(BaseModel):
    """
    Provider-agnostic options bag.

    ``None`` means "use the provider default". ``provider`` selects the
    provider inside the model client and is never sent over the wire.
    """

    provider: str | None = Field(None, description="Provider name (gemini, ollama, openai)")
    model: str | None = Field(None, description="Model name")
    temperature: float | None = Field(None, ge=0.0, le=2.0)
    top_p: float | None = Field(None, ge=0.0, le=1.0)
    top_k: int | None = Field(None, ge=1)
    max_tokens: int | None = Field(None, ge=1)


class ModelRequest(BaseModel):
    """A single completion request."""

    system_prompt: str | None = Field(None, description="System instruction")
    messages: list[Message] = Field(default_factory=list, description="Ordered conversation")
    options: ModelOptions = Field(default_factory=ModelOptions)


class ModelResponse(BaseModel):
    """A completion reply: raw text plus opaque provider metadata."""

    content: str = Field(..., description="Raw text returned by the model")
    model: str = Field(..., description="Model that produced the reply")
    provider: str = Field(..., description="Provider that served the request")
    metadata: dict[str, Any] = Field(default_factory=dict)
