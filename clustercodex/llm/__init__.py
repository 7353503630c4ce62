"""Assistant collaborator and the LLM provider behind it."""

from clustercodex.llm.assistant import AssistantClient, OpenAIAssistant, assistant_from_config
from clustercodex.llm.provider import (
    LLMAuthenticationError,
    LLMError,
    LLMMessage,
    LLMProvider,
    LLMRateLimitError,
    LLMResponse,
    LLMRole,
    LLMTimeoutError,
    OpenAIProvider,
)

__all__ = [
    "AssistantClient",
    "OpenAIAssistant",
    "assistant_from_config",
    "LLMAuthenticationError",
    "LLMError",
    "LLMMessage",
    "LLMProvider",
    "LLMRateLimitError",
    "LLMResponse",
    "LLMRole",
    "LLMTimeoutError",
    "OpenAIProvider",
]
