"""Assistant collaborator used by the plan generator.

The assistant takes one text prompt and returns a response whose text may be
nested anywhere in its envelope. It enforces no schema; validating what comes
back is the plan generator's job.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from clustercodex.config import Config
from clustercodex.llm.provider import LLMMessage, LLMProvider, LLMRole, OpenAIProvider

SYSTEM_PROMPT = "You are a Kubernetes incident assistant. Reply with a single JSON object and nothing else."


class AssistantClient(ABC):
    """Single-prompt assistant."""

    @abstractmethod
    async def run(self, prompt: str) -> Any:
        """Submit a prompt and return the raw response envelope."""


class OpenAIAssistant(AssistantClient):
    """Assistant backed by a chat-completion provider.

    The blocking provider call runs in a worker thread; the returned
    :class:`LLMResponse` carries the text under ``content``.
    """

    def __init__(self, provider: LLMProvider, temperature: float = 0.2, timeout: Optional[float] = None):
        self.provider = provider
        self.temperature = temperature
        self.timeout = timeout

    async def run(self, prompt: str) -> Any:
        messages = [
            LLMMessage(role=LLMRole.SYSTEM, content=SYSTEM_PROMPT),
            LLMMessage(role=LLMRole.USER, content=prompt),
        ]
        return await asyncio.to_thread(
            self.provider.complete,
            messages,
            temperature=self.temperature,
            timeout=self.timeout,
        )


def assistant_from_config(config: Config) -> AssistantClient:
    """Build the OpenAI-backed assistant described by the configuration.

    Raises:
        LLMAuthenticationError: If no API key is available
    """
    settings = config.get_llm_config()
    provider = OpenAIProvider(
        model=settings["model"],
        base_url=settings["base_url"],
        api_key_env=settings["api_key_env"],
        use_azure=settings["use_azure"],
        azure_deployment=settings["azure_deployment"],
        azure_endpoint=settings["azure_endpoint"],
        azure_api_version=settings["azure_api_version"],
    )
    return OpenAIAssistant(provider, temperature=config.llm_temperature, timeout=config.llm_timeout_seconds)
