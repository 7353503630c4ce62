"""
Chat-completion provider behind the plan assistant.

:class:`OpenAIProvider` talks to OpenAI or Azure OpenAI, retries rate-limited
calls and maps SDK failures onto the :class:`LLMError` family. The plan
generator reaches it only through :mod:`clustercodex.llm.assistant`.
"""

import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class LLMRole(str, Enum):
    """Chat message roles."""
    SYSTEM = "system"
    USER = "user"


@dataclass
class LLMMessage:
    role: LLMRole
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class LLMResponse:
    """Text of one completion and the model that produced it."""
    content: str
    model: str


class LLMError(Exception):
    """Base exception for provider errors."""
    pass


class LLMRateLimitError(LLMError):
    """Raised when the rate limit is still exceeded after retrying."""
    pass


class LLMAuthenticationError(LLMError):
    """Raised when no key is configured or the key is rejected."""
    pass


class LLMTimeoutError(LLMError):
    """Raised when the provider does not answer in time."""
    pass


class LLMProvider(ABC):
    """Blocking chat-completion provider."""

    @abstractmethod
    def complete(
        self,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """Complete a conversation.

        Raises:
            LLMError: On any provider failure
        """


class OpenAIProvider(LLMProvider):
    """OpenAI (or Azure OpenAI) chat completions.

    Args:
        api_key: API key; read from ``api_key_env`` when omitted
        model: Model name (ignored on Azure, where the deployment is used)
        base_url: Alternative endpoint for OpenAI-compatible servers
        timeout: Per-request timeout when the caller passes none
        api_key_env: Environment variable holding the key
        use_azure: Talk to Azure OpenAI instead of OpenAI
        azure_deployment: Azure deployment name
        azure_endpoint: Azure endpoint URL
        azure_api_version: Azure API version

    Raises:
        LLMAuthenticationError: If no API key is available
    """

    DEFAULT_TIMEOUT = 60
    AZURE_API_VERSION = "2024-02-15-preview"

    # Attempts made while the provider reports a rate limit
    MAX_RETRIES = 3

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o",
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        api_key_env: str = "OPENAI_API_KEY",
        use_azure: bool = False,
        azure_deployment: Optional[str] = None,
        azure_endpoint: Optional[str] = None,
        azure_api_version: Optional[str] = None,
    ):
        self.api_key = api_key or os.getenv(api_key_env)
        if not self.api_key:
            raise LLMAuthenticationError(
                f"No API key for the plan assistant. Set {api_key_env} or pass api_key."
            )

        self.model = model
        self.base_url = base_url
        self.default_timeout = timeout
        self.use_azure = use_azure
        self.azure_deployment = azure_deployment
        self.azure_endpoint = azure_endpoint
        self.azure_api_version = azure_api_version
        self._client = None

    @property
    def client(self):
        """SDK client, created on first use."""
        if self._client is None:
            from openai import AzureOpenAI, OpenAI

            if self.use_azure:
                self._client = AzureOpenAI(
                    api_key=self.api_key,
                    azure_endpoint=self.azure_endpoint,
                    api_version=self.azure_api_version or self.AZURE_API_VERSION,
                )
            else:
                options: Dict[str, Any] = {"api_key": self.api_key}
                if self.base_url:
                    options["base_url"] = self.base_url
                self._client = OpenAI(**options)
        return self._client

    def complete(
        self,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """Request one completion.

        Raises:
            LLMRateLimitError: Still rate limited after MAX_RETRIES attempts
            LLMAuthenticationError: The key was rejected
            LLMTimeoutError: The request timed out
            LLMError: Any other API failure
        """
        request = {
            "model": self.azure_deployment if self.use_azure else self.model,
            "messages": [message.to_dict() for message in messages],
            "temperature": temperature,
            "timeout": timeout or self.default_timeout,
        }

        for attempt in range(self.MAX_RETRIES):
            try:
                response = self.client.chat.completions.create(**request)
            except Exception as e:
                error_msg = str(e).lower()
                if "rate_limit" in error_msg or "rate limit" in error_msg:
                    if attempt < self.MAX_RETRIES - 1:
                        time.sleep(2 ** attempt)
                        continue
                    raise LLMRateLimitError(f"Rate limit exceeded after {self.MAX_RETRIES} attempts: {e}") from e
                if "authentication" in error_msg or "api_key" in error_msg or "unauthorized" in error_msg:
                    raise LLMAuthenticationError(f"Authentication failed: {e}") from e
                if "timeout" in error_msg or "timed out" in error_msg:
                    raise LLMTimeoutError(f"Request timed out: {e}") from e
                raise LLMError(f"OpenAI API error: {e}") from e

            return LLMResponse(content=response.choices[0].message.content or "", model=response.model)

        raise LLMError(f"No completion after {self.MAX_RETRIES} attempts")
