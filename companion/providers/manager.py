"""
Provider construction and the retrying chat client used by the front ends.
"""

import time
from typing import Callable, Dict, List, Optional, Type

from ..config import ProviderConfig
from .base import BaseProvider, ProviderError
from .mistral_provider import MistralProvider


class ProviderManager:
    """Maps provider types to provider classes."""

    def __init__(self):
        self._provider_classes: Dict[str, Type[BaseProvider]] = {
            "mistral": MistralProvider,
            "codestral": MistralProvider,
        }

    def create(self, config: ProviderConfig, api_key: Optional[str] = None) -> BaseProvider:
        """Instantiate the provider described by ``config``."""
        if config.type not in self._provider_classes:
            raise ProviderError(f"Unknown provider: {config.type}")
        provider_class = self._provider_classes[config.type]
        return provider_class(api_key=api_key or config.api_key, base_url=config.base_url)


class ChatClient:
    """
    Sends a message list and returns the assistant's reply.

    Retries only errors flagged as retryable by the provider, waiting
    ``backoff * 2 ** attempt`` seconds between attempts.
    """

    def __init__(
        self,
        provider: BaseProvider,
        model: str,
        retries: int = 3,
        backoff: float = 1.0,
        timeout: Optional[int] = None,
        temperature: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_retry: Optional[Callable[[ProviderError, float], None]] = None,
    ):
        self.provider = provider
        self.model = model
        self.retries = max(0, retries)
        self.backoff = backoff
        self.timeout = timeout
        self.temperature = temperature
        self.sleep = sleep
        self.on_retry = on_retry

    def chat(self, messages: List[Dict[str, str]]) -> str:
        attempt = 0
        while True:
            try:
                response = self.provider.completion(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    timeout=self.timeout,
                )
                return response.content
            except ProviderError as e:
                if not e.retry or attempt >= self.retries:
                    raise
                delay = self.backoff * (2 ** attempt)
                if self.on_retry is not None:
                    self.on_retry(e, delay)
                self.sleep(delay)
                attempt += 1


def create_chat_client(
    config: ProviderConfig,
    api_key: str,
    retries: int = 3,
    backoff: float = 1.0,
    manager: Optional[ProviderManager] = None,
    on_retry: Optional[Callable[[ProviderError, float], None]] = None,
) -> ChatClient:
    """Build a ChatClient for the configured endpoint."""
    manager = manager or provider_manager
    provider = manager.create(config, api_key=api_key)
    return ChatClient(
        provider,
        model=config.model,
        retries=retries,
        backoff=backoff,
        timeout=config.timeout,
        on_retry=on_retry,
    )


# Global provider manager instance
provider_manager = ProviderManager()
