"""
Provider system for chat-completions API integrations.
"""

from .base import BaseProvider, ModelResponse, ProviderError
from .manager import ChatClient, ProviderManager, create_chat_client, provider_manager
from .mistral_provider import MistralProvider

__all__ = [
    "BaseProvider",
    "ProviderError",
    "ModelResponse",
    "MistralProvider",
    "ChatClient",
    "ProviderManager",
    "create_chat_client",
    "provider_manager",
]
