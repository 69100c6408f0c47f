"""
Base provider interface for chat-completions APIs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class ProviderError(Exception):
    """Base exception for provider-related errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, retry: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retry = retry


@dataclass
class ModelResponse:
    """Response from a chat completion request."""

    content: str
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, int]] = None
    model: Optional[str] = None


class BaseProvider(ABC):
    """Abstract base class for chat providers."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, **kwargs):
        self.api_key = api_key
        self.base_url = base_url
        self.extra_params = kwargs

    @abstractmethod
    def completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        timeout: Optional[int] = None,
        **kwargs
    ) -> ModelResponse:
        """
        Generate a completion from the model.

        Args:
            model: The model identifier
            messages: List of message dicts with 'role' and 'content' keys
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            **kwargs: Additional provider-specific parameters

        Returns:
            ModelResponse with the assistant message
        """
        pass

    def format_messages(self, messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
        """
        Format messages for this provider's API.

        Only role and content are sent.
        """
        return [{"role": m["role"], "content": m["content"]} for m in messages]

    def handle_error(self, error: Exception) -> ProviderError:
        """
        Convert provider-specific errors to standardized ProviderError.

        Args:
            error: The original error

        Returns:
            ProviderError with appropriate retry flag
        """
        should_retry = isinstance(error, (ConnectionError, TimeoutError))
        return ProviderError(str(error), retry=should_retry)

    def _extract_content_from_response(self, response_data: Dict[str, Any]) -> Optional[str]:
        """
        Extract content from a completion response.

        Returns None when the response carries no choice at all.
        """
        choices = response_data.get("choices") or []
        if not choices:
            return None
        choice = choices[0]
        if "message" in choice:
            return choice["message"].get("content") or ""
        if "text" in choice:
            return choice["text"]
        return None

    def _extract_usage_from_response(self, response_data: Dict[str, Any]) -> Optional[Dict[str, int]]:
        return response_data.get("usage")
