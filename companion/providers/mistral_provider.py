"""
Mistral provider implementation (api.mistral.ai and codestral.mistral.ai).

Both endpoints speak the OpenAI-compatible chat completions protocol.
"""

from typing import Dict, List, Optional

import requests

from .base import BaseProvider, ModelResponse, ProviderError

DEFAULT_TIMEOUT = 60


class MistralProvider(BaseProvider):
    """Chat completions over HTTP for Mistral-hosted models."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        **kwargs
    ):
        super().__init__(api_key, base_url or "https://api.mistral.ai/v1", **kwargs)
        self.base_url = self.base_url.rstrip("/")
        self.session = session or requests.Session()

    def completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        timeout: Optional[int] = None,
        **kwargs
    ) -> ModelResponse:
        """Generate a completion using the chat completions endpoint."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        data = {
            "model": model,
            "messages": self.format_messages(messages),
            "stream": False,
        }
        if temperature is not None:
            data["temperature"] = temperature
        data.update(kwargs)

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=data,
                timeout=timeout or DEFAULT_TIMEOUT,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise self.handle_error(e)

        return self._handle_response(response)

    def _handle_response(self, response: requests.Response) -> ModelResponse:
        try:
            response_data = response.json()
        except ValueError as e:
            raise ProviderError(f"Invalid response from API: {e}")

        content = self._extract_content_from_response(response_data)
        if content is None:
            raise ProviderError("No response content found")

        return ModelResponse(
            content=content,
            finish_reason=response_data["choices"][0].get("finish_reason"),
            usage=self._extract_usage_from_response(response_data),
            model=response_data.get("model"),
        )

    def handle_error(self, error: Exception) -> ProviderError:
        """Classify HTTP and network errors as retryable or not."""
        if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
            status_code = error.response.status_code
            detail = error.response.text

            # Rate limiting
            if status_code == 429:
                return ProviderError(f"Rate limit exceeded: {detail}", status_code=status_code, retry=True)

            # Server errors (potentially retryable)
            if status_code >= 500:
                return ProviderError(f"Server error: {detail}", status_code=status_code, retry=True)

            # Client errors (not retryable)
            return ProviderError(f"API Error: {detail}", status_code=status_code, retry=False)

        # Network errors (retryable)
        if isinstance(error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
            return ProviderError(f"Network error: {error}", retry=True)

        return ProviderError(str(error), retry=False)
