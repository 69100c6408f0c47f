"""
Configuration dataclasses for companion-chat.

A single .companion.conf.yml file maps onto these classes. Settings that the
user edits interactively (API key, provider) live in the settings store
instead, see ``companion.config.store``.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

KNOWN_PROVIDERS = {
    "mistral": {
        "base_url": "https://api.mistral.ai/v1",
        "model": "mistral-large-latest",
        "env_key": "MISTRAL_API_KEY",
    },
    "codestral": {
        "base_url": "https://codestral.mistral.ai/v1",
        "model": "codestral-latest",
        "env_key": "CODESTRAL_API_KEY",
    },
}

DEFAULT_PROVIDER = "mistral"


@dataclass
class ProviderConfig:
    """Configuration for a single chat-completions endpoint."""

    type: str  # mistral, codestral
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None
    timeout: int = 60

    def __post_init__(self):
        """Validate provider configuration."""
        if not self.type:
            raise ValueError("Provider type is required")

        # Fill in defaults for known endpoints
        defaults = KNOWN_PROVIDERS.get(self.type)
        if defaults:
            if not self.base_url:
                self.base_url = defaults["base_url"]
            if not self.model:
                self.model = defaults["model"]
            if not self.api_key:
                self.api_key = os.getenv(defaults["env_key"]) or None
        elif not self.base_url:
            raise ValueError(f"Provider {self.type} needs a base_url")


@dataclass
class IndexConfig:
    """Codebase indexing settings."""

    include_extensions: Optional[List[str]] = None
    exclude_dirs: List[str] = field(default_factory=list)
    max_files: int = 50
    # Token budgets for the context chunk sent with a request
    context_tokens: int = 30000
    chat_context_tokens: int = 20000


@dataclass
class OutputConfig:
    """UI and display settings."""

    user_input_color: str = "#00cc00"
    tool_output_color: Optional[str] = None
    tool_error_color: str = "#FF2222"
    tool_warning_color: str = "#FFA500"
    assistant_output_color: str = "#0088ff"
    pretty: bool = True
    show_diffs: bool = True
    verbose: bool = False


@dataclass
class RetryConfig:
    """Transport retry settings."""

    retries: int = 3
    backoff: float = 1.0


@dataclass
class CompanionConfig:
    """Main companion-chat configuration."""

    providers: Dict[str, ProviderConfig] = field(default_factory=dict)
    provider: str = DEFAULT_PROVIDER

    index: IndexConfig = field(default_factory=IndexConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    encoding: str = "utf-8"
    settings_file: Optional[str] = None

    def __post_init__(self):
        """Post-initialization validation and setup."""
        self._setup_default_providers()
        if self.provider not in self.providers:
            raise ValueError(f"Unknown provider: {self.provider}")

    def _setup_default_providers(self):
        """Make sure the built-in endpoints are always available."""
        for name in KNOWN_PROVIDERS:
            if name not in self.providers:
                self.providers[name] = ProviderConfig(type=name)

    def get_provider(self, name: Optional[str] = None) -> ProviderConfig:
        """Get the provider configuration for ``name`` (default: the selected one)."""
        name = name or self.provider
        if name not in self.providers:
            raise ValueError(f"Unknown provider: {name}")
        return self.providers[name]
