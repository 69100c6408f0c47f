from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .dataclasses import CompanionConfig  # noqa: F401
from .dataclasses import DEFAULT_PROVIDER  # noqa: F401
from .dataclasses import IndexConfig  # noqa: F401
from .dataclasses import KNOWN_PROVIDERS  # noqa: F401
from .dataclasses import OutputConfig  # noqa: F401
from .dataclasses import ProviderConfig  # noqa: F401
from .dataclasses import RetryConfig  # noqa: F401
from .store import SettingsStore  # noqa: F401
from .store import default_settings_path  # noqa: F401


class ConfigError(Exception):
    """Raised for missing or invalid configuration."""


SAMPLE_CONFIG = """\
# companion-chat configuration

# Endpoint used for requests: mistral or codestral
provider: mistral

providers:
  mistral:
    type: mistral
    model: mistral-large-latest
  codestral:
    type: codestral
    model: codestral-latest

index:
  max_files: 50
  exclude_dirs: []
  # include_extensions: [py, rs, ts]
  context_tokens: 30000
  chat_context_tokens: 20000

output:
  pretty: true
  show_diffs: true
  verbose: false

retry:
  retries: 3
  backoff: 1.0
"""


class ConfigManager:
    """Manages loading and saving of companion-chat configuration."""

    DEFAULT_CONFIG_NAMES = [".companion.conf.yml", ".companion.conf.yaml"]

    def __init__(self):
        self.config_path = None
        self.config = None

    def find_config_file(self, start_path: Optional[Path] = None) -> Optional[Path]:
        """
        Find configuration file.

        Search order:
        1. Current working directory
        2. Git repository root (if in a git repo)
        3. Home directory
        """
        if start_path is None:
            start_path = Path.cwd()

        search_paths = [start_path]

        # Add git repository root if we're in one
        try:
            import git

            repo = git.Repo(start_path, search_parent_directories=True)
            repo_root = Path(repo.working_tree_dir)
            if repo_root != start_path:
                search_paths.append(repo_root)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            pass

        search_paths.append(Path.home())

        for path in search_paths:
            for config_name in self.DEFAULT_CONFIG_NAMES:
                config_file = path / config_name
                if config_file.exists():
                    return config_file

        return None

    def load_config(
        self,
        config_path: Optional[Union[str, Path]] = None,
        start_path: Optional[Path] = None,
    ) -> CompanionConfig:
        """
        Load configuration from file or create default configuration.

        Args:
            config_path: Explicit path to config file, or None to auto-discover
            start_path: Directory the auto-discovery starts from

        Returns:
            CompanionConfig instance
        """
        if config_path:
            config_path = Path(config_path)
            if not config_path.exists():
                raise ConfigError(f"Configuration file not found: {config_path}")
        else:
            config_path = self.find_config_file(start_path)

        if not config_path:
            self.config = CompanionConfig()
            return self.config

        self.config_path = config_path
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid configuration file {config_path}: {e}") from e

        try:
            self.config = self._config_from_dict(config_data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration file {config_path}: {e}") from e
        return self.config

    def _config_from_dict(self, config_data: Dict[str, Any]) -> CompanionConfig:
        if not isinstance(config_data, dict):
            raise ValueError("top level must be a mapping")
        config_data = dict(config_data)

        providers = {}
        for name, provider_data in (config_data.get("providers") or {}).items():
            provider_data = dict(provider_data or {})
            provider_data.setdefault("type", name)
            providers[name] = ProviderConfig(**provider_data)
        config_data["providers"] = providers

        if "index" in config_data:
            config_data["index"] = IndexConfig(**(config_data["index"] or {}))
        if "output" in config_data:
            config_data["output"] = OutputConfig(**(config_data["output"] or {}))
        if "retry" in config_data:
            config_data["retry"] = RetryConfig(**(config_data["retry"] or {}))

        return CompanionConfig(**config_data)

    def save_config(self, config: CompanionConfig, config_path: Optional[Union[str, Path]] = None):
        """Save configuration to file."""
        if config_path:
            config_path = Path(config_path)
        elif self.config_path:
            config_path = self.config_path
        else:
            config_path = Path.cwd() / self.DEFAULT_CONFIG_NAMES[0]

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config_to_dict(config), f, default_flow_style=False, sort_keys=False)

        self.config_path = config_path

    def _config_to_dict(self, config: CompanionConfig) -> Dict[str, Any]:
        """Convert CompanionConfig to dictionary for YAML serialization."""
        result = {"provider": config.provider, "providers": {}}

        # API keys stay in the settings store, never in the project file
        for name, provider in config.providers.items():
            provider_dict = self._dataclass_to_dict(provider)
            provider_dict.pop("api_key", None)
            result["providers"][name] = provider_dict

        result["index"] = self._dataclass_to_dict(config.index)
        result["output"] = self._dataclass_to_dict(config.output)
        result["retry"] = self._dataclass_to_dict(config.retry)
        result["encoding"] = config.encoding
        if config.settings_file:
            result["settings_file"] = config.settings_file

        return result

    def _dataclass_to_dict(self, obj) -> Dict[str, Any]:
        """Convert dataclass to dictionary, excluding None values."""
        result = {}
        for key, value in obj.__dict__.items():
            if value is not None:
                result[key] = value
        return result

    def create_sample_config(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write a commented sample configuration file and return its path."""
        config_path = Path(path) if path else Path.cwd() / self.DEFAULT_CONFIG_NAMES[0]
        if config_path.exists():
            raise ConfigError(f"Configuration file already exists: {config_path}")
        config_path.write_text(SAMPLE_CONFIG, encoding="utf-8")
        return config_path


def load_api_settings(store: SettingsStore, config: CompanionConfig) -> Tuple[str, str]:
    """
    Resolve the API key and provider name to use.

    The settings store wins; the provider configuration (which picks up
    environment variables) fills in a missing key.

    Returns:
        (api_key, provider_name)
    """
    provider = store.get("provider") or config.provider
    if provider not in config.providers:
        raise ConfigError(f"Unknown provider: {provider}")

    api_key = store.get("api_key")
    if api_key is None:
        api_key = config.providers[provider].api_key

    if api_key is None:
        raise ConfigError(
            "API settings not configured. Run 'companion-chat configure' "
            "to store your API key."
        )
    if not str(api_key).strip():
        raise ConfigError("API key is empty. Run 'companion-chat configure' to set it.")

    return str(api_key).strip(), provider


def save_api_settings(store: SettingsStore, api_key: str, provider: str) -> None:
    store.set("api_key", api_key)
    store.set("provider", provider)
    store.persist()
