from __future__ import annotations

import pytest
import yaml

from companion.config import (
    CompanionConfig,
    ConfigError,
    ConfigManager,
    ProviderConfig,
    SettingsStore,
    load_api_settings,
    save_api_settings,
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("MISTRAL_API_KEY", raising=False)
    monkeypatch.delenv("CODESTRAL_API_KEY", raising=False)


def test_known_provider_defaults(monkeypatch) -> None:
    monkeypatch.setenv("MISTRAL_API_KEY", "from-env")

    config = ProviderConfig(type="mistral")

    assert config.base_url == "https://api.mistral.ai/v1"
    assert config.model == "mistral-large-latest"
    assert config.api_key == "from-env"
    assert config.timeout == 60


def test_unknown_provider_needs_base_url() -> None:
    with pytest.raises(ValueError):
        ProviderConfig(type="custom")


def test_builtin_providers_are_always_present() -> None:
    config = CompanionConfig()

    assert set(config.providers) >= {"mistral", "codestral"}
    assert config.get_provider().type == "mistral"
    with pytest.raises(ValueError):
        config.get_provider("missing")


def test_load_config_from_yaml(tmp_path) -> None:
    path = tmp_path / "custom.yml"
    path.write_text(
        "provider: codestral\n"
        "index:\n"
        "  max_files: 10\n"
        "  exclude_dirs: [gen]\n"
        "retry:\n"
        "  retries: 5\n",
        encoding="utf-8",
    )

    config = ConfigManager().load_config(path)

    assert config.provider == "codestral"
    assert config.index.max_files == 10
    assert config.index.exclude_dirs == ["gen"]
    assert config.index.chat_context_tokens == 20000
    assert config.retry.retries == 5
    assert config.get_provider().model == "codestral-latest"


def test_config_file_is_discovered_in_start_path(tmp_path) -> None:
    (tmp_path / ".companion.conf.yml").write_text("index:\n  max_files: 7\n", encoding="utf-8")
    manager = ConfigManager()

    config = manager.load_config(start_path=tmp_path)

    assert manager.config_path == tmp_path / ".companion.conf.yml"
    assert config.index.max_files == 7


def test_defaults_without_config_file(tmp_path) -> None:
    config = ConfigManager().load_config(start_path=tmp_path)

    assert config.index.max_files == 50
    assert config.output.pretty is True


def test_missing_explicit_config_is_an_error(tmp_path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        ConfigManager().load_config(tmp_path / "nope.yml")


@pytest.mark.parametrize(
    "text",
    ["provider: [unclosed\n", "unknown_key: 1\n", "provider: nowhere\n", "- a list\n"],
)
def test_invalid_config_is_an_error(tmp_path, text) -> None:
    path = tmp_path / "bad.yml"
    path.write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid configuration file"):
        ConfigManager().load_config(path)


def test_sample_config_loads_and_is_not_overwritten(tmp_path) -> None:
    manager = ConfigManager()
    path = manager.create_sample_config(tmp_path / ".companion.conf.yml")

    config = manager.load_config(path)

    assert config.provider == "mistral"
    with pytest.raises(ConfigError, match="already exists"):
        manager.create_sample_config(path)


def test_saved_config_omits_api_keys(tmp_path) -> None:
    config = CompanionConfig()
    config.providers["mistral"].api_key = "secret"
    path = tmp_path / "saved.yml"

    ConfigManager().save_config(config, path)

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert "api_key" not in data["providers"]["mistral"]
    assert "secret" not in path.read_text(encoding="utf-8")
    assert ConfigManager().load_config(path).provider == "mistral"


def test_settings_store_persists(tmp_path) -> None:
    path = tmp_path / "nested" / "settings.yml"
    store = SettingsStore(path)
    assert store.get("api_key") is None

    store.set("api_key", "abc")
    store.persist()

    assert SettingsStore(path).get("api_key") == "abc"
    assert path.read_text(encoding="utf-8") == "api_key: abc\n"


def test_settings_store_rejects_broken_yaml(tmp_path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text("api_key: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Cannot read settings file"):
        SettingsStore(path)


def test_api_settings_not_configured(tmp_path) -> None:
    store = SettingsStore(tmp_path / "settings.yml")

    with pytest.raises(ConfigError, match="API settings not configured"):
        load_api_settings(store, CompanionConfig())


def test_empty_api_key_is_rejected(tmp_path) -> None:
    store = SettingsStore(tmp_path / "settings.yml")
    store.set("api_key", "   ")

    with pytest.raises(ConfigError, match="API key is empty"):
        load_api_settings(store, CompanionConfig())


def test_api_settings_round_trip(tmp_path) -> None:
    path = tmp_path / "settings.yml"
    save_api_settings(SettingsStore(path), " key ", "codestral")

    assert load_api_settings(SettingsStore(path), CompanionConfig()) == ("key", "codestral")


def test_environment_key_fills_missing_setting(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MISTRAL_API_KEY", "env-key")

    result = load_api_settings(SettingsStore(tmp_path / "settings.yml"), CompanionConfig())

    assert result == ("env-key", "mistral")
