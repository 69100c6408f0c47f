from __future__ import annotations

import io

import pytest
from rich.console import Console

import companion.main as main_module
from companion.args import get_parser
from companion.config import SettingsStore
from companion.conversations import ChatStorage, SavedChat
from companion.main import main


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("MISTRAL_API_KEY", raising=False)
    monkeypatch.delenv("CODESTRAL_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120, no_color=True)


@pytest.fixture
def settings(tmp_path):
    path = tmp_path / "settings.yml"
    store = SettingsStore(path)
    store.set("api_key", "key")
    store.set("provider", "mistral")
    store.persist()
    return path


def test_agent_arguments() -> None:
    args = get_parser().parse_args(
        ["auto", "--dry-run", "-e", "py, .rs", "-x", "gen", "-x", "out", "fix", "the", "bug"]
    )

    assert args.command == "auto"
    assert args.dry_run is True
    assert args.include == ["py", "rs"]
    assert args.exclude == ["gen", "out"]
    assert args.instruction == ["fix", "the", "bug"]
    assert args.max_files is None
    assert args.cwd == "."


def test_plan_has_no_dry_run_flag() -> None:
    with pytest.raises(SystemExit):
        get_parser().parse_args(["plan", "--dry-run", "x"])


def test_init_config(tmp_path, console) -> None:
    target = tmp_path / "conf.yml"

    assert main(["--config", str(target), "--init-config"], console=console) == 0
    assert target.exists()
    assert main(["--config", str(target), "--init-config"], console=console) == 1


def test_missing_config_file(tmp_path, console) -> None:
    code = main(["--config", str(tmp_path / "nope.yml"), "plan", "x"], console=console)

    assert code == 1
    assert "Error: Configuration file not found" in console.file.getvalue()


def test_configure_stores_api_key(tmp_path, console) -> None:
    path = tmp_path / "conf" / "settings.yml"

    code = main(
        ["--settings", str(path), "configure", "--provider", "codestral", "--api-key", "abc"],
        console=console,
    )

    assert code == 0
    store = SettingsStore(path)
    assert store.get("api_key") == "abc"
    assert store.get("provider") == "codestral"


def test_configure_prompts_for_missing_values(tmp_path, console) -> None:
    path = tmp_path / "settings.yml"
    answers = iter(["", "typed-key"])

    code = main(["--settings", str(path), "configure"], console=console, input_func=lambda _: next(answers))

    assert code == 0
    store = SettingsStore(path)
    assert store.get("api_key") == "typed-key"
    assert store.get("provider") == "mistral"


def test_configure_rejects_unknown_provider(tmp_path, console) -> None:
    code = main(
        ["--settings", str(tmp_path / "s.yml"), "configure", "--provider", "nope", "--api-key", "k"],
        console=console,
    )

    assert code == 1
    assert "Unknown provider: nope" in console.file.getvalue()


def test_agent_without_api_settings(tmp_path, console) -> None:
    code = main(["--settings", str(tmp_path / "none.yml"), "plan", "do", "it"], console=console)

    assert code == 1
    assert "API settings not configured" in console.file.getvalue()


def test_agent_with_invalid_project_dir(tmp_path, settings, console) -> None:
    code = main(
        ["--settings", str(settings), "plan", "-c", str(tmp_path / "missing"), "do", "it"],
        console=console,
    )

    assert code == 1
    assert "Error: Invalid path" in console.file.getvalue()


def test_auto_run_end_to_end(tmp_path, settings, console, monkeypatch, fake_client) -> None:
    project = tmp_path / "proj"
    project.mkdir()
    (project / "a.py").write_text("x = 1\n", encoding="utf-8")
    client = fake_client(
        '<file path="a.py">\n<<<<<<< ORIGINAL\nx = 1\n=======\nx = 2\n>>>>>>> MODIFIED\n</file>'
    )
    monkeypatch.setattr(main_module, "create_chat_client", lambda *args, **kwargs: client)

    code = main(["--settings", str(settings), "auto", "-c", str(project), "bump", "x"], console=console)

    assert code == 0
    assert (project / "a.py").read_text(encoding="utf-8") == "x = 2\n"
    assert "INSTRUCTION: bump x" in client.calls[0][1]["content"]


def test_chats_listing(tmp_path, console, monkeypatch) -> None:
    storage = ChatStorage(tmp_path / "chats")
    chat = SavedChat(project_path=str(tmp_path.resolve()), title="Parser work")
    storage.save(chat)
    monkeypatch.setattr(main_module, "ChatStorage", lambda: storage)

    assert main(["chats"], console=console) == 0
    assert f"{chat.id}  Parser work" in console.file.getvalue()

    assert main(["chats", "--delete", chat.id], console=console) == 0
    assert storage.list() == []
    assert main(["chats", "--delete", chat.id], console=console) == 1


def test_no_command_prints_help(console, capsys) -> None:
    assert main([], console=console) == 1
    assert "usage:" in capsys.readouterr().out


@pytest.mark.parametrize("content", ["api_key: [unclosed\n", "- just\n- a list\n"])
def test_unreadable_settings_file(tmp_path, console, content) -> None:
    path = tmp_path / "settings.yml"
    path.write_text(content, encoding="utf-8")

    code = main(["--settings", str(path), "plan", "do", "it"], console=console)

    assert code == 1
    assert "Error:" in console.file.getvalue()
