from __future__ import annotations

import pytest

from companion.agent import Agent, AgentConfig, AgentError
from companion.policy import APPLIED, SKIPPED, ExecutionMode
from companion.prompts import PLAN_ONLY_NOTE

RESPONSE = """\
<plan>
1. Bump x
2. Add helper
</plan>
<file path="a.py">
<<<<<<< ORIGINAL
x = 1
=======
x = 2
>>>>>>> MODIFIED
</file>
<new_file path="lib/helper.py">
def helper():
    return 42
</new_file>
"""


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "proj"
    root.mkdir()
    (root / "a.py").write_text("x = 1\n", encoding="utf-8")
    return root


def _run(project, mode, client, io, **kwargs):
    config = AgentConfig(cwd=project, instruction="bump x", mode=mode, **kwargs)
    return Agent(config, client, io).run()


def test_auto_mode_applies_everything(project, fake_client, make_io, read_output) -> None:
    client = fake_client(RESPONSE)
    io = make_io()

    results = _run(project, ExecutionMode.AUTO, client, io)

    assert [r.status for r in results] == [APPLIED, APPLIED]
    assert (project / "a.py").read_text(encoding="utf-8") == "x = 2\n"
    assert (project / "lib" / "helper.py").read_text(encoding="utf-8") == "def helper():\n    return 42"
    output = read_output(io)
    assert "1 modifications, 1 nouveaux fichiers, 0 suppressions" in output
    assert "1. Bump x" in output


def test_request_carries_codebase_and_instruction(project, fake_client, make_io) -> None:
    client = fake_client("nothing to do")

    _run(project, ExecutionMode.AUTO, client, make_io())

    system, user = client.calls[0]
    assert system["role"] == "system"
    assert "--- a.py ---" in user["content"]
    assert "INSTRUCTION: bump x" in user["content"]
    assert PLAN_ONLY_NOTE not in user["content"]


def test_plan_mode_writes_nothing(project, fake_client, make_io, read_output) -> None:
    client = fake_client(RESPONSE)
    io = make_io()

    assert _run(project, ExecutionMode.PLAN, client, io) is None

    assert PLAN_ONLY_NOTE in client.calls[0][1]["content"]
    assert (project / "a.py").read_text(encoding="utf-8") == "x = 1\n"
    assert not (project / "lib").exists()
    assert "2. Add helper" in read_output(io)


def test_plan_mode_forces_dry_run(project) -> None:
    config = AgentConfig(cwd=project, instruction="x", mode=ExecutionMode.PLAN)
    assert config.dry_run is True


def test_interactive_mode_confirms_each_item(project, fake_client, make_io) -> None:
    io = make_io("n", "y")

    results = _run(project, ExecutionMode.INTERACTIVE, fake_client(RESPONSE), io)

    assert [r.status for r in results] == [SKIPPED, APPLIED]
    assert (project / "a.py").read_text(encoding="utf-8") == "x = 1\n"
    assert (project / "lib" / "helper.py").exists()


def test_yes_always_accepts_every_item(project, fake_client, make_io) -> None:
    results = _run(project, ExecutionMode.INTERACTIVE, fake_client(RESPONSE), make_io(yes_always=True))

    assert [r.status for r in results] == [APPLIED, APPLIED]


def test_dry_run_shows_but_does_not_apply(project, fake_client, make_io, read_output) -> None:
    io = make_io()

    assert _run(project, ExecutionMode.AUTO, fake_client(RESPONSE), io, dry_run=True) is None

    assert (project / "a.py").read_text(encoding="utf-8") == "x = 1\n"
    output = read_output(io)
    assert "+x = 2" in output
    assert "Dry run" in output


def test_text_only_answer_is_printed(project, fake_client, make_io, read_output) -> None:
    io = make_io()

    assert _run(project, ExecutionMode.AUTO, fake_client("The code looks fine."), io) is None

    output = read_output(io)
    assert "The code looks fine." in output
    assert "No file changes proposed." in output


def test_empty_project_is_an_error(tmp_path, fake_client, make_io) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    client = fake_client("unused")

    with pytest.raises(AgentError, match="No files found"):
        _run(empty, ExecutionMode.AUTO, client, make_io())
    assert client.calls == []


def test_diffs_hidden_when_disabled(project, fake_client, make_io, read_output) -> None:
    io = make_io()
    io.output.show_diffs = False

    _run(project, ExecutionMode.AUTO, fake_client(RESPONSE), io)

    output = read_output(io)
    assert "+x = 2" not in output
    assert (project / "a.py").read_text(encoding="utf-8") == "x = 2\n"
