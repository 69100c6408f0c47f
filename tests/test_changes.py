from __future__ import annotations

import pytest

from companion.changes import ApplyError, ChangeSet, FileChange, NewFile


def test_summary_uses_fixed_counts_format() -> None:
    changes = ChangeSet(
        modifications=[
            FileChange("a.py", "a", "b"),
            FileChange("b.py", "a", "b"),
        ],
        new_files=[NewFile("c.py", "x")],
    )

    assert changes.summary() == "2 modifications, 1 nouveaux fichiers, 0 suppressions"


def test_plan_only_change_set_is_empty() -> None:
    assert ChangeSet(plan=["one step"]).is_empty()
    assert not ChangeSet(new_files=[NewFile("c.py", "x")]).is_empty()
    assert not ChangeSet(deletions=["old.py"]).is_empty()


def test_operations_yield_modifications_first() -> None:
    mod = FileChange("a.py", "a", "b")
    new = NewFile("c.py", "x")
    changes = ChangeSet(modifications=[mod], new_files=[new])

    assert list(changes.operations()) == [mod, new]


def test_file_change_overwrites_target(tmp_path) -> None:
    target = tmp_path / "a.py"
    target.write_text("old\n", encoding="utf-8")

    FileChange(str(target), "old\n", "new\r\nline\n").apply()

    assert target.read_bytes() == b"new\r\nline\n"


def test_file_change_on_directory_raises(tmp_path) -> None:
    change = FileChange(str(tmp_path), "", "x")

    with pytest.raises(ApplyError, match="Failed to write") as excinfo:
        change.apply()

    assert excinfo.value.path == str(tmp_path)


def test_new_file_creates_parent_directories(tmp_path) -> None:
    target = tmp_path / "pkg" / "sub" / "mod.py"

    NewFile(str(target), "x = 1").apply()

    assert target.read_text(encoding="utf-8") == "x = 1"


def test_new_file_overwrites_existing_file(tmp_path) -> None:
    target = tmp_path / "mod.py"
    target.write_text("old", encoding="utf-8")

    NewFile(str(target), "new").apply()

    assert target.read_text(encoding="utf-8") == "new"


def test_new_file_under_a_regular_file_raises(tmp_path) -> None:
    (tmp_path / "blocker").write_text("", encoding="utf-8")

    with pytest.raises(ApplyError, match="Failed to create directories"):
        NewFile(str(tmp_path / "blocker" / "mod.py"), "x").apply()


def test_apply_uses_requested_encoding(tmp_path) -> None:
    target = tmp_path / "latin.txt"

    NewFile(str(target), "café").apply(encoding="latin-1")

    assert target.read_bytes() == "café".encode("latin-1")
