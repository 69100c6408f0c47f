"""
Line diffs for reviewing changes before they are applied.

Purely presentational: nothing here influences what apply() writes.
"""

import difflib
from dataclasses import dataclass
from typing import List

from rich.console import Group
from rich.rule import Rule
from rich.text import Text

from .changes import FileChange, NewFile

EQUAL = "equal"
DELETE = "delete"
INSERT = "insert"

NEW_FILE_PREVIEW_LINES = 20


@dataclass(frozen=True)
class DiffLine:
    tag: str
    line: str

    @property
    def sign(self) -> str:
        if self.tag == DELETE:
            return "-"
        if self.tag == INSERT:
            return "+"
        return " "


def line_diff(original: str, modified: str) -> List[DiffLine]:
    """
    Compute an order-preserving line diff.

    Lines keep their terminators, so joining the non-inserted lines gives back
    ``original`` and joining the non-deleted lines gives back ``modified``.
    Replaced regions are reported as deletions followed by insertions.
    """
    a = original.splitlines(keepends=True)
    b = modified.splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(None, a, b, autojunk=False)

    result = []
    for op, i1, i2, j1, j2 in matcher.get_opcodes():
        if op == "equal":
            result.extend(DiffLine(EQUAL, line) for line in a[i1:i2])
            continue
        if op in ("delete", "replace"):
            result.extend(DiffLine(DELETE, line) for line in a[i1:i2])
        if op in ("insert", "replace"):
            result.extend(DiffLine(INSERT, line) for line in b[j1:j2])
    return result


def unified_diff(change: FileChange, context: int = 3) -> str:
    """Plain unified diff, used when pretty output is off."""
    return "".join(
        difflib.unified_diff(
            change.original.splitlines(keepends=True),
            change.modified.splitlines(keepends=True),
            fromfile=change.path,
            tofile=change.path,
            n=context,
        )
    )


def _header(title: Text, description: str) -> List:
    parts = [Rule(style="dim"), title]
    if description:
        parts.append(Text(f"   {description}", style="dim"))
    parts.append(Rule(style="dim"))
    return parts


def render_file_change(change: FileChange) -> Group:
    parts = _header(Text(change.path, style="bold"), change.description)

    body = Text()
    for diff_line in line_diff(change.original, change.modified):
        line = diff_line.line if diff_line.line.endswith("\n") else diff_line.line + "\n"
        if diff_line.tag == DELETE:
            body.append(f"-{line}", style="red")
        elif diff_line.tag == INSERT:
            body.append(f"+{line}", style="green")
        else:
            body.append(f" {line}")
    body.rstrip()
    parts.append(body)
    return Group(*parts)


def render_new_file(new_file: NewFile, max_lines: int = NEW_FILE_PREVIEW_LINES) -> Group:
    title = Text()
    title.append("[NEW] ", style="bold green")
    title.append(new_file.path, style="bold")
    parts = _header(title, new_file.description)

    lines = new_file.content.splitlines()
    body = Text()
    for line in lines[:max_lines]:
        body.append(f"+{line}\n", style="green")
    if len(lines) > max_lines:
        body.append("... (truncated)\n", style="dim")
    body.rstrip()
    parts.append(body)
    return Group(*parts)


def render_deletion(path: str) -> Text:
    text = Text()
    text.append("[DELETE] ", style="bold red")
    text.append(path, style="bold")
    return text
