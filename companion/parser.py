"""
Parse the model's response markup into a ChangeSet.

The markup is scanned with plain substring searches, not a regex engine or an
XML parser. Model output is untrusted free text, so every malformed block just
contributes nothing. Known limits of the scanner:

* a ``<file>`` block ends at the first ``</file>`` after its opening tag, even
  when the MODIFIED fragment itself contains that text;
* the ORIGINAL fragment replaces every occurrence in the current file, not
  just the first one.
"""

from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .changes import ChangeSet, FileChange, NewFile

PLAN_OPEN = "<plan>"
PLAN_CLOSE = "</plan>"

FILE_TAG = "<file"
FILE_CLOSE = "</file>"
NEW_FILE_TAG = "<new_file"
NEW_FILE_CLOSE = "</new_file>"

ORIGINAL_MARKER = "<<<<<<< ORIGINAL"
SEPARATOR_MARKER = "======="
MODIFIED_MARKER = ">>>>>>> MODIFIED"

_PATH_ATTR = 'path="'
_PLAN_STEP_PREFIX = "0123456789.- "


def _read_current(path: Path, encoding: str) -> str:
    try:
        with open(path, "r", encoding=encoding, newline="") as f:
            return f.read()
    except (OSError, ValueError):
        return ""


def _match_open_tag(text: str, pos: int, tag: str) -> Optional[Tuple[str, int]]:
    """
    Match ``<tag path="...">`` at ``pos``.

    Returns the path and the offset just past ``>``, or None when the text at
    ``pos`` is not a well-formed opening tag.
    """
    cursor = pos + len(tag)
    ws_start = cursor
    while cursor < len(text) and text[cursor].isspace():
        cursor += 1
    if cursor == ws_start:
        return None

    if not text.startswith(_PATH_ATTR, cursor):
        return None
    cursor += len(_PATH_ATTR)

    quote = text.find('"', cursor)
    if quote == -1 or quote == cursor:
        return None
    path = text[cursor:quote]

    if not text.startswith(">", quote + 1):
        return None
    return path, quote + 2


def iter_blocks(text: str, tag: str, close: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(path, body)`` for every ``<tag path="...">...close`` block."""
    pos = text.find(tag)
    while pos != -1:
        opened = _match_open_tag(text, pos, tag)
        if opened is not None:
            path, body_start = opened
            end = text.find(close, body_start)
            if end != -1:
                yield path, text[body_start:end]
        pos = text.find(tag, pos + 1)


def parse_plan(text: str) -> List[str]:
    start = text.find(PLAN_OPEN)
    if start == -1:
        return []
    start += len(PLAN_OPEN)
    end = text.find(PLAN_CLOSE, start)
    if end == -1:
        return []

    steps = []
    for line in text[start:end].split("\n"):
        step = line.strip().lstrip(_PLAN_STEP_PREFIX)
        if step:
            steps.append(step)
    return steps


def split_edit_block(body: str) -> Optional[Tuple[str, str]]:
    """Return the trimmed (original, modified) fragments, or None if a marker is missing."""
    orig = body.find(ORIGINAL_MARKER)
    if orig == -1:
        return None
    orig += len(ORIGINAL_MARKER)

    sep = body.find(SEPARATOR_MARKER, orig)
    if sep == -1:
        return None

    end = body.find(MODIFIED_MARKER, sep + len(SEPARATOR_MARKER))
    if end == -1:
        return None

    original = body[orig:sep].strip()
    modified = body[sep + len(SEPARATOR_MARKER):end].strip()
    return original, modified


def parse_response(response: str, base_path, encoding: str = "utf-8") -> ChangeSet:
    """
    Extract the plan, edits and new files from a model response.

    Args:
        response: Raw assistant message
        base_path: Directory the relative paths in the markup are joined to
        encoding: Encoding used to read the files being edited

    Returns:
        A ChangeSet; never raises on malformed markup
    """
    base_path = Path(base_path)
    changes = ChangeSet(plan=parse_plan(response))

    for rel_path, body in iter_blocks(response, FILE_TAG, FILE_CLOSE):
        fragments = split_edit_block(body)
        if fragments is None:
            continue
        original, modified = fragments

        full_path = base_path / rel_path
        current = _read_current(full_path, encoding)
        updated = current.replace(original, modified)
        if updated == current:
            continue

        changes.modifications.append(
            FileChange(path=str(full_path), original=current, modified=updated)
        )

    for rel_path, body in iter_blocks(response, NEW_FILE_TAG, NEW_FILE_CLOSE):
        changes.new_files.append(
            NewFile(path=str(base_path / rel_path), content=body.strip())
        )

    return changes
