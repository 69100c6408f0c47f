"""
Typed file operations proposed by the model.

A ChangeSet is built once per model response and owns its entries. Applying an
entry writes straight to disk: no backup and no atomic rename, the review step
happens before apply().
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Union


class ApplyError(Exception):
    """Raised when a change cannot be written to disk."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


def _write_text(path: str, text: str, encoding: str) -> None:
    # newline="" keeps the model's line endings untouched
    with open(path, "w", encoding=encoding, newline="") as f:
        f.write(text)


@dataclass(frozen=True)
class FileChange:
    """A proposed edit to an existing file, holding both full texts."""

    path: str
    original: str
    modified: str
    description: str = ""

    def apply(self, encoding: str = "utf-8") -> None:
        """Overwrite the target with the modified text."""
        try:
            _write_text(self.path, self.modified, encoding)
        except (OSError, ValueError) as e:
            raise ApplyError(f"Failed to write {self.path}: {e}", self.path) from e


@dataclass(frozen=True)
class NewFile:
    """A proposed file creation. Overwrites the target if it already exists."""

    path: str
    content: str
    description: str = ""

    def apply(self, encoding: str = "utf-8") -> None:
        parent = Path(self.path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as e:
            raise ApplyError(f"Failed to create directories: {e}", self.path) from e

        try:
            _write_text(self.path, self.content, encoding)
        except (OSError, ValueError) as e:
            raise ApplyError(f"Failed to write {self.path}: {e}", self.path) from e


Operation = Union[FileChange, NewFile]


@dataclass
class ChangeSet:
    """Everything extracted from one model response."""

    plan: List[str] = field(default_factory=list)
    modifications: List[FileChange] = field(default_factory=list)
    new_files: List[NewFile] = field(default_factory=list)
    # Kept for forward compatibility; no response markup produces deletions yet
    deletions: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when there is no file operation. A plan alone does not count."""
        return not (self.modifications or self.new_files or self.deletions)

    def operations(self) -> Iterator[Operation]:
        """Modifications first, then new files: the order they are applied in."""
        yield from self.modifications
        yield from self.new_files

    def summary(self) -> str:
        return (
            f"{len(self.modifications)} modifications, "
            f"{len(self.new_files)} nouveaux fichiers, "
            f"{len(self.deletions)} suppressions"
        )
