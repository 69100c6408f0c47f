"""
Codebase indexing: walk a project tree and turn it into bounded context chunks.

The indexer honours git ignore rules, a fixed list of excluded directories and
an extension allow-list. Every per-file problem (too large, binary, unreadable)
is a silent skip; only an invalid root is an error.
"""

import os
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, Iterator, List, Optional

import git

DEFAULT_EXTENSIONS = (
    "rs", "ts", "tsx", "js", "jsx", "py", "go", "java", "kt", "swift",
    "c", "cpp", "h", "hpp", "cs", "rb", "php", "vue", "svelte",
    "html", "css", "scss", "sass", "less", "json", "yaml", "yml",
    "toml", "md", "sql", "sh", "bash", "zsh", "fish",
)

DEFAULT_EXCLUDES = (
    "node_modules", "target", "dist", "build", ".git", "__pycache__",
    "vendor", ".venv", "venv", ".idea", ".vscode", "coverage",
)

# Files above this size are never loaded (bytes)
MAX_FILE_SIZE = 100_000

# 1 token ~= 4 characters
CHARS_PER_TOKEN = 4


class InvalidPath(Exception):
    """Raised when the root of an indexing request cannot be resolved."""


def estimate_tokens(text: str) -> int:
    """Approximate model tokens for ``text``."""
    return len(text) // CHARS_PER_TOKEN


def file_header(relative_path: str) -> str:
    """Banner written in front of each file in a context chunk."""
    return f"\n--- {relative_path} ---\n"


@dataclass(frozen=True)
class IndexedFile:
    """One eligible file loaded during an indexing pass."""

    path: Path
    relative_path: str
    content: str
    extension: str
    size: int

    @property
    def header(self) -> str:
        return file_header(self.relative_path)

    @property
    def context_tokens(self) -> int:
        """Token cost of this file inside a context chunk (header included)."""
        return (len(self.header) + len(self.content)) // CHARS_PER_TOKEN


@dataclass(frozen=True)
class GitIgnoreMatcher:
    """Snapshot of the paths git reports as ignored under ``root``."""

    root: Path
    ignored_files: FrozenSet[Path] = frozenset()
    ignored_dirs: FrozenSet[Path] = frozenset()

    def is_ignored(self, path: Path) -> bool:
        if path in self.ignored_files:
            return True
        current = path
        while current != self.root and current.parent != current:
            if current in self.ignored_dirs:
                return True
            current = current.parent
        return False


def load_gitignore_matcher(root: Path) -> Optional[GitIgnoreMatcher]:
    """
    Ask git which untracked paths are ignored under ``root``.

    ``--exclude-standard`` covers the repository ``.gitignore`` files, the
    global excludes file and ``.git/info/exclude``. Returns None when ``root``
    is not inside a work tree or git is unavailable.
    """
    try:
        repo = git.Repo(root, search_parent_directories=True)
        repo_root = Path(repo.working_tree_dir).resolve()
        output = repo.git.ls_files(
            "-z", "--others", "-i", "--exclude-standard", "--directory"
        )
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        return None
    except (git.exc.GitCommandError, git.exc.GitCommandNotFound):
        return None

    ignored_files = set()
    ignored_dirs = set()
    for entry in output.split("\0"):
        if not entry:
            continue
        if entry.endswith("/"):
            ignored_dirs.add((repo_root / entry.rstrip("/")).resolve())
        else:
            ignored_files.add((repo_root / entry).resolve())

    return GitIgnoreMatcher(
        root=root,
        ignored_files=frozenset(ignored_files),
        ignored_dirs=frozenset(ignored_dirs),
    )


def walk_files(root: Path, matcher: Optional[GitIgnoreMatcher] = None) -> Iterator[Path]:
    """Yield regular files under ``root`` in directory-walk order."""
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        if matcher is not None:
            dirnames[:] = [d for d in dirnames if not matcher.is_ignored(current / d)]
        for name in filenames:
            path = current / name
            if matcher is not None and matcher.is_ignored(path):
                continue
            if path.is_file():
                yield path


def _extension(path: Path) -> str:
    return path.suffix[1:].lower() if path.suffix else ""


@dataclass
class CodebaseIndex:
    """Read-only view of the eligible files of a project."""

    root: Path
    files: List[IndexedFile] = field(default_factory=list)
    total_tokens_estimate: int = 0

    @classmethod
    def index(
        cls,
        root,
        include_extensions: Optional[Iterable[str]] = None,
        exclude_dirs: Iterable[str] = (),
        max_files: int = 50,
        progress: Optional[Callable[[int], None]] = None,
    ) -> "CodebaseIndex":
        """
        Index a codebase directory.

        Args:
            root: Project directory
            include_extensions: Extensions to accept instead of the defaults
            exclude_dirs: Extra exclusion tokens, matched as path substrings
            max_files: Stop walking once this many files have been kept
            progress: Called with the running count after each kept file

        Returns:
            A fresh CodebaseIndex
        """
        try:
            root = Path(root).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise InvalidPath(f"Invalid path: {e}") from e

        if include_extensions is not None:
            allowed = {ext.lower() for ext in include_extensions}
        else:
            allowed = set(DEFAULT_EXTENSIONS)

        excludes = list(DEFAULT_EXCLUDES) + [exc for exc in exclude_dirs if exc]
        index = cls(root=root)

        for path in walk_files(root, load_gitignore_matcher(root)):
            if len(index.files) >= max_files:
                break

            path_str = str(path)
            if any(exc in path_str for exc in excludes):
                continue

            ext = _extension(path)
            if ext not in allowed:
                continue

            try:
                size = path.stat().st_size
            except OSError:
                continue
            if size > MAX_FILE_SIZE:
                continue

            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                # Binary or unreadable
                continue

            try:
                relative_path = path.relative_to(root).as_posix()
            except ValueError:
                relative_path = path.as_posix()

            index.files.append(
                IndexedFile(
                    path=path,
                    relative_path=relative_path,
                    content=content,
                    extension=ext,
                    size=size,
                )
            )
            index.total_tokens_estimate += estimate_tokens(content)

            if progress is not None:
                progress(len(index.files))

        return index

    def summary(self) -> str:
        """Human readable description of what was indexed."""
        # Counter keeps first-encounter order for equal counts
        by_ext = Counter(f.extension for f in self.files)

        lines = [
            f"Codebase: {self.root}",
            f"{len(self.files)} files indexed",
            f"~{self.total_tokens_estimate} tokens estimated",
            "",
            "By type:",
        ]
        for ext, count in by_ext.most_common(10):
            lines.append(f"  .{ext}: {count}")
        return "\n".join(lines) + "\n"

    def build_context(self, max_tokens: int) -> Iterator[str]:
        """
        Yield context chunks of at most ``max_tokens`` estimated tokens.

        Files are never split: a file larger than the budget gets a chunk of
        its own. Each call starts a new pass over the index.
        """
        current: List[str] = []
        current_tokens = 0

        for indexed in self.files:
            file_tokens = indexed.context_tokens
            if current and current_tokens + file_tokens > max_tokens:
                yield "".join(current)
                current = []
                current_tokens = 0

            current.append(indexed.header)
            current.append(indexed.content)
            current_tokens += file_tokens

        if current:
            yield "".join(current)

    def first_context_chunk(self, max_tokens: int) -> str:
        """The chunk front ends actually send to the model."""
        return next(iter(self.build_context(max_tokens)), "")
