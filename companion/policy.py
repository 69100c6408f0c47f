"""
Confirmation policy: decides whether and how a ChangeSet is applied.

The policy never looks at what was parsed, it only gates calls to apply().
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .changes import ApplyError, ChangeSet, FileChange, Operation


class ExecutionMode(Enum):
    PLAN = "plan"
    INTERACTIVE = "interactive"
    AUTO = "auto"


class ChatMode(Enum):
    """Conversation modes. ASK disables change handling entirely."""

    ASK = "ask"
    PLAN = "plan"
    CODE = "code"
    AUTO = "auto"

    def __str__(self):
        return self.name

    def next(self) -> "ChatMode":
        """Mode reached by the cycling key binding."""
        return _CYCLE[self]

    @property
    def execution_mode(self) -> Optional[ExecutionMode]:
        return _EXECUTION_MODES[self]

    @classmethod
    def from_command(cls, command: str) -> Optional["ChatMode"]:
        """Map ``/plan`` style commands to a mode."""
        name = command.strip().lower().lstrip("/")
        for mode in cls:
            if mode.value == name:
                return mode
        return None


_CYCLE = {
    ChatMode.ASK: ChatMode.PLAN,
    ChatMode.PLAN: ChatMode.CODE,
    ChatMode.CODE: ChatMode.AUTO,
    ChatMode.AUTO: ChatMode.ASK,
}

_EXECUTION_MODES = {
    ChatMode.ASK: None,
    ChatMode.PLAN: ExecutionMode.PLAN,
    ChatMode.CODE: ExecutionMode.INTERACTIVE,
    ChatMode.AUTO: ExecutionMode.AUTO,
}

APPLIED = "applied"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of one file operation, reported next to its own path."""

    path: str
    is_new_file: bool
    status: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == APPLIED


def _confirm_question(op: Operation) -> str:
    if isinstance(op, FileChange):
        return f"Apply this modification to {op.path}?"
    return f"Create {op.path}?"


def apply_changes(
    changes: ChangeSet,
    mode: ExecutionMode,
    confirm: Optional[Callable[[Operation, str], bool]] = None,
    report: Optional[Callable[[ApplyResult], None]] = None,
    encoding: str = "utf-8",
) -> List[ApplyResult]:
    """
    Apply the operations of ``changes`` according to ``mode``.

    Args:
        changes: Parsed ChangeSet
        mode: PLAN writes nothing, INTERACTIVE asks per item, AUTO applies all
        confirm: Called with (operation, question) in INTERACTIVE mode
        report: Called with each ApplyResult as soon as it is known
        encoding: Encoding used for writing

    Returns:
        One ApplyResult per visited operation, modifications first
    """
    results: List[ApplyResult] = []
    if mode is ExecutionMode.PLAN:
        return results

    if mode is ExecutionMode.INTERACTIVE and confirm is None:
        raise ValueError("Interactive mode needs a confirm callback")

    for op in changes.operations():
        is_new = not isinstance(op, FileChange)

        if mode is ExecutionMode.INTERACTIVE and not confirm(op, _confirm_question(op)):
            result = ApplyResult(op.path, is_new, SKIPPED)
        else:
            try:
                op.apply(encoding=encoding)
            except ApplyError as e:
                result = ApplyResult(op.path, is_new, FAILED, str(e))
            else:
                result = ApplyResult(op.path, is_new, APPLIED)

        results.append(result)
        if report is not None:
            report(result)

    return results
