"""
Showing parsed changes and apply outcomes to the user.
"""

from .changes import ChangeSet, FileChange, NewFile
from .diffs import render_deletion, render_file_change, render_new_file, unified_diff
from .io import InputOutput
from .policy import APPLIED, SKIPPED, ApplyResult


def show_plan(io: InputOutput, changes: ChangeSet) -> None:
    if not changes.plan:
        return
    io.tool_output()
    io.tool_output("ACTION PLAN", bold=True)
    io.rule()
    for i, step in enumerate(changes.plan, 1):
        io.tool_output(f"  {i}. {step}")
    io.tool_output()


def show_file_change(io: InputOutput, change: FileChange) -> None:
    if io.pretty:
        io.print_renderable(render_file_change(change))
    else:
        io.tool_output(unified_diff(change))


def show_new_file(io: InputOutput, new_file: NewFile) -> None:
    if io.pretty:
        io.print_renderable(render_new_file(new_file))
    else:
        io.tool_output(f"[NEW] {new_file.path}")
        io.tool_output(new_file.content)


def show_operation(io: InputOutput, op) -> None:
    if isinstance(op, FileChange):
        show_file_change(io, op)
    else:
        show_new_file(io, op)


def show_changes(io: InputOutput, changes: ChangeSet) -> None:
    if not io.output.show_diffs:
        return
    for change in changes.modifications:
        show_file_change(io, change)
    for new_file in changes.new_files:
        show_new_file(io, new_file)
    for path in changes.deletions:
        io.print_renderable(render_deletion(path))


def report_result(io: InputOutput, result: ApplyResult) -> None:
    suffix = " (new)" if result.is_new_file else ""
    if result.status == APPLIED:
        io.tool_output(f"  ✓ {result.path}{suffix}")
    elif result.status == SKIPPED:
        io.tool_warning(f"  ✗ Skipped {result.path}{suffix}")
    else:
        io.tool_error(f"  ✗ {result.error}")
