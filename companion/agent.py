"""
One-shot agent: index, ask once, review, apply.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .changes import ChangeSet
from .indexer import CodebaseIndex
from .io import InputOutput
from .parser import parse_response
from .policy import FAILED, ApplyResult, ExecutionMode, apply_changes
from .prompts import AGENT_SYSTEM_PROMPT, agent_user_prompt
from .review import report_result, show_changes, show_operation, show_plan


class AgentError(Exception):
    """Raised when the agent cannot complete a run."""


@dataclass
class AgentConfig:
    cwd: Path
    instruction: str
    mode: ExecutionMode
    include_extensions: Optional[List[str]] = None
    exclude_dirs: List[str] = field(default_factory=list)
    max_files: int = 50
    dry_run: bool = False
    context_tokens: int = 30000
    encoding: str = "utf-8"

    def __post_init__(self):
        # Plan mode never writes
        if self.mode is ExecutionMode.PLAN:
            self.dry_run = True


def index_codebase(io: InputOutput, cwd, include_extensions, exclude_dirs, max_files) -> CodebaseIndex:
    """Index with a progress bar and print the summary."""
    io.tool_output("Indexing project...", bold=True)
    with io.progress() as progress:
        task = progress.add_task("files indexed", total=max_files)
        index = CodebaseIndex.index(
            cwd,
            include_extensions=include_extensions,
            exclude_dirs=exclude_dirs,
            max_files=max_files,
            progress=lambda count: progress.update(task, completed=count),
        )
    io.tool_output(index.summary())
    return index


class Agent:
    def __init__(self, config: AgentConfig, client, io: InputOutput):
        self.config = config
        self.client = client
        self.io = io

    def run(self) -> Optional[List[ApplyResult]]:
        """
        Run the agent once.

        Returns the per-item apply results, or None when nothing was applied
        (plan mode, dry run or no proposed file operation).
        """
        config = self.config
        io = self.io

        io.tool_output("COMPANION CHAT - Agent mode", bold=True)
        io.rule()
        io.tool_output(f"Project: {config.cwd}")
        io.tool_output(f"Instruction: {config.instruction}")
        io.tool_output(f"Mode: {config.mode.value}")
        io.tool_output()

        index = index_codebase(
            io, config.cwd, config.include_extensions, config.exclude_dirs, config.max_files
        )
        if not index.files:
            raise AgentError("No files found to analyse")

        io.tool_output("Analysing...", bold=True)
        context = index.first_context_chunk(config.context_tokens)
        messages = [
            {"role": "system", "content": AGENT_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": agent_user_prompt(
                    context, config.instruction, plan_only=config.mode is ExecutionMode.PLAN
                ),
            },
        ]
        with io.console.status("Waiting for the model..."):
            response = self.client.chat(messages)

        changes = parse_response(response, index.root, encoding=config.encoding)
        return self.review_and_apply(changes, response)

    def review_and_apply(self, changes: ChangeSet, response: str = "") -> Optional[List[ApplyResult]]:
        config = self.config
        io = self.io

        show_plan(io, changes)

        if config.mode is ExecutionMode.PLAN:
            if not changes.plan and response:
                io.assistant_output(response)
            io.tool_output("Plan generated (plan mode, no changes applied)")
            return None

        if changes.is_empty():
            if response:
                io.assistant_output(response)
            io.tool_warning("No file changes proposed.")
            return None

        io.tool_output()
        io.tool_output(f"Proposed changes: {changes.summary()}", bold=True)

        # Interactive mode shows each diff right before its confirmation
        if config.mode is ExecutionMode.AUTO or config.dry_run:
            show_changes(io, changes)

        if config.dry_run:
            io.tool_warning("Dry run: no changes applied")
            return None

        if config.mode is ExecutionMode.AUTO:
            io.tool_output("Applying all changes...", bold=True)

        def confirm(op, question):
            show_operation(io, op)
            return io.confirm_ask(question)

        results = apply_changes(
            changes,
            config.mode,
            confirm=confirm,
            report=lambda result: report_result(io, result),
            encoding=config.encoding,
        )

        failed = [r for r in results if r.status == FAILED]
        if failed:
            io.tool_error(f"{len(failed)} change(s) could not be applied.")
        else:
            io.tool_output("Done!", bold=True)
        return results
