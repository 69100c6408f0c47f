"""
Interactive chat session (REPL) over an indexed project.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .agent import index_codebase
from .changes import ChangeSet
from .conversations import ChatStorage, SavedChat
from .indexer import CodebaseIndex, estimate_tokens
from .io import InputOutput
from .parser import parse_response
from .policy import ChatMode, ExecutionMode, apply_changes
from .prompts import chat_system_prompt
from .providers import ProviderError
from .review import report_result, show_changes, show_operation, show_plan

# Approximate context window of the chat models
MAX_CONTEXT_TOKENS = 32000

QUIT_COMMANDS = ("/quit", "/exit", "/q")
HELP_COMMANDS = ("/help", "/aide", "/h")

MODE_MESSAGES = {
    ChatMode.ASK: "ASK mode - plain questions and answers",
    ChatMode.PLAN: "PLAN mode - proposes plans without modifying files",
    ChatMode.CODE: "CODE mode - proposes changes and asks for confirmation",
    ChatMode.AUTO: "AUTO mode - applies changes automatically",
}


@dataclass
class ChatConfig:
    cwd: Path
    include_extensions: Optional[List[str]] = None
    exclude_dirs: List[str] = field(default_factory=list)
    max_files: int = 50
    context_tokens: int = 20000
    encoding: str = "utf-8"


class ChatSession:
    def __init__(
        self,
        config: ChatConfig,
        client,
        io: InputOutput,
        storage: Optional[ChatStorage] = None,
    ):
        self.config = config
        self.client = client
        self.io = io
        self.storage = storage
        self.mode = ChatMode.CODE
        self.index: Optional[CodebaseIndex] = None
        self.messages: List[Dict[str, str]] = [
            {"role": "system", "content": chat_system_prompt("")}
        ]
        self.saved: Optional[SavedChat] = None

    def estimate_tokens(self) -> int:
        return sum(estimate_tokens(m["content"]) for m in self.messages)

    def status_bar(self) -> str:
        tokens = self.estimate_tokens()
        remaining = max(MAX_CONTEXT_TOKENS - tokens, 0)
        percent = remaining * 100 // MAX_CONTEXT_TOKENS
        return (
            f"─── Mode: {self.mode} │ Tokens: ~{tokens}/{MAX_CONTEXT_TOKENS} "
            f"(~{percent}% left) ───"
        )

    def print_status_bar(self) -> None:
        self.io.tool_output()
        self.io.tool_output(self.status_bar())

    def reindex(self) -> None:
        """Build a fresh index and put its first chunk into the system message."""
        config = self.config
        self.index = index_codebase(
            self.io, config.cwd, config.include_extensions, config.exclude_dirs, config.max_files
        )
        context = self.index.first_context_chunk(config.context_tokens)
        self.messages[0] = {"role": "system", "content": chat_system_prompt(context)}

    def print_help(self) -> None:
        io = self.io
        io.tool_output()
        io.tool_output("AVAILABLE COMMANDS", bold=True)
        io.rule()
        io.tool_output("  /quit     - Quit")
        io.tool_output("  /help     - Show this help")
        io.tool_output("  /reindex  - Re-index the project")
        io.tool_output("  /clear    - Clear the conversation history")
        io.tool_output("  /save     - Save the conversation")
        io.tool_output()
        io.tool_output("MODES", bold=True)
        io.rule()
        io.tool_output("  /ask      - Plain questions and answers")
        io.tool_output("  /plan     - Proposes plans without modifying files")
        io.tool_output("  /code     - Changes with confirmation")
        io.tool_output("  /auto     - Applies changes automatically")
        io.tool_output("  /mode     - Switch to the next mode")
        io.tool_output()

    def set_mode(self, mode: ChatMode) -> None:
        self.mode = mode
        self.io.tool_output(MODE_MESSAGES[mode])

    def handle_command(self, text: str) -> Optional[bool]:
        """
        Run a slash command.

        Returns None when ``text`` is not a command, False to leave the
        loop, True to keep going.
        """
        command = text.strip().lower()
        if not command.startswith("/"):
            return None

        if command in QUIT_COMMANDS:
            self.io.tool_output("Bye!")
            return False

        if command in HELP_COMMANDS:
            self.print_help()
        elif command == "/mode":
            self.set_mode(self.mode.next())
        elif ChatMode.from_command(command) is not None:
            self.set_mode(ChatMode.from_command(command))
        elif command == "/reindex":
            self.io.tool_output("Re-indexing...", bold=True)
            self.reindex()
        elif command == "/clear":
            # Keep the system message
            del self.messages[1:]
            self.saved = None
            self.io.tool_warning("History cleared.")
        elif command == "/save":
            self.save()
        else:
            return None

        self.print_status_bar()
        return True

    def resume(self, saved: SavedChat) -> None:
        """Continue a saved conversation; its messages follow the system message."""
        self.saved = saved
        del self.messages[1:]
        self.messages.extend(dict(m) for m in saved.messages)
        self.io.tool_output(f"Resumed: {saved.title} ({saved.time_ago()})")

    def save(self) -> None:
        if self.storage is None:
            self.io.tool_warning("Conversation storage is not available.")
            return
        if self.saved is None:
            self.saved = SavedChat(project_path=str(self.config.cwd))
        self.saved.messages = [dict(m) for m in self.messages[1:]]
        self.saved.auto_title()
        self.saved.updated_at = datetime.now(timezone.utc)
        path = self.storage.save(self.saved)
        self.io.tool_output(f"Conversation saved: {self.saved.title} ({path})")

    def send(self, text: str) -> Optional[ChangeSet]:
        """Send one user message and handle the reply. Returns the parsed changes."""
        self.messages.append({"role": "user", "content": text})

        try:
            with self.io.console.status("Thinking..."):
                response = self.client.chat(list(self.messages))
        except ProviderError as e:
            # The unanswered message stays out of the history
            self.messages.pop()
            self.io.tool_error(f"Error: {e}")
            return None

        changes = None
        if self.mode is not ChatMode.ASK:
            changes = parse_response(response, self.config.cwd, encoding=self.config.encoding)

        if changes is not None and not changes.is_empty():
            self.handle_changes(changes)
        else:
            self.io.assistant_output(response)

        self.messages.append({"role": "assistant", "content": response})
        return changes

    def handle_changes(self, changes: ChangeSet) -> None:
        io = self.io
        show_plan(io, changes)

        mode = self.mode.execution_mode
        # Interactive mode shows each diff right before its confirmation
        if mode is not ExecutionMode.INTERACTIVE:
            show_changes(io, changes)

        if mode is ExecutionMode.PLAN:
            io.tool_warning("(PLAN mode - no changes applied)")
            return

        if mode is ExecutionMode.AUTO:
            io.tool_output("Applying automatically...", bold=True)

        def confirm(op, question):
            show_operation(io, op)
            return io.confirm_ask(question)

        apply_changes(
            changes,
            mode,
            confirm=confirm,
            report=lambda result: report_result(io, result),
            encoding=self.config.encoding,
        )

    def run(self) -> None:
        io = self.io
        io.tool_output("COMPANION CHAT - Chat mode", bold=True)
        io.tool_output(f"Working directory: {self.config.cwd}")
        if not io.confirm_ask("Is this directory correct?", default=True):
            io.tool_output("Pass the directory with: companion-chat chat -c /path/to/project")
            return

        self.reindex()

        io.rule()
        io.tool_output("Interactive chat. Type your instructions.", bold=True)
        io.tool_output("Commands: /quit, /help, /reindex, /clear, /save")
        io.rule()

        while True:
            text = io.prompt_ask("You >")
            if text is None:
                break
            text = text.strip()
            if not text:
                continue

            handled = self.handle_command(text)
            if handled is False:
                break
            if handled:
                continue

            self.send(text)
            self.print_status_bar()
