"""
Terminal input/output for the front ends.

All user-visible reporting goes through InputOutput so colours, plain mode and
verbosity are decided in one place.
"""

from typing import Callable, Optional

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.text import Text

from .config import OutputConfig

YES_ANSWERS = ("y", "yes", "o", "oui")


class InputOutput:
    """Console wrapper shared by the agent and chat front ends."""

    def __init__(
        self,
        output: Optional[OutputConfig] = None,
        console: Optional[Console] = None,
        input_func: Callable[[str], str] = input,
        yes_always: bool = False,
    ):
        self.output = output or OutputConfig()
        self.pretty = self.output.pretty
        self.verbose = self.output.verbose
        if console is None:
            console = Console(
                no_color=not self.pretty,
                highlight=False,
                force_terminal=None if self.pretty else False,
            )
        self.console = console
        self.input_func = input_func
        self.yes_always = yes_always

    def _style(self, color: Optional[str], bold: bool = False) -> str:
        if not self.pretty:
            return ""
        parts = []
        if bold:
            parts.append("bold")
        if color:
            parts.append(color)
        return " ".join(parts)

    def tool_output(self, message: str = "", bold: bool = False) -> None:
        self.console.print(Text(message, style=self._style(self.output.tool_output_color, bold)))

    def tool_warning(self, message: str) -> None:
        self.console.print(Text(message, style=self._style(self.output.tool_warning_color)))

    def tool_error(self, message: str) -> None:
        self.console.print(Text(message, style=self._style(self.output.tool_error_color, bold=True)))

    def assistant_output(self, message: str) -> None:
        self.console.print(Text(message, style=self._style(self.output.assistant_output_color)))

    def debug(self, message: str) -> None:
        if self.verbose:
            self.console.print(Text(message, style="dim"))

    def print_renderable(self, renderable) -> None:
        self.console.print(renderable)

    def rule(self, title: str = "") -> None:
        self.console.rule(title, style="dim")

    def prompt_ask(self, prompt: str) -> Optional[str]:
        """Read one line; returns None on end of input."""
        self.console.print(Text(prompt, style=self._style(self.output.user_input_color, bold=True)), end=" ")
        try:
            return self.input_func("")
        except (EOFError, KeyboardInterrupt):
            self.console.print()
            return None

    def confirm_ask(self, question: str, default: bool = False) -> bool:
        """Ask a yes/no question. End of input counts as the default."""
        if self.yes_always:
            self.tool_output(f"{question} [y/N] yes")
            return True

        hint = "[Y/n]" if default else "[y/N]"
        self.console.print(Text(f"{question} {hint}", style=self._style(self.output.tool_warning_color)), end=" ")
        try:
            answer = self.input_func("")
        except (EOFError, KeyboardInterrupt):
            self.console.print()
            return default

        answer = answer.strip().lower()
        if not answer:
            return default
        return answer in YES_ANSWERS

    def progress(self) -> Progress:
        """Progress bar used while indexing."""
        return Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=self.console,
            transient=True,
            disable=not self.pretty or not self.console.is_terminal,
        )
