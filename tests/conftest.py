from __future__ import annotations

import io

import pytest
from rich.console import Console

from companion.config import OutputConfig
from companion.io import InputOutput


class FakeClient:
    """Chat client returning canned replies and recording every request."""

    def __init__(self, *responses: str) -> None:
        self.responses = list(responses)
        self.calls: list = []

    def chat(self, messages):
        self.calls.append([dict(m) for m in messages])
        return self.responses.pop(0)


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def make_io():
    """Build an InputOutput writing to a buffer and reading scripted answers."""

    def factory(*answers: str, pretty: bool = False, yes_always: bool = False) -> InputOutput:
        console = Console(file=io.StringIO(), width=120, no_color=True, highlight=False)
        replies = iter(answers)

        def input_func(prompt: str) -> str:
            try:
                return next(replies)
            except StopIteration:
                raise EOFError from None

        return InputOutput(
            OutputConfig(pretty=pretty),
            console=console,
            input_func=input_func,
            yes_always=yes_always,
        )

    return factory


def output_of(io_: InputOutput) -> str:
    return io_.console.file.getvalue()


@pytest.fixture
def read_output():
    return output_of
