from __future__ import annotations

import threading
from collections.abc import Sequence
from pathlib import Path

import pytest

from git_get.core import CommandResult


class FakeRunner:
    """Records git invocations and answers them from a script.

    Responses are keyed by the git arguments (without the executable). An int
    is an exit code, a str is stdout of a successful run. Unscripted commands
    succeed. ``branch`` tracks the checked-out branch: ``rev-parse`` reports it
    and a successful ``checkout`` moves it.
    """

    def __init__(self, responses: dict | None = None, branch: str = ""):
        self.responses = dict(responses or {})
        self.branch = branch
        self.calls: list[tuple[tuple[str, ...], Path | None]] = []
        self._lock = threading.Lock()

    def run(self, args: Sequence[str], cwd: Path | None = None, capture: bool = True) -> CommandResult:
        argv = tuple(args)
        git_args = argv[1:]
        with self._lock:
            self.calls.append((git_args, cwd))

        response = self.responses.get(git_args)
        if callable(response):
            response = response(git_args, cwd)

        if response is None and git_args[:2] == ("rev-parse", "--abbrev-ref"):
            response = self.branch

        if isinstance(response, CommandResult):
            result = response
        elif isinstance(response, int):
            result = CommandResult(list(argv), response, "", "" if response == 0 else "fatal: scripted failure")
        elif isinstance(response, str):
            result = CommandResult(list(argv), 0, response + "\n")
        else:
            result = CommandResult(list(argv), 0)

        if result.ok and git_args[:1] == ("checkout",):
            self.branch = git_args[1]
        return result

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [args for args, _ in self.calls]

    def count(self, *prefix: str) -> int:
        return sum(1 for args in self.commands if args[: len(prefix)] == prefix)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_runner():
    """FakeRunner factory for tests that script git responses."""
    return FakeRunner
