"""
Shared fixtures: a scripted executor that records every command instead of
running docker, and a RunContext wired to it.
"""

import io
from pathlib import Path

import pytest
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from testnode.compose import ComposeClient  # noqa: E402
from testnode.console import Console  # noqa: E402
from testnode.context import RunContext  # noqa: E402
from testnode.docker import DockerClient  # noqa: E402
from testnode.executor import CommandResult  # noqa: E402
from testnode.flags import FlagSet  # noqa: E402
from testnode.settings import TestnodeSettings  # noqa: E402

DEFAULT_ADDRESS = "0x" + "ab" * 20


class FakeExecutor:
    """
    Records invocations and answers from a rule list.

    A rule matches when its needle is a substring of the rendered command
    line. Rules added later win. Unmatched commands succeed and print
    DEFAULT_ADDRESS so address reads work out of the box.
    """

    def __init__(self, default_stdout: str = DEFAULT_ADDRESS + "\n"):
        self.default_stdout = default_stdout
        self.rules = []
        self.invocations = []
        self.spawned = []

    def respond(self, needle, stdout="", stderr="", exit_code=0):
        self.rules.insert(0, (needle, CommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code)))

    def fail(self, needle, stderr="boom", exit_code=1):
        self.respond(needle, stderr=stderr, exit_code=exit_code)

    def _result(self, invocation):
        display = invocation.display()
        for needle, result in self.rules:
            if needle in display:
                return result
        return CommandResult(stdout=self.default_stdout, stderr="", exit_code=0)

    def run(self, invocation):
        self.invocations.append(invocation)
        return self._result(invocation)

    def stream(self, invocation, sink=None):
        self.invocations.append(invocation)
        return self._result(invocation).exit_code

    def spawn_detached(self, invocation):
        self.invocations.append(invocation)
        self.spawned.append(invocation)

    @property
    def commands(self):
        return [invocation.display() for invocation in self.invocations]

    def count(self, needle):
        return sum(1 for command in self.commands if needle in command)

    def find(self, needle):
        return [invocation for invocation in self.invocations if needle in invocation.display()]

    def index(self, needle):
        """Position of the first command containing needle."""
        for position, command in enumerate(self.commands):
            if needle in command:
                return position
        raise AssertionError(f"No command containing {needle!r}; ran: {self.commands}")


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def console():
    return Console(verbose=True, stream=io.StringIO(), color=False)


@pytest.fixture
def make_context(tmp_path, executor, console):
    def _make(**flag_changes):
        settings = TestnodeSettings()
        ctx = RunContext(
            flags=FlagSet(**flag_changes),
            work_dir=tmp_path,
            compose=ComposeClient(
                executor,
                tmp_path,
                compose_file=settings.compose_file,
                project_name=settings.project_name,
                sink=console.write,
            ),
            docker=DockerClient(executor, tmp_path, sink=console.write),
            console=console,
            settings=settings,
        )
        ctx.sleep = lambda seconds: None
        return ctx

    return _make
