#!/usr/bin/env python3
"""
Command execution boundary.

Every external process the orchestrator starts goes through CommandExecutor.
Commands are argument vectors (never a shell string). A non-zero exit code is
the single failure signal; timeouts and missing binaries are reported as
exit codes too (124 and 127) so callers only ever check one thing.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import threading
from dataclasses import dataclass, field
from typing import Callable, Mapping

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124
NOT_FOUND_EXIT_CODE = 127
STREAM_DRAIN_SECONDS = 1.0


@dataclass(frozen=True)
class Invocation:
    """Structured description of one external command."""

    command: str
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)
    cwd: str | None = None
    timeout: float | None = None

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]

    def display(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandExecutor:
    """Run external commands with subprocess."""

    def __init__(self, echo: Callable[[str], None] | None = None, base_env: Mapping[str, str] | None = None) -> None:
        self.echo = echo
        self.base_env = dict(base_env) if base_env is not None else None

    def _env(self, invocation: Invocation) -> dict[str, str] | None:
        if not invocation.env and self.base_env is None:
            return None
        env = dict(self.base_env if self.base_env is not None else os.environ)
        env.update(invocation.env)
        return env

    def _announce(self, invocation: Invocation) -> None:
        logger.debug(f"exec: {invocation.display()} (cwd={invocation.cwd}, timeout={invocation.timeout})")
        if self.echo:
            self.echo(invocation.display())

    def run(self, invocation: Invocation) -> CommandResult:
        """Run to completion and capture stdout and stderr."""
        self._announce(invocation)
        try:
            completed = subprocess.run(
                invocation.argv,
                cwd=invocation.cwd,
                env=self._env(invocation),
                capture_output=True,
                text=True,
                timeout=invocation.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            stdout = exc.stdout.decode() if isinstance(exc.stdout, bytes) else (exc.stdout or '')
            return CommandResult(
                stdout=stdout,
                stderr=f"Command timed out after {invocation.timeout}s: {invocation.display()}",
                exit_code=TIMEOUT_EXIT_CODE,
            )
        except FileNotFoundError:
            return CommandResult(
                stdout='',
                stderr=f"Command not found: {invocation.command}",
                exit_code=NOT_FOUND_EXIT_CODE,
            )

        logger.debug(f"exit {completed.returncode}: {invocation.display()}")
        return CommandResult(
            stdout=completed.stdout or '',
            stderr=completed.stderr or '',
            exit_code=completed.returncode,
        )

    def stream(self, invocation: Invocation, sink: Callable[[str], None] | None = None) -> int:
        """Print output live while the command runs and return its exit code."""
        self._announce(invocation)
        write = sink or (lambda line: print(line, end='', flush=True))
        try:
            process = subprocess.Popen(
                invocation.argv,
                cwd=invocation.cwd,
                env=self._env(invocation),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,  # Line-buffered
            )
        except FileNotFoundError:
            write(f"Command not found: {invocation.command}\n")
            return NOT_FOUND_EXIT_CODE

        # Output is pumped on a worker so the deadline holds while the child is silent
        stopped = threading.Event()

        def pump() -> None:
            if process.stdout is None:
                return
            for line in process.stdout:
                if stopped.is_set():
                    break
                write(line)

        reader = threading.Thread(target=pump, daemon=True)
        reader.start()

        try:
            code = process.wait(timeout=invocation.timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
            # Grandchildren may still hold the pipe open
            reader.join(timeout=STREAM_DRAIN_SECONDS)
            stopped.set()
            write(f"Command timed out after {invocation.timeout}s: {invocation.display()}\n")
            return TIMEOUT_EXIT_CODE

        reader.join()
        return code

    def spawn_detached(self, invocation: Invocation) -> None:
        """Start a background process that the caller never waits on."""
        self._announce(invocation)
        subprocess.Popen(
            invocation.argv,
            cwd=invocation.cwd,
            env=self._env(invocation),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
