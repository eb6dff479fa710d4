#!/usr/bin/env python3
"""
Thin wrapper around ``docker compose`` for the testnode project.

Short commands (run, down, ps, restart) are captured and returned as
CommandResult. Long-running ones (up, build, logs) stream their output and
are returned as a CommandResult with the exit code only, so callers check
failures the same way everywhere.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Mapping, Sequence

from .executor import CommandExecutor, CommandResult, Invocation
from .services import ServiceName, service_names


class ComposeClient:
    """Build and run ``docker compose`` invocations rooted in a work directory."""

    def __init__(
        self,
        executor: CommandExecutor,
        work_dir: Path | str,
        compose_file: str | None = None,
        project_name: str | None = None,
        sink: Callable[[str], None] | None = None,
    ) -> None:
        self.executor = executor
        self.work_dir = str(work_dir)
        self.compose_file = compose_file
        self.project_name = project_name
        self.sink = sink

    def _base_args(self) -> list[str]:
        args = ['compose']
        if self.compose_file:
            args += ['-f', self.compose_file]
        if self.project_name:
            args += ['-p', self.project_name]
        return args

    def invocation(self, args: Sequence[str], timeout: float | None = None) -> Invocation:
        return Invocation(
            command='docker',
            args=tuple(self._base_args() + list(args)),
            cwd=self.work_dir,
            timeout=timeout,
        )

    def _capture(self, args: Sequence[str], timeout: float | None = None) -> CommandResult:
        return self.executor.run(self.invocation(args, timeout))

    def _stream(self, args: Sequence[str], timeout: float | None = None) -> CommandResult:
        code = self.executor.stream(self.invocation(args, timeout), self.sink)
        return CommandResult(stdout='', stderr='', exit_code=code)

    def _run_args(
        self,
        service: ServiceName | str,
        command: Sequence[str],
        env: Mapping[str, str] | None,
        entrypoint: str | None,
    ) -> list[str]:
        args = ['run', '--rm']
        for key, value in (env or {}).items():
            args += ['-e', f'{key}={value}']
        if entrypoint:
            args += ['--entrypoint', entrypoint]
        args.append(str(service))
        args += list(command)
        return args

    def run(
        self,
        service: ServiceName | str,
        command: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        entrypoint: str | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """One-off ``docker compose run --rm`` in a service container."""
        return self._capture(self._run_args(service, command, env, entrypoint), timeout)

    def spawn_run(self, service: ServiceName | str, command: Sequence[str] = ()) -> None:
        """Start a ``docker compose run --rm`` in the background without waiting."""
        self.executor.spawn_detached(self.invocation(self._run_args(service, command, None, None)))

    def shell(self, service: ServiceName | str, script: str, timeout: float | None = None) -> CommandResult:
        """Run a ``sh -c`` script for steps that need redirection or globs."""
        return self.run(service, ['-c', script], entrypoint='sh', timeout=timeout)

    def up(
        self,
        services: Iterable[ServiceName | str] = (),
        detach: bool = False,
        wait: bool = False,
        no_build: bool = False,
        force_recreate: bool = False,
        remove_orphans: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        args = ['up']
        if detach:
            args.append('-d')
        if wait:
            args.append('--wait')
        if remove_orphans:
            args.append('--remove-orphans')
        if no_build:
            args.append('--no-build')
        if force_recreate:
            args.append('--force-recreate')
        args += service_names(services)
        return self._stream(args, timeout)

    def down(self, volumes: bool = False, remove_orphans: bool = False, timeout: float | None = None) -> CommandResult:
        args = ['down']
        if volumes:
            args.append('-v')
        if remove_orphans:
            args.append('--remove-orphans')
        return self._capture(args, timeout)

    def build(
        self,
        services: Iterable[ServiceName | str] = (),
        no_cache: bool = False,
        no_rm: bool = False,
    ) -> CommandResult:
        args = ['build']
        if no_cache:
            args.append('--no-cache')
        if no_rm:
            args.append('--no-rm')
        args += service_names(services)
        return self._stream(args)

    def ps(self, services: Iterable[ServiceName | str] = ()) -> CommandResult:
        return self._capture(['ps', *service_names(services)])

    def logs(self, services: Iterable[ServiceName | str] = (), follow: bool = False, tail: int | None = None) -> CommandResult:
        args = ['logs']
        if follow:
            args.append('-f')
        if tail is not None:
            args += ['--tail', str(tail)]
        args += service_names(services)
        return self._stream(args)

    def restart(self, services: Iterable[ServiceName | str], timeout: float | None = None) -> CommandResult:
        return self._capture(['restart', *service_names(services)], timeout)
