#!/usr/bin/env python3
"""
Plain ``docker`` commands: images, volumes and labelled containers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Mapping, Sequence

from .executor import CommandExecutor, CommandResult, Invocation


def _lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


class DockerClient:
    def __init__(
        self,
        executor: CommandExecutor,
        work_dir: Path | str,
        sink: Callable[[str], None] | None = None,
    ) -> None:
        self.executor = executor
        self.work_dir = str(work_dir)
        self.sink = sink

    def invocation(self, args: Sequence[str], env: Mapping[str, str] | None = None, timeout: float | None = None) -> Invocation:
        return Invocation(command='docker', args=tuple(args), env=dict(env or {}), cwd=self.work_dir, timeout=timeout)

    def _capture(self, args: Sequence[str], timeout: float | None = None) -> CommandResult:
        return self.executor.run(self.invocation(args, timeout=timeout))

    def _stream(self, args: Sequence[str], env: Mapping[str, str] | None = None) -> CommandResult:
        code = self.executor.stream(self.invocation(args, env=env), self.sink)
        return CommandResult(stdout='', stderr='', exit_code=code)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def image_exists(self, image: str) -> bool:
        return self._capture(['image', 'inspect', image]).ok

    def pull(self, image: str, platform: str | None = None) -> CommandResult:
        args = ['pull']
        if platform:
            args += ['--platform', platform]
        args.append(image)
        return self._stream(args)

    def tag(self, source: str, target: str) -> CommandResult:
        return self._capture(['tag', source, target])

    def build(
        self,
        context: str,
        tag: str,
        dockerfile: str | None = None,
        target: str | None = None,
        build_args: Mapping[str, str] | None = None,
        no_cache: bool = False,
    ) -> CommandResult:
        args = ['build']
        if dockerfile:
            args += ['-f', dockerfile]
        args += ['-t', tag]
        for key, value in (build_args or {}).items():
            args += ['--build-arg', f'{key}={value}']
        if target:
            args += ['--target', target]
        if no_cache:
            args.append('--no-cache')
        args.append(context)
        return self._stream(args)

    def buildx_bake(
        self,
        files: Iterable[str],
        targets: Iterable[str],
        allow: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        args = ['buildx', 'bake']
        if allow:
            args.append(f'--allow={allow}')
        for file in files:
            args += ['--file', file]
        args += list(targets)
        return self._stream(args, env=env)

    def prune_images(self, all_images: bool = False) -> CommandResult:
        args = ['image', 'prune', '-f']
        if all_images:
            args.append('-a')
        return self._capture(args)

    # ------------------------------------------------------------------
    # Volumes
    # ------------------------------------------------------------------

    def list_volumes(self, prefix: str | None = None, label: str | None = None) -> list[str]:
        args = ['volume', 'ls', '-q']
        if label:
            args += ['--filter', f'label={label}']
        result = self._capture(args)
        if not result.ok:
            return []
        names = _lines(result.stdout)
        if prefix:
            names = [name for name in names if name.startswith(prefix)]
        return names

    def remove_volumes(self, names: Iterable[str], force: bool = False) -> tuple[list[str], list[str]]:
        """Remove volumes one at a time; returns (removed, failed)."""
        removed: list[str] = []
        failed: list[str] = []
        for name in names:
            args = ['volume', 'rm']
            if force:
                args.append('-f')
            args.append(name)
            if self._capture(args).ok:
                removed.append(name)
            else:
                failed.append(name)
        return removed, failed

    def prune_volumes(self, label: str | None = None) -> CommandResult:
        args = ['volume', 'prune', '-f']
        if label:
            args += ['--filter', f'label={label}']
        return self._capture(args)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def list_containers(self, label: str, include_stopped: bool = True) -> list[str]:
        args = ['container', 'ls']
        if include_stopped:
            args.append('-a')
        args += ['--filter', f'label={label}', '-q']
        result = self._capture(args)
        if not result.ok:
            return []
        return _lines(result.stdout)

    def remove_containers(self, container_ids: Sequence[str], force: bool = True) -> CommandResult:
        args = ['rm']
        if force:
            args.append('-f')
        args += list(container_ids)
        return self._capture(args)
