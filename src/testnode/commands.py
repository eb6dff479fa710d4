#!/usr/bin/env python3
"""
Command handlers behind the CLI subcommands.

Each handler takes already parsed values, does its work through the compose
and docker clients, and returns a process exit code. Argument parsing lives
in cli.py.
"""

from __future__ import annotations

import re
import sys
import time
from pathlib import Path
from typing import Callable, Sequence

from .compose import ComposeClient
from .console import Console, configure_logging
from .context import RunContext
from .docker import DockerClient
from .executor import CommandExecutor
from .flags import FlagSet, derive_init_flags
from .pipeline import run_init
from .scheduler import RunSummary
from .services import SERVICE_CATEGORIES, calculate_services, categorize_services, format_services_for_compose
from .settings import (
    TestnodeSettings,
    load_settings,
    render_settings,
    write_rendered_settings,
)
from .validation import ValidationResult, validate_flags
from .workflows.common import SCRIPTS

RECLAIMED_SPACE_RE = re.compile(r'Total reclaimed space:\s*(.+)')

CATEGORY_TITLES = {
    'sequencers': 'Sequencers',
    'posters': 'Batch Posters',
    'validation': 'Validation',
    'l3': 'L3',
    'explorer': 'Block Explorer',
    'timeboost': 'Timeboost',
}


def build_context(
    flags: FlagSet,
    work_dir: Path | str,
    console: Console,
    executor: CommandExecutor | None = None,
    settings: TestnodeSettings | None = None,
) -> RunContext:
    """Wire settings, executor and docker clients into a fresh RunContext."""
    work_dir = Path(work_dir).resolve()
    settings = settings if settings is not None else load_settings(work_dir)
    if not console.verbose:
        configure_logging(settings.log_level)
    executor = executor if executor is not None else CommandExecutor(echo=console.command)
    compose = ComposeClient(
        executor,
        work_dir,
        compose_file=settings.compose_file,
        project_name=settings.project_name,
        sink=console.write,
    )
    docker = DockerClient(executor, work_dir, sink=console.write)
    return RunContext(
        flags=flags,
        work_dir=work_dir,
        compose=compose,
        docker=docker,
        console=console,
        settings=settings,
    )


def is_noninteractive() -> bool:
    # Treat non-tty execution as non-interactive to prevent blocking in automation.
    try:
        return not sys.stdin.isatty()
    except (AttributeError, ValueError):
        return True


def confirm(
    console: Console,
    question: str,
    assume_yes: bool = False,
    prompt: Callable[[str], str] = input,
    interactive: Callable[[], bool] | None = None,
) -> bool:
    """Ask a yes/no question. Without a terminal the answer is no unless assume_yes."""
    if assume_yes:
        return True
    interactive = interactive or (lambda: not is_noninteractive())
    if not interactive():
        console.warn("Not running interactively; pass --force to skip confirmation")
        return False
    response = prompt(f"{question} (y/n): ")
    return response.strip().lower() in ('y', 'yes')


def report_validation(console: Console, result: ValidationResult) -> bool:
    """Print every validation error and warning; returns result.valid."""
    for issue in result.errors:
        if issue.field:
            console.error(issue.message, flag=issue.field)
        else:
            console.error(issue.message)
    for issue in result.warnings:
        console.warn(issue.message)
    return result.valid


def print_summary(console: Console, summary: RunSummary) -> None:
    console.info("=" * 70)
    console.info(f"Run ID: {summary.run_id}")
    console.info(f"Duration: {summary.duration_seconds}s")
    console.info(f"Phases executed: {len(summary.executed)}")
    if summary.skipped:
        console.info(f"Phases skipped: {', '.join(summary.skipped)}")
    if console.warnings:
        console.info(f"Warnings: {len(console.warnings)}")
    console.info("=" * 70)


def init_command(
    flags: FlagSet,
    work_dir: Path | str,
    console: Console,
    executor: CommandExecutor | None = None,
    settings: TestnodeSettings | None = None,
    prompt: Callable[[str], str] = input,
    interactive: Callable[[], bool] | None = None,
) -> int:
    """Reinitialize the testnode from scratch: wipe state, deploy every chain, start services."""
    flags = derive_init_flags(flags)
    if not report_validation(console, validate_flags(flags)):
        console.error("Invalid flag configuration")
        return 1

    question = "This removes all existing testnode containers and volumes. Continue?"
    if not confirm(console, question, flags.force, prompt=prompt, interactive=interactive):
        console.info("Aborted")
        return 1

    ctx = build_context(flags, work_dir, console, executor, settings)
    summary = run_init(ctx)
    print_summary(console, summary)
    return 0


def describe_services(console: Console, services: Sequence) -> None:
    groups = categorize_services(services)
    for category in SERVICE_CATEGORIES:
        members = groups.get(category)
        if not members or category not in CATEGORY_TITLES:
            continue
        console.step(f"{CATEGORY_TITLES[category]}: {format_services_for_compose(members)}")


def start_command(
    flags: FlagSet,
    work_dir: Path | str,
    console: Console,
    executor: CommandExecutor | None = None,
    settings: TestnodeSettings | None = None,
) -> int:
    """Start the services of an already initialized testnode."""
    if not report_validation(console, validate_flags(flags)):
        console.error("Invalid flag configuration")
        return 1

    ctx = build_context(flags, work_dir, console, executor, settings)
    services = calculate_services(flags)
    console.info("Launching Nitro testnode")
    describe_services(console, services)
    console.info("If things go wrong - use init to create a new chain")

    result = ctx.compose.up(services, detach=flags.detach, wait=flags.detach and not flags.nowait)
    if not result.ok:
        console.error(f"Failed to start services (exit code {result.exit_code})")
        return result.exit_code
    if flags.detach:
        console.success("Testnode services started")
    return 0


def stop_command(
    work_dir: Path | str,
    console: Console,
    clean: bool = False,
    executor: CommandExecutor | None = None,
    settings: TestnodeSettings | None = None,
) -> int:
    ctx = build_context(FlagSet(), work_dir, console, executor, settings)
    console.step("Stopping testnode services" + (" and removing volumes" if clean else ""))
    result = ctx.compose.down(volumes=clean, remove_orphans=True)
    if not result.ok:
        console.error("Failed to stop services", reason=result.stderr.strip())
        return result.exit_code
    console.success("Testnode services stopped")
    return 0


def status_command(
    work_dir: Path | str,
    console: Console,
    executor: CommandExecutor | None = None,
    settings: TestnodeSettings | None = None,
) -> int:
    ctx = build_context(FlagSet(), work_dir, console, executor, settings)
    result = ctx.compose.ps()
    if not result.ok:
        console.error("Failed to query service status", reason=result.stderr.strip())
        return result.exit_code
    if not result.stdout.strip():
        console.warn("No services are currently running")
        return 0
    console.write(result.stdout if result.stdout.endswith('\n') else result.stdout + '\n')
    return 0


def clean_command(
    work_dir: Path | str,
    console: Console,
    force: bool = False,
    prune_images: bool = False,
    executor: CommandExecutor | None = None,
    settings: TestnodeSettings | None = None,
    prompt: Callable[[str], str] = input,
    interactive: Callable[[], bool] | None = None,
) -> int:
    """Stop everything and remove the project's volumes (and optionally unused images)."""
    question = "This removes all testnode data and volumes. Continue?"
    if not confirm(console, question, force, prompt=prompt, interactive=interactive):
        console.info("Aborted")
        return 1

    ctx = build_context(FlagSet(), work_dir, console, executor, settings)
    console.info("Cleaning testnode data")

    console.step("Stopping services")
    result = ctx.compose.down(volumes=True, remove_orphans=True)
    if not result.ok:
        console.warn("Some services may not have stopped cleanly", reason=result.stderr.strip())

    console.step("Finding testnode volumes")
    volumes = ctx.docker.list_volumes(prefix=ctx.settings.project_name)
    if not volumes:
        console.info("No testnode volumes found")
    else:
        console.step(f"Removing {len(volumes)} volume(s)")
        removed, failed = ctx.docker.remove_volumes(volumes, force=True)
        if removed:
            console.success(f"Removed {len(removed)} volume(s)")
        if failed:
            console.warn(f"Failed to remove {len(failed)} volume(s)", volumes=', '.join(failed))

    if prune_images:
        console.step("Pruning unused images")
        result = ctx.docker.prune_images(all_images=True)
        match = RECLAIMED_SPACE_RE.search(result.stdout)
        claimed = match.group(1).strip() if match else '0B'
        if not result.ok:
            console.warn("Image prune failed", reason=result.stderr.strip())
        elif claimed != '0B':
            console.success(f"Reclaimed {claimed} of disk space")
        else:
            console.info("No unused images to prune")

    console.success("Testnode cleanup complete")
    return 0


def script_command(
    command: Sequence[str],
    work_dir: Path | str,
    console: Console,
    executor: CommandExecutor | None = None,
    settings: TestnodeSettings | None = None,
) -> int:
    """Run one command of the scripts container and pass its exit code through."""
    if not command:
        console.error("No command specified")
        return 1

    ctx = build_context(FlagSet(), work_dir, console, executor, settings)
    started = time.time()
    result = ctx.compose.run(SCRIPTS, list(command))
    if result.stdout:
        console.write(result.stdout)
    if result.stderr:
        print(result.stderr, end='', file=sys.stderr, flush=True)
    if not result.ok:
        console.error(f"Script '{command[0]}' failed with exit code {result.exit_code}")
        return result.exit_code
    console.debug(f"Script '{command[0]}' finished in {time.time() - started:.1f}s")
    return 0


def logs_command(
    services: Sequence[str],
    work_dir: Path | str,
    console: Console,
    follow: bool = False,
    tail: int | None = None,
    executor: CommandExecutor | None = None,
    settings: TestnodeSettings | None = None,
) -> int:
    """Stream service logs; no services means all of them."""
    ctx = build_context(FlagSet(), work_dir, console, executor, settings)
    result = ctx.compose.logs(list(services), follow=follow, tail=tail)
    if not result.ok:
        console.error(f"Failed to read logs (exit code {result.exit_code})")
        return result.exit_code
    return 0


def config_command(work_dir: Path | str, console: Console, write: bool = False) -> int:
    """Print the merged settings, or write them to testnode.toml."""
    import tomli_w

    config = render_settings(work_dir)
    # Fail here rather than later in a command that needs the values
    TestnodeSettings.from_config(config)
    if write:
        path = write_rendered_settings(work_dir, config)
        console.success(f"Wrote {path}")
        return 0
    console.write(tomli_w.dumps(config))
    return 0
