"""
Step helpers shared by the deployment workflows.

Fatal steps go through check(); the short list of best-effort steps
(ownership fixes, auxiliary contracts, restarts, network file copies) go
through best_effort(), which logs a warning and lets the run continue.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from ..context import RunContext
from ..errors import CommandError
from ..executor import CommandResult
from ..services import ServiceName

SCRIPTS = 'scripts'
ROLLUPCREATOR = 'rollupcreator'
TOKENBRIDGE = 'tokenbridge'


def check(result: CommandResult, description: str) -> CommandResult:
    """Raise CommandError (stderr verbatim) when a command failed."""
    if not result.ok:
        raise CommandError(description, result)
    return result


def best_effort(ctx: RunContext, result: CommandResult, description: str) -> bool:
    """Log a warning instead of failing; returns whether the step succeeded."""
    if result.ok:
        return True
    detail = result.stderr.strip() or f"exit code {result.exit_code}"
    ctx.console.warn(f"{description} failed (continuing)", reason=detail)
    return False


def scripts(ctx: RunContext, args: Sequence[str], description: str, timeout: float | None = None) -> CommandResult:
    """Run a fatal step in the scripts container."""
    return check(ctx.compose.run(SCRIPTS, list(args), timeout=timeout), description)


def run_service(
    ctx: RunContext,
    service: str,
    args: Sequence[str],
    description: str,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> CommandResult:
    return check(ctx.compose.run(service, list(args), env=env, timeout=timeout), description)


def shell(ctx: RunContext, service: str, script: str, description: str, timeout: float | None = None) -> CommandResult:
    return check(ctx.compose.shell(service, script, timeout=timeout), description)


def start_services(ctx: RunContext, services: Sequence[ServiceName | str], description: str) -> None:
    """Start long-running services detached; their lifetime is not tracked."""
    check(ctx.compose.up(services, detach=True), description)


def send(ctx: RunContext, layer: str, amount: str | int, to: str | None = None, sender: str | None = None, timeout: float | None = None) -> CommandResult:
    """Fund an account on l1, l2 or l3 with the scripts container."""
    args = [f'send-{layer}', '--ethamount', str(amount)]
    if sender:
        args += ['--from', sender]
    if to:
        args += ['--to', to]
    args.append('--wait')
    target = to or 'account'
    return scripts(ctx, args, f"Failed to fund {target} on {layer.upper()}", timeout=timeout)
