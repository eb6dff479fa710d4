"""
Remove containers and volumes left over from a previous run.

Everything here is best-effort: a fresh machine has nothing to remove and
that must not stop the init.
"""

from __future__ import annotations

from ..context import RunContext


def cleanup_existing_state(ctx: RunContext) -> None:
    ctx.console.step("Removing old data")
    label = ctx.settings.project_label

    result = ctx.compose.down()
    if not result.ok:
        ctx.console.debug(f"Compose down warning: {result.stderr.strip()}")

    containers = ctx.docker.list_containers(label)
    if containers:
        ctx.console.debug(f"Removing {len(containers)} leftover container(s)")
        ctx.docker.remove_containers(containers)

    ctx.docker.prune_volumes(label)

    volumes = ctx.docker.list_volumes(label=label)
    if volumes:
        ctx.console.debug(f"Removing {len(volumes)} leftover volume(s)")
        _, failed = ctx.docker.remove_volumes(volumes)
        if failed:
            ctx.console.debug(f"Could not remove volumes: {', '.join(failed)}")

    ctx.console.success("Cleanup complete")
