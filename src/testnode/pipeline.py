#!/usr/bin/env python3
"""
The init pipeline: phase list and the entry point that runs it.

Phase order is fixed. L3 is not a phase of its own; it runs at the end of
L2 node configuration because it needs a configured and funded L2.
"""

from __future__ import annotations

from .context import RunContext
from .scheduler import Phase, PhaseScheduler, RunSummary
from .services import calculate_services, format_services_for_compose
from .workflows import (
    build_or_fetch_images,
    cleanup_existing_state,
    configure_l2_nodes,
    deploy_l2,
    has_traffic,
    setup_l1,
    start_traffic_generators,
)
from .workflows.common import check


def launch_services(ctx: RunContext) -> None:
    services = calculate_services(ctx.flags)
    ctx.console.step(f"Starting services: {format_services_for_compose(services)}")
    check(
        ctx.compose.up(services, detach=True, wait=not ctx.flags.nowait),
        "Failed to launch services",
    )
    ctx.console.success("Services launched")


def create_init_phases() -> list[Phase[RunContext]]:
    return [
        Phase('cleanup-existing-state', cleanup_existing_state),
        Phase('build-or-fetch-images', build_or_fetch_images),
        Phase('bootstrap-l1', setup_l1),
        Phase('deploy-l2', deploy_l2),
        Phase('configure-l2-nodes', configure_l2_nodes),
        Phase('start-traffic-generators', start_traffic_generators, skip=lambda ctx: not has_traffic(ctx)),
        Phase('launch-services', launch_services, skip=lambda ctx: not ctx.flags.run),
    ]


def run_init(ctx: RunContext) -> RunSummary:
    """Run every init phase against ctx; raises PhaseError on the first failure."""
    ctx.console.info("Initializing Nitro testnode", run_id=ctx.run_id, work_dir=str(ctx.work_dir))
    scheduler = PhaseScheduler(create_init_phases(), ctx.console, run_id=ctx.run_id)
    summary = scheduler.run(ctx)
    ctx.console.success("Testnode initialization complete")
    return summary
