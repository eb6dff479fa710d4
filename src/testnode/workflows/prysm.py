"""Proof-of-stake consensus layer for the L1 (``--pos``)."""

from __future__ import annotations

from ..config_constants import BEACON_GENESIS_TIMEOUT
from ..context import RunContext
from ..services import ServiceName
from .common import check, scripts, start_services


def setup_prysm(ctx: RunContext) -> None:
    if not ctx.flags.pos:
        ctx.console.debug("Skipping Prysm setup (PoS not enabled)")
        return

    ctx.console.step("Writing Prysm config")
    scripts(ctx, ['write-prysm-config'], "Failed to write Prysm config")

    ctx.console.step("Creating Prysm genesis")
    check(
        ctx.compose.run('create_beacon_chain_genesis', timeout=BEACON_GENESIS_TIMEOUT),
        "Failed to create beacon chain genesis",
    )

    ctx.console.step("Starting Prysm beacon chain and validator")
    start_services(ctx, [ServiceName.PRYSM_BEACON_CHAIN], "Failed to start Prysm beacon chain")
    start_services(ctx, [ServiceName.PRYSM_VALIDATOR], "Failed to start Prysm validator")
    ctx.console.success("Prysm PoS setup complete")
