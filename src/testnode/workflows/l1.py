#!/usr/bin/env python3
"""
L1 bootstrap.

Writes accounts and genesis, initialises and starts geth, waits for it to
sync, funds the three rollup operator accounts and records the L2 owner
address for the deployment phase. Every step is fatal.
"""

from __future__ import annotations

from ..config_constants import CONTAINER_OWNER, GETH_GENESIS_PATH, L1_RPC_URL, SYNC_WAIT_TIMEOUT
from ..context import RunContext
from ..errors import CommandError
from ..output import extract_address
from ..services import ServiceName
from .common import SCRIPTS, check, scripts, send, shell, start_services
from .prysm import setup_prysm

FUNDED_L1_ACCOUNTS = ('validator', 'sequencer', 'l2owner')
L1_FUNDING_AMOUNT = 1000


class SyncError(CommandError):
    """geth did not report ready within the sync timeout."""


def write_accounts(ctx: RunContext) -> None:
    ctx.console.step("Writing accounts and keystore")
    scripts(ctx, ['write-accounts'], "Failed to write accounts")
    shell(ctx, 'geth', 'echo passphrase > /datadir/passphrase', "Failed to create passphrase")
    shell(ctx, 'geth', f'chown -R {CONTAINER_OWNER} /keystore', "Failed to fix keystore ownership")
    shell(ctx, 'geth', f'chown -R {CONTAINER_OWNER} /config', "Failed to fix config ownership")


def init_geth(ctx: RunContext) -> None:
    ctx.console.step("Initializing geth from genesis")
    check(
        ctx.compose.run('geth', ['init', '--state.scheme', 'hash', '--datadir', '/datadir/', GETH_GENESIS_PATH]),
        "Failed to initialize geth",
    )


def start_geth(ctx: RunContext) -> None:
    ctx.console.step("Starting geth")
    start_services(ctx, [ServiceName.GETH], "Failed to start geth")

    ctx.console.step("Waiting for geth to sync")
    result = ctx.compose.run(SCRIPTS, ['wait-for-sync', '--url', L1_RPC_URL], timeout=SYNC_WAIT_TIMEOUT)
    if not result.ok:
        raise SyncError("Geth sync failed", result)


def fund_l1_accounts(ctx: RunContext) -> None:
    ctx.console.step("Funding validator, sequencer and l2owner on L1")
    for account in FUNDED_L1_ACCOUNTS:
        send(ctx, 'l1', L1_FUNDING_AMOUNT, to=account)


def read_l2_owner_address(ctx: RunContext) -> str:
    result = scripts(ctx, ['print-address', '--account', 'l2owner'], "Failed to get l2owner address")
    return extract_address(result.stdout, 'l2owner address')


def setup_l1(ctx: RunContext) -> None:
    write_accounts(ctx)

    ctx.console.step("Writing geth genesis config")
    scripts(ctx, ['write-geth-genesis-config'], "Failed to write geth genesis config")

    setup_prysm(ctx)
    init_geth(ctx)
    start_geth(ctx)
    fund_l1_accounts(ctx)

    ctx.l2_owner_address = read_l2_owner_address(ctx)
    ctx.console.debug(f"L2 owner address: {ctx.l2_owner_address}")
    ctx.console.success("L1 chain ready")
