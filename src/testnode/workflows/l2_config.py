#!/usr/bin/env python3
"""
L2 node configuration and optional features.

Writes node configs, brings up redis and the initial sequencers, funds the
L2, then runs the optional feature setups in order: Timeboost, the L1-L2
token bridge, the post-deploy contracts and finally the L3 chain.
"""

from __future__ import annotations

from ..config_constants import (
    BRIDGE_FUNDS_TIMEOUT,
    DEV_PRIVATE_KEY,
    L1_RPC_URL,
    L2_DEPLOYED_CHAIN_INFO_PATH,
    L2_RPC_URL,
    TOKEN_BRIDGE_SETTLE_SECONDS,
)
from ..context import RunContext
from ..services import ServiceName, calculate_initial_sequencer_nodes
from .common import ROLLUPCREATOR, SCRIPTS, best_effort, scripts, send, start_services
from .l3 import deploy_l3
from .timeboost import setup_timeboost
from .token_bridge import copy_network_file, deploy_token_bridge, read_rollup_address

STEP = 'configure-l2-nodes'

# Sending to the zero address on both layers works around gas estimation
# failures on a freshly started chain
ZERO_ADDRESS_ACCOUNT = 'address_0x0000000000000000000000000000000000000000'


def node_config_args(ctx: RunContext) -> list[str]:
    args = []
    if ctx.flags.simple:
        args.append('--simple')
    if ctx.flags.l2_anytrust and ctx.anytrust is not None:
        args += ctx.anytrust.node_config_args()
    if ctx.flags.l2_timeboost:
        args.append('--timeboost')
    return args


def write_node_configs(ctx: RunContext) -> None:
    ctx.console.step("Writing node configs")
    if ctx.flags.l2_anytrust:
        ctx.require('anytrust', STEP)
    scripts(ctx, ['write-config', *node_config_args(ctx)], "Failed to write node configs")


def initialize_redis(ctx: RunContext) -> None:
    if ctx.flags.simple:
        ctx.console.debug("Skipping redis init (simple mode)")
        return
    ctx.console.step("Initializing redis")
    start_services(ctx, [ServiceName.REDIS], "Failed to start redis")
    scripts(
        ctx, ['redis-init', '--redundancy', str(ctx.flags.redundantsequencers)],
        "Failed to initialize redis",
    )


def start_sequencers_and_fund(ctx: RunContext) -> None:
    nodes = calculate_initial_sequencer_nodes(ctx.flags)
    ctx.console.step(f"Starting initial sequencer nodes: {', '.join(str(n) for n in nodes)}")
    start_services(ctx, nodes, "Failed to start sequencer nodes")

    ctx.console.step("Funding L2 funnel and dev key")
    scripts(ctx, ['bridge-funds', '--ethamount', '100000', '--wait'], "Failed to bridge funds", timeout=BRIDGE_FUNDS_TIMEOUT)
    send(ctx, 'l2', 100, to='l2owner')


def deploy_l1_l2_token_bridge(ctx: RunContext) -> None:
    if not ctx.flags.tokenbridge:
        return

    ctx.console.step("Deploying L1-L2 token bridge")
    owner_key = ctx.require('l2_owner_key', STEP)
    rollup_address = read_rollup_address(ctx, L2_DEPLOYED_CHAIN_INFO_PATH, 'L2 rollup address')

    ctx.console.debug(f"Waiting {TOKEN_BRIDGE_SETTLE_SECONDS}s before token bridge deploy")
    ctx.sleep(TOKEN_BRIDGE_SETTLE_SECONDS)

    deploy_token_bridge(
        ctx,
        {
            'ROLLUP_OWNER_KEY': owner_key,
            'ROLLUP_ADDRESS': rollup_address,
            'PARENT_KEY': DEV_PRIVATE_KEY,
            'PARENT_RPC': L1_RPC_URL,
            'CHILD_KEY': DEV_PRIVATE_KEY,
            'CHILD_RPC': L2_RPC_URL,
        },
        "Failed to deploy token bridge",
    )
    copy_network_file(ctx, ['l1l2_network.json', 'localNetwork.json'])
    ctx.console.success("L1-L2 token bridge deployed")


def deploy_post_deploy_contracts(ctx: RunContext) -> None:
    """CacheManager, Stylus deployer and the gas workaround; all best-effort."""
    owner_key = ctx.require('l2_owner_key', STEP)

    ctx.console.step("Deploying CacheManager on L2")
    best_effort(
        ctx,
        ctx.compose.run(
            ROLLUPCREATOR, ['deploy-cachemanager-testnode'],
            env={'CHILD_CHAIN_RPC': L2_RPC_URL, 'CHAIN_OWNER_PRIVKEY': owner_key},
        ),
        "CacheManager deployment",
    )

    ctx.console.step("Deploying Stylus deployer on L2")
    best_effort(
        ctx,
        ctx.compose.run(SCRIPTS, ['create-stylus-deployer', '--deployer', 'l2owner']),
        "Stylus deployer deployment",
    )

    ctx.console.step("Applying gas estimation workaround")
    for layer in ('l1', 'l2'):
        best_effort(
            ctx,
            ctx.compose.run(SCRIPTS, [f'send-{layer}', '--ethamount', '1', '--to', ZERO_ADDRESS_ACCOUNT, '--wait']),
            f"Gas estimation workaround on {layer.upper()}",
        )


def configure_l2_nodes(ctx: RunContext) -> None:
    write_node_configs(ctx)
    initialize_redis(ctx)
    start_sequencers_and_fund(ctx)

    ctx.timeboost = setup_timeboost(ctx)
    deploy_l1_l2_token_bridge(ctx)
    deploy_post_deploy_contracts(ctx)
    ctx.l3 = deploy_l3(ctx)

    ctx.console.success("L2 configuration complete")
