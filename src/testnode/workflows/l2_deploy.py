#!/usr/bin/env python3
"""
L2 rollup deployment.

Reads the sequencer address, the L2 owner key and the WASM module root,
writes the L2 chain config, deploys the rollup contracts on L1 and
normalises the deployment output into the chain info file the nodes read.
"""

from __future__ import annotations

from ..config_constants import (
    AUTHORIZE_VALIDATORS,
    L1_RPC_URL,
    L2_CHAIN_CONFIG_PATH,
    L2_CHAIN_INFO_PATH,
    L2_CHAIN_NAME,
    L2_DEPLOYED_CHAIN_INFO_PATH,
    L2_DEPLOYMENT_PATH,
    L2_MAX_DATA_SIZE,
    ROLLUP_DEPLOY_TIMEOUT,
    WASM_MODULE_ROOT_PATH,
)
from ..context import RunContext
from ..output import extract_address, extract_value
from .anytrust import setup_anytrust
from .common import ROLLUPCREATOR, run_service, scripts, shell

STEP = 'deploy-l2'


def read_sequencer_address(ctx: RunContext) -> str:
    result = scripts(ctx, ['print-address', '--account', 'sequencer'], "Failed to get sequencer address")
    return extract_address(result.stdout, 'sequencer address')


def read_l2_owner_key(ctx: RunContext) -> str:
    result = scripts(ctx, ['print-private-key', '--account', 'l2owner'], "Failed to get l2owner private key")
    return extract_value(result.stdout, 'l2owner private key')


def read_wasm_root(ctx: RunContext) -> str:
    result = shell(ctx, 'sequencer', f'cat {WASM_MODULE_ROOT_PATH}', "Failed to get WASM module root")
    return extract_value(result.stdout, 'WASM module root')


def write_l2_chain_config(ctx: RunContext) -> None:
    owner = ctx.require('l2_owner_address', STEP)
    args = ['--l2owner', owner, 'write-l2-chain-config']
    if ctx.flags.l2_anytrust:
        ctx.console.step("Writing L2 chain config (AnyTrust enabled)")
        args.append('--anytrust')
    else:
        ctx.console.step("Writing L2 chain config")
    scripts(ctx, args, "Failed to write L2 chain config")


def rollup_env(ctx: RunContext) -> dict[str, str]:
    return {
        'PARENT_CHAIN_RPC': L1_RPC_URL,
        'DEPLOYER_PRIVKEY': ctx.require('l2_owner_key', STEP),
        'PARENT_CHAIN_ID': str(ctx.l1_chain_id),
        'CHILD_CHAIN_NAME': L2_CHAIN_NAME,
        'MAX_DATA_SIZE': str(L2_MAX_DATA_SIZE),
        'OWNER_ADDRESS': ctx.require('l2_owner_address', STEP),
        'WASM_MODULE_ROOT': ctx.require('wasm_root', STEP),
        'SEQUENCER_ADDRESS': ctx.require('sequencer_address', STEP),
        'AUTHORIZE_VALIDATORS': str(AUTHORIZE_VALIDATORS),
        'CHILD_CHAIN_CONFIG_PATH': L2_CHAIN_CONFIG_PATH,
        'CHAIN_DEPLOYMENT_INFO': L2_DEPLOYMENT_PATH,
        'CHILD_CHAIN_INFO': L2_DEPLOYED_CHAIN_INFO_PATH,
    }


def deploy_rollup(ctx: RunContext) -> None:
    ctx.console.step("Deploying L2 chain")
    run_service(
        ctx, ROLLUPCREATOR, ['create-rollup-testnode'], "Failed to deploy rollup",
        env=rollup_env(ctx), timeout=ROLLUP_DEPLOY_TIMEOUT,
    )
    ctx.console.success("L2 rollup deployed")


def chain_info_filter(timeboost: bool) -> str:
    """jq program that turns the deployment output into a chain info array."""
    if timeboost:
        return '.[] | ."track-block-metadata-from"=1 | [.]'
    return '[.[]]'


def process_chain_info(ctx: RunContext) -> None:
    ctx.console.step("Processing deployed chain info")
    jq_filter = chain_info_filter(ctx.flags.l2_timeboost)
    shell(
        ctx, ROLLUPCREATOR,
        f"jq '{jq_filter}' {L2_DEPLOYED_CHAIN_INFO_PATH} > {L2_CHAIN_INFO_PATH}",
        "Failed to process deployed chain info",
    )


def deploy_l2(ctx: RunContext) -> None:
    ctx.sequencer_address = read_sequencer_address(ctx)
    ctx.console.debug(f"Sequencer address: {ctx.sequencer_address}")

    ctx.l2_owner_key = read_l2_owner_key(ctx)
    ctx.console.debug("L2 owner key retrieved")

    ctx.wasm_root = read_wasm_root(ctx)
    ctx.console.debug(f"WASM root: {ctx.wasm_root}")

    write_l2_chain_config(ctx)
    deploy_rollup(ctx)
    process_chain_info(ctx)

    ctx.anytrust = setup_anytrust(ctx)
    ctx.console.success("L2 deployment complete")
