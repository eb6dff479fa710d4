#!/usr/bin/env python3
"""
L3 chain deployment on top of the L2.

Runs as the last step of L2 configuration when --l3node is set: funds the
L3 operators, optionally deploys a custom fee token (and its pricer), deploys
the L3 rollup on L2, starts the L3 node, optionally deploys the L2-L3 token
bridge and funds the L3. Ownership transfer, CacheManager and the Stylus
deployer are best-effort.
"""

from __future__ import annotations

import hashlib
import json

from ..config_constants import (
    AUTHORIZE_VALIDATORS,
    BRIDGE_FUNDS_TIMEOUT,
    CONTRACT_DEPLOY_TIMEOUT,
    DEFAULT_L2_CHAIN_ID,
    L2_RPC_URL,
    L3_CHAIN_CONFIG_PATH,
    L3_CHAIN_INFO_PATH,
    L3_CHAIN_NAME,
    L3_DEPLOYED_CHAIN_INFO_PATH,
    L3_DEPLOYMENT_PATH,
    L3_MAX_DATA_SIZE,
    L3_RPC_URL,
    ROLLUP_DEPLOY_TIMEOUT,
    TOKEN_BRIDGE_DEPLOYER_SEED,
)
from ..context import L3DeployConfig, RunContext
from ..output import extract_address, extract_value, require_address
from ..services import ServiceName
from .common import ROLLUPCREATOR, SCRIPTS, TOKENBRIDGE, best_effort, run_service, scripts, send, shell, start_services
from .token_bridge import copy_network_file, deploy_token_bridge, read_rollup_address

STEP = 'deploy-l3'

FEE_TOKEN_DEPLOYER = 'user_fee_token_deployer'
TOKEN_BRIDGE_DEPLOYER = 'user_token_bridge_deployer'
L3_OPERATORS = ('validator', 'l3owner', 'l3sequencer')
FEE_TOKEN_TRANSFER_AMOUNT = 10000


def token_bridge_deployer_key() -> str:
    """Deterministic deployer key: sha256 of the deployer account name."""
    return hashlib.sha256(TOKEN_BRIDGE_DEPLOYER_SEED.encode()).hexdigest()


def fund_accounts(ctx: RunContext) -> None:
    ctx.console.step("Funding L3 users")
    for account in L3_OPERATORS:
        send(ctx, 'l2', 1000, to=account)

    ctx.console.step("Funding L2 deployers")
    deployers = [TOKEN_BRIDGE_DEPLOYER]
    if ctx.flags.l3_fee_token:
        deployers.append(FEE_TOKEN_DEPLOYER)
    for deployer in deployers:
        send(ctx, 'l1', 100, to=deployer)
        send(ctx, 'l2', 100, to=deployer)


def deploy_fee_token(ctx: RunContext) -> tuple[str | None, str | None]:
    """Deploy the custom fee token and optional pricer; returns their addresses."""
    if not ctx.flags.l3_fee_token:
        return None, None

    ctx.console.step("Deploying custom fee token")
    result = scripts(
        ctx,
        ['create-erc20', '--deployer', FEE_TOKEN_DEPLOYER,
         '--bridgeable', 'true' if ctx.flags.tokenbridge else 'false',
         '--decimals', str(ctx.flags.l3_fee_token_decimals)],
        "Failed to create fee token",
        timeout=CONTRACT_DEPLOY_TIMEOUT,
    )
    native_token = extract_address(result.stdout, 'fee token address', last_word=True)
    ctx.console.debug(f"Native token address: {native_token}")

    for recipient in ('l3owner', TOKEN_BRIDGE_DEPLOYER):
        scripts(
            ctx,
            ['transfer-erc20', '--token', native_token, '--amount', str(FEE_TOKEN_TRANSFER_AMOUNT),
             '--from', FEE_TOKEN_DEPLOYER, '--to', recipient],
            f"Failed to transfer fee tokens to {recipient}",
        )

    pricer = None
    if ctx.flags.l3_fee_token_pricer:
        ctx.console.step("Deploying fee token pricer")
        result = scripts(
            ctx, ['create-fee-token-pricer', '--deployer', FEE_TOKEN_DEPLOYER],
            "Failed to deploy fee token pricer", timeout=CONTRACT_DEPLOY_TIMEOUT,
        )
        pricer = extract_address(result.stdout, 'fee token pricer address', last_word=True)
        ctx.console.debug(f"Fee token pricer address: {pricer}")

    return native_token, pricer


def l3_rollup_env(ctx: RunContext, config: L3DeployConfig) -> dict[str, str]:
    env = {
        'DEPLOYER_PRIVKEY': config.l3_owner_key,
        'PARENT_CHAIN_RPC': L2_RPC_URL,
        'PARENT_CHAIN_ID': str(DEFAULT_L2_CHAIN_ID),
        'CHILD_CHAIN_NAME': L3_CHAIN_NAME,
        'MAX_DATA_SIZE': str(L3_MAX_DATA_SIZE),
        'OWNER_ADDRESS': config.l3_owner_address,
        'WASM_MODULE_ROOT': ctx.require('wasm_root', STEP),
        'SEQUENCER_ADDRESS': config.l3_sequencer_address,
        'AUTHORIZE_VALIDATORS': str(AUTHORIZE_VALIDATORS),
        'CHILD_CHAIN_CONFIG_PATH': L3_CHAIN_CONFIG_PATH,
        'CHAIN_DEPLOYMENT_INFO': L3_DEPLOYMENT_PATH,
        'CHILD_CHAIN_INFO': L3_DEPLOYED_CHAIN_INFO_PATH,
    }
    if config.native_token_address:
        env['FEE_TOKEN_ADDRESS'] = config.native_token_address
    if config.fee_token_pricer_address:
        env['FEE_TOKEN_PRICER_ADDRESS'] = config.fee_token_pricer_address
    return env


def deploy_l3_rollup(ctx: RunContext, config: L3DeployConfig) -> None:
    ctx.console.step("Deploying L3 rollup")
    run_service(
        ctx, ROLLUPCREATOR, ['create-rollup-testnode'], "Failed to deploy L3 rollup",
        env=l3_rollup_env(ctx, config), timeout=ROLLUP_DEPLOY_TIMEOUT,
    )
    shell(
        ctx, ROLLUPCREATOR, f"jq '[.[]]' {L3_DEPLOYED_CHAIN_INFO_PATH} > {L3_CHAIN_INFO_PATH}",
        "Failed to process L3 chain info",
    )
    ctx.console.success("L3 rollup deployed")


def _read_network_file(ctx: RunContext, filename: str) -> dict | None:
    result = ctx.compose.shell(TOKENBRIDGE, f'cat {filename}')
    if not best_effort(ctx, result, f"Reading {filename}"):
        return None
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError:
        ctx.console.warn(f"Failed to parse {filename}")
        return None


def read_l2_weth(ctx: RunContext) -> str:
    """L2 WETH from the L1-L2 bridge network file; empty without that bridge."""
    if not ctx.flags.tokenbridge:
        return ''
    network = _read_network_file(ctx, 'l1l2_network.json') or {}
    weth = ((network.get('l2Network') or {}).get('tokenBridge') or {}).get('childWeth') or ''
    return require_address(weth, 'L2 WETH address') if weth else ''


def transfer_chain_ownership(ctx: RunContext) -> None:
    ctx.console.step("Setting L3 UpgradeExecutor as chain owner")
    network = _read_network_file(ctx, 'l2l3_network.json')
    if network is None:
        return
    creator = network.get('l1TokenBridgeCreator') or ''
    if not creator:
        ctx.console.warn("No token bridge creator found in l2l3_network.json")
        return
    best_effort(
        ctx,
        ctx.compose.run(SCRIPTS, ['transfer-l3-chain-ownership', '--creator', creator]),
        "L3 chain ownership transfer",
    )


def deploy_l2_l3_token_bridge(ctx: RunContext, config: L3DeployConfig) -> None:
    if not ctx.flags.l3_token_bridge:
        return

    ctx.console.step("Deploying L2-L3 token bridge")
    deployer_key = token_bridge_deployer_key()
    rollup_address = read_rollup_address(ctx, L3_DEPLOYED_CHAIN_INFO_PATH, 'L3 rollup address')

    deploy_token_bridge(
        ctx,
        {
            'PARENT_WETH_OVERRIDE': read_l2_weth(ctx),
            'ROLLUP_OWNER_KEY': config.l3_owner_key,
            'ROLLUP_ADDRESS': rollup_address,
            'PARENT_RPC': L2_RPC_URL,
            'PARENT_KEY': deployer_key,
            'CHILD_RPC': L3_RPC_URL,
            'CHILD_KEY': deployer_key,
        },
        "Failed to deploy L3 token bridge",
    )
    copy_network_file(ctx, ['l2l3_network.json'])
    transfer_chain_ownership(ctx)
    ctx.console.success("L2-L3 token bridge deployed")


def fund_l3(ctx: RunContext, config: L3DeployConfig) -> None:
    ctx.console.step("Funding L3 accounts")
    if config.native_token_address:
        scripts(
            ctx,
            ['bridge-native-token-to-l3', '--amount', '5000', '--from', FEE_TOKEN_DEPLOYER, '--wait'],
            "Failed to bridge native token to L3",
            timeout=BRIDGE_FUNDS_TIMEOUT,
        )
        send(ctx, 'l3', 100, sender=FEE_TOKEN_DEPLOYER)
    else:
        scripts(ctx, ['bridge-to-l3', '--ethamount', '50000', '--wait'], "Failed to bridge to L3", timeout=BRIDGE_FUNDS_TIMEOUT)
    send(ctx, 'l3', 10, to='l3owner')


def deploy_l3_auxiliary_contracts(ctx: RunContext, config: L3DeployConfig) -> None:
    ctx.console.step("Deploying CacheManager on L3")
    best_effort(
        ctx,
        ctx.compose.run(
            ROLLUPCREATOR, ['deploy-cachemanager-testnode'],
            env={'CHILD_CHAIN_RPC': L3_RPC_URL, 'CHAIN_OWNER_PRIVKEY': config.l3_owner_key},
        ),
        "L3 CacheManager deployment",
    )

    ctx.console.step("Deploying Stylus deployer on L3")
    best_effort(
        ctx,
        ctx.compose.run(SCRIPTS, ['create-stylus-deployer', '--deployer', 'l3owner', '--l3']),
        "L3 Stylus deployer deployment",
    )


def deploy_l3(ctx: RunContext) -> L3DeployConfig | None:
    if not ctx.flags.l3node:
        return None

    ctx.console.info("Deploying L3 chain")
    fund_accounts(ctx)

    result = scripts(ctx, ['print-address', '--account', 'l3owner'], "Failed to get l3owner address")
    l3_owner_address = extract_address(result.stdout, 'l3owner address')

    ctx.console.step("Writing L3 chain config")
    scripts(ctx, ['--l2owner', l3_owner_address, 'write-l3-chain-config'], "Failed to write L3 chain config")

    native_token, pricer = deploy_fee_token(ctx)

    result = scripts(ctx, ['print-private-key', '--account', 'l3owner'], "Failed to get l3owner private key")
    l3_owner_key = extract_value(result.stdout, 'l3owner private key')
    result = scripts(ctx, ['print-address', '--account', 'l3sequencer'], "Failed to get l3sequencer address")
    l3_sequencer_address = extract_address(result.stdout, 'l3sequencer address')

    config = L3DeployConfig(
        l3_owner_address=l3_owner_address,
        l3_owner_key=l3_owner_key,
        l3_sequencer_address=l3_sequencer_address,
        native_token_address=native_token,
        fee_token_pricer_address=pricer,
    )

    deploy_l3_rollup(ctx, config)

    ctx.console.step("Starting L3 node")
    start_services(ctx, [ServiceName.L3NODE, ServiceName.SEQUENCER], "Failed to start L3 node")

    deploy_l2_l3_token_bridge(ctx, config)
    fund_l3(ctx, config)
    deploy_l3_auxiliary_contracts(ctx, config)

    ctx.console.success("L3 deployment complete")
    return config
