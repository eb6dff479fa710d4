#!/usr/bin/env python3
"""
Timeboost express lane auction setup.

Deploys a bidding token and the auction contract, funds the test bidders,
turns timeboost on in the running sequencer config and restarts the initial
sequencers. The ownership fix and the restart are best-effort.
"""

from __future__ import annotations

import re

from ..config_constants import CONTAINER_OWNER, CONTRACT_DEPLOY_TIMEOUT, RESTART_TIMEOUT, SEQUENCER_CONFIG_PATH
from ..context import RunContext, TimeboostConfig
from ..errors import ParseError
from ..output import extract_address
from ..services import ServiceName, calculate_initial_sequencer_nodes
from .common import SCRIPTS, best_effort, scripts, send, shell

AUCTIONEER = 'auctioneer'
BIDDERS = ('user_alice', 'user_bob')
BIDDER_TOKEN_AMOUNT = 10000

_STRICT_ADDRESS = re.compile(r'^0x[0-9a-fA-F]+$')

# Matches the still-disabled timeboost toggle of the sequencer node config
_TIMEBOOST_TOGGLE = r'\("execution":{"sequencer":{"enable":true,"dangerous":{"timeboost":{"enable":\)false'


def _strict(address: str, label: str) -> str:
    """Addresses spliced into shell text must be plain hex."""
    if not _STRICT_ADDRESS.match(address):
        raise ParseError(label, address, "expected a hex address")
    return address


def sequencer_patch_script(auction_contract: str, auctioneer: str) -> str:
    """sed script that enables timeboost and injects both addresses."""
    auction_contract = _strict(auction_contract, 'auction contract address')
    auctioneer = _strict(auctioneer, 'auctioneer address')
    replacement = (
        rf'\1true,"auction-contract-address":"{auction_contract}",'
        rf'"auctioneer-address":"{auctioneer}"'
    )
    return f"sed -i 's/{_TIMEBOOST_TOGGLE}/{replacement}/' {SEQUENCER_CONFIG_PATH}"


def deploy_bidding_token(ctx: RunContext) -> str:
    ctx.console.step("Deploying bidding token")
    result = scripts(
        ctx, ['create-erc20', '--deployer', AUCTIONEER],
        "Failed to deploy bidding token", timeout=CONTRACT_DEPLOY_TIMEOUT,
    )
    return extract_address(result.stdout, 'bidding token address', last_word=True)


def deploy_auction_contract(ctx: RunContext, bidding_token: str) -> str:
    ctx.console.step("Deploying express lane auction contract")
    result = scripts(
        ctx, ['deploy-express-lane-auction', '--bidding-token', bidding_token],
        "Failed to deploy auction contract", timeout=CONTRACT_DEPLOY_TIMEOUT,
    )
    return extract_address(result.stdout, 'auction contract address', last_word=True)


def fund_bidders(ctx: RunContext, bidding_token: str) -> None:
    ctx.console.step("Funding timeboost test accounts")
    for bidder in BIDDERS:
        send(ctx, 'l2', 10, to=bidder)
    for bidder in BIDDERS:
        scripts(
            ctx,
            ['transfer-erc20', '--token', bidding_token, '--amount', str(BIDDER_TOKEN_AMOUNT),
             '--from', AUCTIONEER, '--to', bidder],
            f"Failed to transfer bidding tokens to {bidder}",
        )


def restart_sequencers(ctx: RunContext) -> None:
    nodes = calculate_initial_sequencer_nodes(ctx.flags)
    ctx.console.step(f"Restarting sequencers: {', '.join(str(n) for n in nodes)}")
    best_effort(ctx, ctx.compose.restart(nodes, timeout=RESTART_TIMEOUT), "Sequencer restart")


def setup_timeboost(ctx: RunContext) -> TimeboostConfig | None:
    if not ctx.flags.l2_timeboost:
        ctx.console.debug("Skipping Timeboost setup (not enabled)")
        return None

    ctx.console.info("Setting up Timeboost express lane auction")
    send(ctx, 'l2', 100, to=AUCTIONEER)

    bidding_token = deploy_bidding_token(ctx)
    auction_contract = deploy_auction_contract(ctx, bidding_token)

    result = scripts(ctx, ['print-address', '--account', AUCTIONEER], "Failed to get auctioneer address")
    auctioneer = extract_address(result.stdout, 'auctioneer address')

    ctx.console.info("Timeboost contracts deployed", bidding_token=bidding_token, auction_contract=auction_contract)

    scripts(
        ctx, ['write-timeboost-configs', '--auction-contract', auction_contract],
        "Failed to write timeboost configs",
    )
    best_effort(
        ctx,
        ctx.compose.shell(ServiceName.TIMEBOOST_AUCTIONEER, f'chown -R {CONTAINER_OWNER} /data'),
        "Auctioneer data ownership fix",
    )

    fund_bidders(ctx, bidding_token)

    ctx.console.step("Enabling timeboost in sequencer config")
    shell(
        ctx, SCRIPTS, sequencer_patch_script(auction_contract, auctioneer),
        "Failed to update sequencer config",
    )
    restart_sequencers(ctx)

    ctx.console.success("Timeboost setup complete")
    return TimeboostConfig(
        bidding_token_address=bidding_token,
        auction_contract_address=auction_contract,
        auctioneer_address=auctioneer,
    )
