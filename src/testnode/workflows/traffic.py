"""
Background traffic generators.

Each enabled layer funds its traffic account (fatal on failure) and then
starts a detached ``send-lN`` loop. The loops are not supervised; their
failures never reach the pipeline.
"""

from __future__ import annotations

from typing import NamedTuple

from ..config_constants import BACKGROUND_TRAFFIC_ITERATIONS
from ..context import RunContext
from .common import SCRIPTS, send


class TrafficProfile(NamedTuple):
    layer: str
    account: str
    funding: int
    delay_ms: int


L1_TRAFFIC = TrafficProfile('l1', 'user_l1user', 1000, 1000)
L2_TRAFFIC = TrafficProfile('l2', 'user_traffic_generator', 100, 500)
L3_TRAFFIC = TrafficProfile('l3', 'user_traffic_generator', 10, 5000)


def traffic_command(profile: TrafficProfile) -> list[str]:
    return [
        f'send-{profile.layer}', '--ethamount', '0.0001',
        '--from', profile.account, '--to', profile.account,
        '--wait', '--delay', str(profile.delay_ms),
        '--times', str(BACKGROUND_TRAFFIC_ITERATIONS),
    ]


def enabled_profiles(ctx: RunContext) -> list[TrafficProfile]:
    profiles = []
    if ctx.flags.l1_traffic:
        profiles.append(L1_TRAFFIC)
    if ctx.flags.l2_traffic:
        profiles.append(L2_TRAFFIC)
    # No L3 chain, nothing to send to
    if ctx.flags.l3_traffic and ctx.flags.l3node:
        profiles.append(L3_TRAFFIC)
    return profiles


def has_traffic(ctx: RunContext) -> bool:
    return ctx.flags.l1_traffic or ctx.flags.l2_traffic or ctx.flags.l3_traffic


def start_traffic_generators(ctx: RunContext) -> None:
    for profile in enabled_profiles(ctx):
        layer = profile.layer.upper()
        ctx.console.step(f"Setting up {layer} traffic generator")
        send(ctx, profile.layer, profile.funding, to=profile.account)
        ctx.compose.spawn_run(SCRIPTS, traffic_command(profile))
        ctx.console.debug(f"{layer} traffic started in background")
    ctx.console.success("Traffic generators started")
