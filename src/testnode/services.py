"""
Service topology: which docker compose services a flag set needs.

Pure functions of the FlagSet. Order is stable so that display grouping and
compose invocations are reproducible.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from .flags import FlagSet


class ServiceName(str, Enum):
    GETH = 'geth'
    SEQUENCER = 'sequencer'
    SEQUENCER_B = 'sequencer_b'
    SEQUENCER_C = 'sequencer_c'
    SEQUENCER_D = 'sequencer_d'
    REDIS = 'redis'
    POSTER = 'poster'
    POSTER_B = 'poster_b'
    POSTER_C = 'poster_c'
    STAKER_UNSAFE = 'staker-unsafe'
    VALIDATOR = 'validator'
    L3NODE = 'l3node'
    BLOCKSCOUT = 'blockscout'
    TIMEBOOST_AUCTIONEER = 'timeboost-auctioneer'
    TIMEBOOST_BID_VALIDATOR = 'timeboost-bid-validator'
    PRYSM_BEACON_CHAIN = 'prysm_beacon_chain'
    PRYSM_VALIDATOR = 'prysm_validator'
    DAS_COMMITTEE_A = 'das-committee-a'
    DAS_COMMITTEE_B = 'das-committee-b'
    DAS_MIRROR = 'das-mirror'

    def __str__(self) -> str:
        return self.value


_REDUNDANT_SEQUENCERS = (ServiceName.SEQUENCER_B, ServiceName.SEQUENCER_C, ServiceName.SEQUENCER_D)
_EXTRA_POSTERS = (ServiceName.POSTER_B, ServiceName.POSTER_C)


def calculate_services(flags: FlagSet) -> list[ServiceName]:
    """
    Compute the node services to run for a flag set.

    Simple mode folds sequencing, batch posting and staking into the primary
    sequencer: no redis, no posters, no redundant sequencers and no staker.
    --redundantsequencers and --batchposters are ignored in simple mode, so
    sequencer_b/c/d and poster_b/c never start there (the shell testnode
    started them anyway).
    """
    services = [ServiceName.SEQUENCER]

    if not flags.simple:
        services.append(ServiceName.REDIS)
        # Each redundancy level adds the next tier, never skipping one
        for level, name in enumerate(_REDUNDANT_SEQUENCERS, start=1):
            if flags.redundantsequencers >= level:
                services.append(name)

        if flags.batchposters > 0:
            services.append(ServiceName.POSTER)
        for count, name in enumerate(_EXTRA_POSTERS, start=2):
            if flags.batchposters >= count:
                services.append(name)

    if flags.validate:
        services.append(ServiceName.VALIDATOR)
    elif not flags.simple:
        services.append(ServiceName.STAKER_UNSAFE)

    if flags.l3node:
        services.append(ServiceName.L3NODE)
    if flags.blockscout:
        services.append(ServiceName.BLOCKSCOUT)
    if flags.l2_timeboost:
        services.append(ServiceName.TIMEBOOST_AUCTIONEER)
        services.append(ServiceName.TIMEBOOST_BID_VALIDATOR)

    return services


def calculate_initial_sequencer_nodes(flags: FlagSet) -> list[ServiceName]:
    """Sequencers that must be online before funding and feature setup."""
    nodes = [ServiceName.SEQUENCER]
    if flags.redundantsequencers > 0 and not flags.simple:
        nodes.append(ServiceName.SEQUENCER_B)
    return nodes


SERVICE_CATEGORIES: dict[str, tuple[ServiceName, ...]] = {
    'core': (ServiceName.GETH, ServiceName.REDIS),
    'sequencers': (ServiceName.SEQUENCER,) + _REDUNDANT_SEQUENCERS,
    'posters': (ServiceName.POSTER,) + _EXTRA_POSTERS,
    'validation': (ServiceName.VALIDATOR, ServiceName.STAKER_UNSAFE),
    'l3': (ServiceName.L3NODE,),
    'explorer': (ServiceName.BLOCKSCOUT,),
    'timeboost': (ServiceName.TIMEBOOST_AUCTIONEER, ServiceName.TIMEBOOST_BID_VALIDATOR),
}


def categorize_services(services: Iterable[ServiceName]) -> dict[str, list[ServiceName]]:
    """Group services for display; every category key is always present."""
    selected = list(services)
    return {
        category: [name for name in selected if name in members]
        for category, members in SERVICE_CATEGORIES.items()
    }


def format_services_for_compose(services: Iterable[ServiceName | str]) -> str:
    return ' '.join(str(name) for name in services)


def service_names(services: Iterable[ServiceName | str]) -> list[str]:
    """Plain strings for building command arguments."""
    return [str(name) for name in services]
