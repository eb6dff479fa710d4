"""
Feature flags for a testnode run.

A FlagSet is built once from the command line and never mutated afterwards;
derived variants are produced with replace().
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, fields
from typing import Any, Mapping

from .config_constants import DEFAULT_FEE_TOKEN_DECIMALS
from .errors import ConfigurationError


@dataclass(frozen=True)
class FlagSet:
    """Every switch that shapes topology, deployment and runtime behaviour."""

    # Initialization
    init: bool = False
    force: bool = False

    # Dev mode
    dev_nitro: bool = False
    dev_blockscout: bool = False
    dev_contracts: bool = False

    # Build control
    build: bool = False
    build_dev_nitro: bool = False
    build_dev_blockscout: bool = False
    build_utils: bool = False
    force_build_utils: bool = False
    build_node_images: bool = False

    # Features
    validate: bool = False
    blockscout: bool = False
    tokenbridge: bool = False
    l3node: bool = False
    l3_fee_token: bool = False
    l3_fee_token_pricer: bool = False
    l3_fee_token_decimals: int = DEFAULT_FEE_TOKEN_DECIMALS
    l3_token_bridge: bool = False
    l2_anytrust: bool = False
    l2_timeboost: bool = False

    # Scaling
    batchposters: int = 1
    redundantsequencers: int = 0

    # Consensus
    pos: bool = False

    # Runtime
    run: bool = True
    detach: bool = False
    nowait: bool = False
    simple: bool = True

    # Traffic
    l1_traffic: bool = True
    l2_traffic: bool = True
    l3_traffic: bool = True

    ci: bool = False
    verbose: bool = False

    def replace(self, **changes: Any) -> "FlagSet":
        return dataclasses.replace(self, **changes)

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "FlagSet":
        """
        Build a FlagSet from a plain mapping (argparse namespace dict, TOML table).

        Dashes in keys are accepted as underscores. Unknown keys are rejected
        so that a typo never silently falls back to a default.
        """
        known = set(cls.field_names())
        values: dict[str, Any] = {}
        unknown: list[str] = []
        for key, value in mapping.items():
            name = key.replace('-', '_')
            if name not in known:
                unknown.append(key)
                continue
            values[name] = value
        if unknown:
            raise ConfigurationError([f"Unknown flag: {key}" for key in sorted(unknown)])
        return cls(**values)

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def derive_init_flags(flags: FlagSet) -> FlagSet:
    """
    Normalise flags for the init command.

    Dev builds, validation, more than one batch poster and redundant
    sequencers all need the full (non-simple) topology. Init always runs
    the resulting services in the foreground.
    """
    simple = flags.simple
    if flags.dev_nitro or flags.dev_blockscout:
        simple = False
    if flags.validate:
        simple = False
    if flags.batchposters > 1:
        simple = False
    if flags.redundantsequencers > 0:
        simple = False

    return flags.replace(
        init=True,
        run=True,
        detach=False,
        nowait=False,
        simple=simple,
    )
