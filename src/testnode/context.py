"""
Per-run state shared by the pipeline phases.

RunContext holds the flags, collaborators and every value discovered while
deploying (addresses, keys, sub-workflow results). Later steps read values
through require() so that a missing value fails loudly instead of being
passed on as an empty string.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .compose import ComposeClient
from .console import Console
from .docker import DockerClient
from .errors import PreconditionError
from .flags import FlagSet
from .settings import TestnodeSettings


@dataclass(frozen=True)
class AnyTrustConfig:
    """Committee public keys and the registered keyset."""

    das_bls_a: str
    das_bls_b: str
    keyset_hex: str = ''

    def node_config_args(self) -> list[str]:
        return ['--anytrust', '--dasBlsA', self.das_bls_a, '--dasBlsB', self.das_bls_b]


@dataclass(frozen=True)
class TimeboostConfig:
    bidding_token_address: str
    auction_contract_address: str
    auctioneer_address: str


@dataclass(frozen=True)
class L3DeployConfig:
    l3_owner_address: str
    l3_owner_key: str
    l3_sequencer_address: str
    native_token_address: str | None = None
    fee_token_pricer_address: str | None = None


@dataclass
class RunContext:
    flags: FlagSet
    work_dir: Path
    compose: ComposeClient
    docker: DockerClient
    console: Console
    settings: TestnodeSettings = field(default_factory=TestnodeSettings)
    sleep: Callable[[float], None] = time.sleep

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    start_time: float = field(default_factory=time.time)

    # Discovered while deploying
    l2_owner_address: str | None = None
    l2_owner_key: str | None = None
    sequencer_address: str | None = None
    wasm_root: str | None = None
    anytrust: AnyTrustConfig | None = None
    timeboost: TimeboostConfig | None = None
    l3: L3DeployConfig | None = None

    @property
    def l1_chain_id(self) -> int:
        return self.settings.l1_chain_id

    def require(self, name: str, step: str | None = None) -> Any:
        """Return a discovered value or raise PreconditionError when it is unset."""
        value = getattr(self, name)
        if value is None or value == '':
            raise PreconditionError(name, step)
        return value
