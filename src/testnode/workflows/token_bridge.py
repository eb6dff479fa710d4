"""
Token bridge deployment steps shared by the L1-L2 and L2-L3 bridges.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from ..config_constants import TOKEN_BRIDGE_DEPLOY_TIMEOUT
from ..context import RunContext
from ..output import extract_address
from .common import TOKENBRIDGE, best_effort, run_service, shell


def read_rollup_address(ctx: RunContext, chain_info_path: str, label: str) -> str:
    """Read ``.[0].rollup.rollup`` from a deployed chain info file."""
    result = shell(
        ctx, 'poster', f"jq -r '.[0].rollup.rollup' {chain_info_path}",
        f"Failed to get {label}",
    )
    return extract_address(result.stdout, label)


def deploy_token_bridge(ctx: RunContext, env: Mapping[str, str], description: str) -> None:
    run_service(
        ctx, TOKENBRIDGE, ['deploy:local:token-bridge'], description,
        env=env, timeout=TOKEN_BRIDGE_DEPLOY_TIMEOUT,
    )


def copy_network_file(ctx: RunContext, targets: Sequence[str]) -> bool:
    """Copy the bridge's network.json to each target name; best-effort."""
    copies = ' && '.join(f'cp network.json {target}' for target in targets)
    return best_effort(
        ctx,
        ctx.compose.shell(TOKENBRIDGE, f'cat network.json && {copies}'),
        "Copying token bridge network files",
    )
