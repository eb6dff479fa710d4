#!/usr/bin/env python3
"""
Data availability committee (AnyTrust) setup.

Two committees (a and b) each get a BLS keypair; a keyset built from both
public keys is registered on-chain and the committee and mirror services
are started. Every step is fatal.
"""

from __future__ import annotations

import re
import shlex

from ..config_constants import (
    CONTAINER_OWNER,
    DAS_COMMITTEES,
    DAS_DIRECTORIES,
    DAS_KEYSET_CONFIG_PATH,
    DAS_KEYSET_HEX_PATH,
    KEYSET_TIMEOUT,
)
from ..context import AnyTrustConfig, RunContext
from ..errors import ParseError
from ..output import extract_labeled_value, extract_value
from ..services import ServiceName
from .common import check, scripts, shell, start_services

DATOOL = 'datool'
HEX_PATTERN = re.compile(r'^(0x)?[0-9a-fA-F]+$')


def create_directories(ctx: RunContext) -> None:
    ctx.console.step("Creating DAS directories")
    shell(ctx, DATOOL, 'mkdir -p ' + ' '.join(DAS_DIRECTORIES), "Failed to create DAS directories")
    shell(ctx, DATOOL, f'chown -R {CONTAINER_OWNER} /das*', "Failed to fix DAS directory ownership")


def generate_keys(ctx: RunContext) -> None:
    for committee in DAS_COMMITTEES:
        ctx.console.step(f"Generating BLS keys for committee {committee.upper()}")
        check(
            ctx.compose.run(DATOOL, ['keygen', '--dir', f'/das-committee-{committee}/keys']),
            f"Failed to generate keys for committee {committee.upper()}",
        )


def read_public_key(ctx: RunContext, committee: str) -> str:
    result = shell(
        ctx, DATOOL, f'cat /das-committee-{committee}/keys/das_bls.pub',
        f"Failed to read BLS public key for committee {committee.upper()}",
    )
    return extract_value(result.stdout, f'committee {committee.upper()} BLS public key')


def write_keyset(ctx: RunContext, das_bls_a: str, das_bls_b: str) -> str:
    """Write the keyset config, dump its digest and store it as hex."""
    ctx.console.step("Writing keyset config")
    scripts(
        ctx,
        ['write-l2-das-keyset-config', '--dasBlsA', das_bls_a, '--dasBlsB', das_bls_b],
        "Failed to write keyset config",
    )

    result = check(
        ctx.compose.run(DATOOL, ['dumpkeyset', '--conf.file', DAS_KEYSET_CONFIG_PATH]),
        "Failed to dump keyset",
    )
    keyset_hex = extract_labeled_value(result.stdout, 'keyset', 'Keyset:')
    if not HEX_PATTERN.match(keyset_hex):
        raise ParseError('keyset', result.stdout, "keyset is not hex encoded")

    shell(
        ctx, DATOOL, f'printf %s {shlex.quote(keyset_hex)} > {DAS_KEYSET_HEX_PATH}',
        "Failed to write keyset hex",
    )
    return keyset_hex


def setup_anytrust(ctx: RunContext) -> AnyTrustConfig | None:
    """Run the committee setup when AnyTrust is enabled; returns its config."""
    if not ctx.flags.l2_anytrust:
        return None

    ctx.console.info("Setting up AnyTrust data availability committee")
    create_directories(ctx)
    generate_keys(ctx)

    ctx.console.step("Writing committee and mirror configs")
    scripts(ctx, ['write-l2-das-committee-config'], "Failed to write DAS committee config")
    scripts(ctx, ['write-l2-das-mirror-config'], "Failed to write DAS mirror config")

    das_bls_a = read_public_key(ctx, 'a')
    das_bls_b = read_public_key(ctx, 'b')
    keyset_hex = write_keyset(ctx, das_bls_a, das_bls_b)

    ctx.console.step("Registering keyset on-chain")
    scripts(ctx, ['set-valid-keyset'], "Failed to set valid keyset", timeout=KEYSET_TIMEOUT)

    if ctx.flags.run:
        ctx.console.step("Starting DAS committee and mirror")
        start_services(
            ctx,
            [ServiceName.DAS_COMMITTEE_A, ServiceName.DAS_COMMITTEE_B, ServiceName.DAS_MIRROR],
            "Failed to start DAS services",
        )

    ctx.console.success("AnyTrust setup complete")
    return AnyTrustConfig(das_bls_a=das_bls_a, das_bls_b=das_bls_b, keyset_hex=keyset_hex)
