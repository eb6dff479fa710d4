#!/usr/bin/env python3
"""
Build or fetch the docker images a run needs.

Dev images are built from source when requested, utility images are built
with compose (or buildx bake on CI), and the node images are pulled and
tagged under the names the compose file expects.
"""

from __future__ import annotations

import os
from pathlib import Path

from ..config_constants import (
    BLOCKSCOUT_DEV_IMAGE,
    BLOCKSCOUT_TESTNODE_TAG,
    DOCKER_COMPOSE_CI_CACHE_FILE,
    DOCKER_COMPOSE_FILE,
    NITRO_NODE_DEV_IMAGE,
    NITRO_NODE_TESTNODE_TAG,
)
from ..context import RunContext
from ..services import calculate_services
from .common import ROLLUPCREATOR, SCRIPTS, TOKENBRIDGE, check


def utility_images(ctx: RunContext) -> list[str]:
    images = [SCRIPTS, ROLLUPCREATOR]
    if ctx.flags.tokenbridge or ctx.flags.l3_token_bridge or ctx.flags.ci:
        images.append(TOKENBRIDGE)
    return images


def nitro_source_dir(ctx: RunContext) -> str:
    source = Path(ctx.settings.nitro_src)
    if not source.is_absolute():
        source = ctx.work_dir / source
    return str(source)


def build_dev_nitro(ctx: RunContext) -> None:
    source = nitro_source_dir(ctx)
    ctx.console.step("Building Nitro from source")
    ctx.console.debug(f"NITRO_SRC: {source}")
    check(
        ctx.docker.build(source, NITRO_NODE_DEV_IMAGE, target=NITRO_NODE_DEV_IMAGE),
        "Failed to build dev nitro image",
    )


def build_dev_blockscout(ctx: RunContext) -> None:
    ctx.console.step("Building Blockscout")
    blockscout_dir = ctx.work_dir / 'blockscout'
    check(
        ctx.docker.build(
            str(blockscout_dir), BLOCKSCOUT_DEV_IMAGE,
            dockerfile=str(blockscout_dir / 'docker' / 'Dockerfile'),
        ),
        "Failed to build dev blockscout image",
    )


def build_utility_images(ctx: RunContext) -> None:
    images = utility_images(ctx)
    ctx.console.step(f"Building utility images: {', '.join(images)}")
    if os.environ.get('CI'):
        ctx.console.debug("CI detected, using buildx bake for utility images")
        check(
            ctx.docker.buildx_bake(
                [DOCKER_COMPOSE_FILE, DOCKER_COMPOSE_CI_CACHE_FILE], images, allow='fs=/tmp',
            ),
            "Failed to build utility images with buildx bake",
        )
    else:
        check(
            ctx.compose.build(images, no_cache=ctx.flags.force_build_utils, no_rm=True),
            "Failed to build utility images",
        )


def prepare_image(ctx: RunContext, image: str, tag: str, dev: bool, dev_image: str, label: str) -> None:
    """Tag the dev build, or pull the release image when missing and tag it."""
    if dev:
        ctx.console.step(f"Tagging dev {label} image")
        check(ctx.docker.tag(f'{dev_image}:latest', tag), f"Failed to tag dev {label} image")
        return

    ctx.console.step(f"Preparing {label} image: {image}")
    if ctx.docker.image_exists(image):
        ctx.console.debug("Image already exists, skipping pull")
    else:
        check(ctx.docker.pull(image), f"Failed to pull {label} image: {image}")
    check(ctx.docker.tag(image, tag), f"Failed to tag {label} image")


def build_or_fetch_images(ctx: RunContext) -> None:
    flags = ctx.flags
    if flags.dev_nitro and flags.build_dev_nitro:
        build_dev_nitro(ctx)
    if flags.dev_blockscout and flags.build_dev_blockscout and flags.blockscout:
        build_dev_blockscout(ctx)
    if flags.build_utils:
        build_utility_images(ctx)

    prepare_image(ctx, ctx.settings.nitro_image, NITRO_NODE_TESTNODE_TAG, flags.dev_nitro, NITRO_NODE_DEV_IMAGE, 'nitro node')
    if flags.blockscout:
        prepare_image(ctx, ctx.settings.blockscout_image, BLOCKSCOUT_TESTNODE_TAG, flags.dev_blockscout, BLOCKSCOUT_DEV_IMAGE, 'blockscout')

    if flags.build_node_images:
        ctx.console.step("Building node images")
        check(ctx.compose.build(calculate_services(flags), no_rm=True), "Failed to build node images")

    ctx.console.success("Docker images ready")
