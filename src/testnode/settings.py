#!/usr/bin/env python3
"""
Settings loader.

Settings come from Jinja2-rendered TOML:

1. Packaged defaults (testnode.defaults.toml.j2)
2. Optional overrides in the work directory (testnode.toml.j2)

Both are rendered with the process environment available as ``env``, parsed
with tomllib and deep merged key by key (overrides win). The merged result
can be written back as testnode.toml with tomli_w for inspection.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from .config_constants import (
    BLOCKSCOUT_VERSION,
    DEFAULT_L1_CHAIN_ID,
    DOCKER_COMPOSE_FILE,
    NITRO_NODE_VERSION,
    SETTINGS_DEFAULTS,
    SETTINGS_OVERRIDES,
    SETTINGS_RENDERED,
)
from .errors import SettingsError

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class TestnodeSettings:
    """Resolved settings for one work directory."""

    __test__ = False

    project_name: str = 'nitro-testnode'
    compose_file: str = DOCKER_COMPOSE_FILE
    log_level: str = 'INFO'
    nitro_image: str = NITRO_NODE_VERSION
    blockscout_image: str = BLOCKSCOUT_VERSION
    l1_chain_id: int = DEFAULT_L1_CHAIN_ID
    nitro_src: str = '..'

    @property
    def project_label(self) -> str:
        """Docker label that marks every container and volume of the project."""
        return f'com.docker.compose.project={self.project_name}'

    @classmethod
    def from_config(cls, config: dict) -> "TestnodeSettings":
        deploy = config.get('deploy', {})
        images = config.get('images', {})
        chain = config.get('chain', {})
        paths = config.get('paths', {})
        defaults = cls()
        try:
            l1_chain_id = int(chain.get('l1_chain_id', defaults.l1_chain_id))
        except (TypeError, ValueError) as e:
            raise SettingsError(f"chain.l1_chain_id must be an integer: {chain.get('l1_chain_id')!r}") from e
        return cls(
            project_name=str(deploy.get('project_name', defaults.project_name)),
            compose_file=str(deploy.get('compose_file', defaults.compose_file)),
            log_level=str(deploy.get('log_level', defaults.log_level)).upper(),
            nitro_image=str(images.get('nitro', defaults.nitro_image)),
            blockscout_image=str(images.get('blockscout', defaults.blockscout_image)),
            l1_chain_id=l1_chain_id,
            nitro_src=str(paths.get('nitro_src', defaults.nitro_src)),
        )


def build_template_context() -> dict:
    """
    Build Jinja2 template context with env.
    """
    return {"env": dict(os.environ)}


def render_jinja2(template_path: Path, context: dict) -> str:
    logger.debug(f"Rendering Jinja2 template: {template_path}")
    if not template_path.exists():
        raise SettingsError(f"Template file not found: {template_path}")

    from jinja2 import StrictUndefined, Template, TemplateError

    template_content = template_path.read_text()
    try:
        # Only missing top-level names fail; env lookups fall back to default()
        return Template(template_content, undefined=StrictUndefined).render(**context)
    except TemplateError as e:
        raise SettingsError(f"Failed to render {template_path}: {e}") from e


def parse_toml_string(toml_text: str, source: str) -> dict:
    """
    Parse TOML from a string with fail-fast error context.
    """
    try:
        return tomllib.loads(toml_text)
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"Failed to parse TOML from {source}: {e}") from e


def render_toml_template(template_path: Path, context: dict | None = None) -> dict:
    rendered = render_jinja2(template_path, context if context is not None else build_template_context())
    return parse_toml_string(rendered, str(template_path))


def deep_merge_configs(base: dict, overrides: dict) -> dict:
    """
    Deep merge two configs (key-level merge); values from overrides win.
    """
    result = base.copy()
    for key, value in overrides.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_configs(result[key], value)
        else:
            if key in result:
                logger.debug(f"  Override: {key} = {value} (was: {result[key]})")
            result[key] = value
    return result


def render_settings(work_dir: Path | str, defaults_path: Path | None = None) -> dict:
    """Render defaults and work-directory overrides into one config dict."""
    defaults_path = defaults_path or (PACKAGE_DIR / SETTINGS_DEFAULTS)
    context = build_template_context()
    config = render_toml_template(defaults_path, context)

    overrides_path = Path(work_dir) / SETTINGS_OVERRIDES
    if overrides_path.exists():
        logger.debug(f"Applying overrides from {overrides_path}")
        config = deep_merge_configs(config, render_toml_template(overrides_path, context))
    return config


def load_settings(work_dir: Path | str) -> TestnodeSettings:
    return TestnodeSettings.from_config(render_settings(work_dir))


def write_rendered_settings(work_dir: Path | str, config: dict) -> Path:
    """
    Write rendered TOML to disk using tomli_w.
    """
    import tomli_w

    output_path = Path(work_dir) / SETTINGS_RENDERED
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'wb') as f:
        tomli_w.dump(config, f)
    return output_path
