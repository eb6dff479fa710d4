#!/usr/bin/env python3
"""
Runtime dependency check run before any command touches docker.

Every testnode command drives docker compose against the docker-compose.yaml
of the work directory, so the check covers the docker CLI, the compose v2
plugin, a reachable daemon and the Python libraries the settings loader
imports lazily.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from .config_constants import DOCKER_COMPOSE_FILE

# (check command, what is missing, how to fix it)
DOCKER_CHECKS = (
    (['docker', '--version'], 'docker CLI', 'https://docs.docker.com/engine/install/'),
    (['docker', 'compose', 'version'], 'docker compose v2 plugin (runs docker-compose.yaml)',
     'https://docs.docker.com/compose/install/'),
    (['docker', 'info', '--format', '{{.ServerVersion}}'], 'reachable docker daemon',
     'start dockerd or point DOCKER_HOST at a running daemon'),
)

CHECK_TIMEOUT_SECONDS = 10


def _command_ok(command: list[str]) -> bool:
    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=CHECK_TIMEOUT_SECONDS)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0


def check_runtime_dependencies(work_dir: Path | str | None = None) -> None:
    """
    Exit 1 with install hints when docker or a settings library is unusable.

    A work directory without docker-compose.yaml only warns: settings may
    point compose at a different file.
    """
    # Allow tests to bypass dependency checking
    if os.getenv('SKIP_DEPENDENCY_CHECK') == '1':
        return

    missing = []
    for command, what, hint in DOCKER_CHECKS:
        if not _command_ok(command):
            missing.append((what, hint))
            # Later checks need the CLI itself
            if command[1] == '--version':
                break

    try:
        import jinja2  # noqa: F401 - Import check only
    except ImportError:
        missing.append(('jinja2 (renders testnode settings templates)', 'pip install jinja2'))

    try:
        import tomli_w  # noqa: F401 - Import check only
    except ImportError:
        missing.append(('tomli_w (writes testnode.toml)', 'pip install tomli_w'))

    if work_dir is not None and not (Path(work_dir) / DOCKER_COMPOSE_FILE).exists():
        print(f"[WARN] No {DOCKER_COMPOSE_FILE} in {work_dir}; "
              f"run from the testnode checkout or pass -C PATH", flush=True)

    if missing:
        print("[ERROR] The testnode cannot drive docker compose yet:", flush=True)
        for what, hint in missing:
            print(f"  ❌ {what}", flush=True)
            print(f"     Fix: {hint}", flush=True)
        sys.exit(1)
