"""Nitro testnode deployment orchestrator."""

from __future__ import annotations

import os

from .flags import FlagSet, derive_init_flags
from .services import ServiceName, calculate_initial_sequencer_nodes, calculate_services
from .validation import ValidationResult, assert_valid_flags, validate_flags


def _build_version() -> str:
	override = os.getenv("TESTNODE_BUILD_VERSION")
	if override:
		return override
	return "0.1.0"


__version__ = _build_version()

__all__ = [
	"FlagSet",
	"ServiceName",
	"ValidationResult",
	"assert_valid_flags",
	"calculate_initial_sequencer_nodes",
	"calculate_services",
	"derive_init_flags",
	"validate_flags",
]
