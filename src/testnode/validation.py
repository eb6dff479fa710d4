"""
Flag combination checks.

validate_flags() is pure: it never raises and never touches the system.
Every rule runs on every call so the user sees all problems at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .config_constants import (
    DEFAULT_FEE_TOKEN_DECIMALS,
    MAX_BATCH_POSTERS,
    MAX_FEE_TOKEN_DECIMALS,
    MAX_REDUNDANT_SEQUENCERS,
    MIN_FEE_TOKEN_DECIMALS,
)
from .errors import ConfigurationError
from .flags import FlagSet


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def error_codes(self) -> set[str]:
        return {issue.code for issue in self.errors}

    @property
    def warning_codes(self) -> set[str]:
        return {issue.code for issue in self.warnings}


def _runtime_errors(flags: FlagSet) -> list[ValidationIssue]:
    errors = []
    if flags.nowait and not flags.detach:
        errors.append(ValidationIssue(
            'NOWAIT_REQUIRES_DETACH',
            '--nowait requires --detach to be provided',
            'nowait',
        ))
    return errors


def _l3_errors(flags: FlagSet) -> list[ValidationIssue]:
    errors = []
    if flags.l3_fee_token and not flags.l3node:
        errors.append(ValidationIssue(
            'L3_FEE_TOKEN_REQUIRES_L3NODE',
            '--l3-fee-token requires --l3node to be provided',
            'l3_fee_token',
        ))
    if flags.l3_fee_token_pricer and not flags.l3_fee_token:
        errors.append(ValidationIssue(
            'L3_FEE_TOKEN_PRICER_REQUIRES_FEE_TOKEN',
            '--l3-fee-token-pricer requires --l3-fee-token to be provided',
            'l3_fee_token_pricer',
        ))
    if flags.l3_fee_token_decimals != DEFAULT_FEE_TOKEN_DECIMALS and not flags.l3_fee_token:
        errors.append(ValidationIssue(
            'L3_FEE_TOKEN_DECIMALS_REQUIRES_FEE_TOKEN',
            '--l3-fee-token-decimals requires --l3-fee-token to be provided',
            'l3_fee_token_decimals',
        ))
    if flags.l3_token_bridge and not flags.l3node:
        errors.append(ValidationIssue(
            'L3_TOKEN_BRIDGE_REQUIRES_L3NODE',
            '--l3-token-bridge requires --l3node to be provided',
            'l3_token_bridge',
        ))
    return errors


def _range_errors(flags: FlagSet) -> list[ValidationIssue]:
    errors = []
    decimals = flags.l3_fee_token_decimals
    if decimals < MIN_FEE_TOKEN_DECIMALS or decimals > MAX_FEE_TOKEN_DECIMALS:
        errors.append(ValidationIssue(
            'L3_FEE_TOKEN_DECIMALS_OUT_OF_RANGE',
            f'l3-fee-token-decimals must be in range [{MIN_FEE_TOKEN_DECIMALS},'
            f'{MAX_FEE_TOKEN_DECIMALS}], value: {decimals}',
            'l3_fee_token_decimals',
        ))
    if flags.batchposters < 0 or flags.batchposters > MAX_BATCH_POSTERS:
        errors.append(ValidationIssue(
            'BATCH_POSTERS_OUT_OF_RANGE',
            f'batchposters must be between 0 and {MAX_BATCH_POSTERS}, value: {flags.batchposters}',
            'batchposters',
        ))
    if flags.redundantsequencers < 0 or flags.redundantsequencers > MAX_REDUNDANT_SEQUENCERS:
        errors.append(ValidationIssue(
            'REDUNDANT_SEQUENCERS_OUT_OF_RANGE',
            f'redundantsequencers must be between 0 and {MAX_REDUNDANT_SEQUENCERS}, '
            f'value: {flags.redundantsequencers}',
            'redundantsequencers',
        ))
    return errors


def _warnings(flags: FlagSet) -> list[ValidationIssue]:
    warnings = []
    if flags.simple and flags.batchposters > 1:
        warnings.append(ValidationIssue(
            'SIMPLE_MODE_IGNORES_BATCH_POSTERS',
            'Simple mode uses a single combined node; batchposters setting will be ignored',
            'batchposters',
        ))
    if flags.simple and flags.redundantsequencers > 0:
        warnings.append(ValidationIssue(
            'SIMPLE_MODE_IGNORES_REDUNDANT_SEQUENCERS',
            'Simple mode uses a single sequencer; redundantsequencers setting will be ignored',
            'redundantsequencers',
        ))
    if flags.l3_traffic and not flags.l3node:
        warnings.append(ValidationIssue(
            'L3_TRAFFIC_WITHOUT_L3NODE',
            'L3 traffic generation enabled but --l3node is not set',
            'l3_traffic',
        ))
    return warnings


def validate_flags(flags: FlagSet) -> ValidationResult:
    """Check flag dependencies and ranges; errors are fatal, warnings are not."""
    errors = _runtime_errors(flags) + _l3_errors(flags) + _range_errors(flags)
    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=_warnings(flags),
    )


def assert_valid_flags(flags: FlagSet) -> ValidationResult:
    """Raise ConfigurationError listing every error; return the result otherwise."""
    result = validate_flags(flags)
    if not result.valid:
        raise ConfigurationError([issue.message for issue in result.errors])
    return result
