"""
Exception hierarchy for the testnode orchestrator.

Every fatal condition raised by a workflow derives from TestnodeError so the
CLI can report it and exit non-zero. Warnings never travel as exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .executor import CommandResult


class TestnodeError(Exception):
    """Base class for all orchestrator errors."""

    # Keep pytest from collecting this as a test class
    __test__ = False


class ConfigurationError(TestnodeError):
    """Flag combination rejected before any side effect."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        lines = "\n".join(f"  - {message}" for message in self.errors)
        super().__init__(f"Invalid flag configuration:\n{lines}")


class SettingsError(TestnodeError):
    """Settings template could not be rendered or parsed."""


class PreconditionError(TestnodeError):
    """A step needs a run context field that an earlier step never set."""

    def __init__(self, field: str, step: str | None = None) -> None:
        self.field = field
        self.step = step
        where = f" (required by {step})" if step else ""
        super().__init__(f"Run context field '{field}' is not set{where}")


class CommandError(TestnodeError):
    """An external command exited non-zero."""

    def __init__(self, description: str, result: "CommandResult") -> None:
        self.description = description
        self.result = result
        message = f"{description} (exit code {result.exit_code})"
        stderr = result.stderr.strip()
        if stderr:
            message = f"{message}: {stderr}"
        super().__init__(message)


class ParseError(TestnodeError):
    """Command output did not contain the expected value."""

    def __init__(self, label: str, raw: str, reason: str | None = None) -> None:
        self.label = label
        self.raw = raw
        detail = reason or "unexpected output"
        super().__init__(f"Failed to parse {label}: {detail}; raw output: {raw!r}")


class PhaseError(TestnodeError):
    """A pipeline phase failed; wraps the underlying cause."""

    def __init__(self, phase: str, cause: BaseException) -> None:
        self.phase = phase
        self.cause = cause
        super().__init__(f"Phase '{phase}' failed: {cause}")
