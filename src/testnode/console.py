#!/usr/bin/env python3
"""
Console output for the orchestrator.

Human-readable coloured lines ([INFO], [SUCCESS], [WARN], [ERROR], [DEBUG])
with optional structured context printed as indented ``key: value`` pairs.
Module loggers (executor, settings) go through the stdlib logging module,
configured by configure_logging().
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO


# Color codes for output
BLUE = '\033[94m'
GREEN = '\033[92m'
YELLOW = '\033[93m'
RED = '\033[91m'
CYAN = '\033[96m'
GREY = '\033[90m'
RESET = '\033[0m'

logger = logging.getLogger(__name__)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure logging module with specified level.
    """
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR
    }

    level = level_map.get(log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='[%(levelname)s] %(message)s',
        force=True  # Reconfigure if already configured
    )

    logging.getLogger('testnode').setLevel(level)
    logger.debug(f"Logging configured: {log_level.upper()}")


class Console:
    """Coloured status printer shared by the scheduler and the workflows."""

    def __init__(self, verbose: bool = False, stream: TextIO | None = None, color: bool | None = None) -> None:
        self.verbose = verbose
        self.stream = stream if stream is not None else sys.stdout
        if color is None:
            color = hasattr(self.stream, 'isatty') and self.stream.isatty()
        self.color = color
        self.warnings: list[str] = []

    def _emit(self, tag: str, colour: str, msg: str, context: dict) -> None:
        if self.color:
            print(f"{colour}[{tag}]{RESET} {msg}", file=self.stream, flush=True)
        else:
            print(f"[{tag}] {msg}", file=self.stream, flush=True)
        for key, value in context.items():
            print(f"  {key}: {value}", file=self.stream, flush=True)

    def info(self, msg: str, **context) -> None:
        self._emit('INFO', BLUE, msg, context)

    def success(self, msg: str, **context) -> None:
        self._emit('SUCCESS', GREEN, msg, context)

    def warn(self, msg: str, **context) -> None:
        """Print a warning and remember it for the run summary."""
        self.warnings.append(msg)
        self._emit('WARN', YELLOW, msg, context)

    def error(self, msg: str, **context) -> None:
        self._emit('ERROR', RED, msg, context)

    def debug(self, msg: str, **context) -> None:
        """Only shown with --verbose."""
        if not self.verbose:
            return
        self._emit('DEBUG', GREY, msg, context)

    def step(self, msg: str) -> None:
        self._emit('STEP', CYAN, msg, {})

    def command(self, display: str) -> None:
        """Echo an external command line (verbose only)."""
        if self.verbose:
            self._emit('CMD', GREY, display, {})

    def banner(self, title: str) -> None:
        print("\n" + "=" * 70, file=self.stream, flush=True)
        self.info(title)
        print("=" * 70, file=self.stream, flush=True)

    def write(self, text: str) -> None:
        """Pass-through for streamed command output."""
        print(text, end='', file=self.stream, flush=True)
