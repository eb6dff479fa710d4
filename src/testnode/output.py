"""
Helpers that pull values out of command output.

Two rules cover every workflow step: the trimmed last non-empty line, and the
last whitespace-separated token of that line. Anything expected to be an
address must start with 0x or the run stops with a ParseError carrying the
raw text.
"""

from __future__ import annotations

from .errors import ParseError


def clean_output(output: str) -> str:
    """Normalise line endings and strip surrounding whitespace."""
    return output.replace('\r\n', '\n').replace('\r', '').strip()


def last_line(output: str) -> str:
    lines = [line.strip() for line in clean_output(output).split('\n')]
    lines = [line for line in lines if line]
    return lines[-1] if lines else ''


def last_token(output: str) -> str:
    tokens = last_line(output).split()
    return tokens[-1] if tokens else ''


def require_address(value: str, label: str) -> str:
    """Return value when it looks like a hex address, raise ParseError otherwise."""
    if not value.startswith('0x'):
        raise ParseError(label, value, "expected a 0x-prefixed address")
    return value


def extract_address(stdout: str, label: str, last_word: bool = False) -> str:
    """
    Read an address from command output.

    Args:
        stdout: Raw command output
        label: What is being read, used in the error message
        last_word: Take the last token of the last line instead of the whole line
    """
    value = last_token(stdout) if last_word else last_line(stdout)
    if not value.startswith('0x'):
        raise ParseError(label, stdout, "expected a 0x-prefixed address")
    return value


def extract_value(stdout: str, label: str) -> str:
    """Read a non-address value (private key, hash) from the last line."""
    value = last_line(stdout)
    if not value:
        raise ParseError(label, stdout, "output was empty")
    return value


def extract_labeled_value(stdout: str, label: str, prefix: str) -> str:
    """
    Find the last line starting with prefix and return the text after it.

    Used for dumps of the form ``Keyset: 0xabc...`` where the value is the
    first token following the prefix.
    """
    matches = [
        line.strip() for line in clean_output(stdout).split('\n')
        if line.strip().startswith(prefix)
    ]
    if not matches:
        raise ParseError(label, stdout, f"no line starting with {prefix!r}")
    tokens = matches[-1][len(prefix):].split()
    if not tokens:
        raise ParseError(label, stdout, f"nothing after {prefix!r}")
    return tokens[0]
