# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Parsers for human-readable duration and size literals.

Durations are converted to integer milliseconds, the canonical form the store
expects for values such as the default ``_ttl``. Sizes are only validated: the
store understands size literals itself, so the literal is passed through as-is.
"""

import re

from .exceptions import InvalidLiteralError

# Milliseconds per duration unit
_DURATION_UNITS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
}

# Largest duration the store accepts (signed 64-bit milliseconds)
MAX_DURATION_MS = 2**63 - 1

_SIZE_UNITS = ("b", "kb", "mb", "gb")

_LITERAL_PATTERN = re.compile(r"^(?P<sign>[+-]?)(?P<magnitude>[0-9]+)(?P<unit>[a-z]*)$")


def _split_literal(literal: str, kind: str) -> tuple[int, str]:
    """Split a literal into its integer magnitude and lower-cased unit.

    Raises:
        InvalidLiteralError: If the literal is not a string or is malformed
    """
    if not isinstance(literal, str):
        raise InvalidLiteralError(f"{kind} literal must be a string, got {type(literal).__name__}")

    match = _LITERAL_PATTERN.match(literal.strip().lower())
    if match is None:
        raise InvalidLiteralError(f"Invalid {kind} literal: {literal!r}")

    if match.group("sign") == "-":
        raise InvalidLiteralError(f"{kind.capitalize()} literal must not be negative: {literal!r}")

    try:
        magnitude = int(match.group("magnitude"))
    except ValueError as e:
        # Digit strings beyond the interpreter's int conversion limit
        raise InvalidLiteralError(f"Invalid {kind} literal: {literal[:40]!r}...") from e
    return magnitude, match.group("unit")


def parse_duration(literal: str) -> int:
    """Convert a duration literal such as ``"2d"`` into milliseconds.

    Args:
        literal: Non-negative integer followed by one of ms, s, m, h, d, w

    Returns:
        Duration in milliseconds

    Raises:
        InvalidLiteralError: On a missing or unknown unit, a negative magnitude,
            a non-numeric prefix or a value beyond signed 64-bit milliseconds
    """
    magnitude, unit = _split_literal(literal, "duration")
    if unit not in _DURATION_UNITS:
        raise InvalidLiteralError(
            f"Unknown duration unit in {literal!r}. "
            f"Supported units: {', '.join(_DURATION_UNITS)}"
        )
    millis = magnitude * _DURATION_UNITS[unit]
    if millis > MAX_DURATION_MS:
        raise InvalidLiteralError(f"Duration literal exceeds {MAX_DURATION_MS}ms: {literal!r}")
    return millis


def parse_size(literal: str) -> str:
    """Validate a size literal such as ``"10kb"`` and return it unchanged.

    Args:
        literal: Non-negative integer followed by one of b, kb, mb, gb

    Returns:
        The literal, stripped of surrounding whitespace

    Raises:
        InvalidLiteralError: If the literal does not match ``<integer><unit>``
    """
    _, unit = _split_literal(literal, "size")
    if unit not in _SIZE_UNITS:
        raise InvalidLiteralError(
            f"Unknown size unit in {literal!r}. Supported units: {', '.join(_SIZE_UNITS)}"
        )
    return literal.strip()
