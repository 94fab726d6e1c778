"""Name helpers: snake-casing identifiers and parsing namespace prefixes."""

from __future__ import annotations

import re

_FIRST_CAP = re.compile(r"(.)([A-Z][a-z]+)")
_ALL_CAP = re.compile(r"([a-z0-9])([A-Z])")
_NS_PREFIX = re.compile(r"([a-zA-Z]+)\d+", re.ASCII)


def to_snake_case(s: str) -> str:
    """Convert a CamelCase identifier to snake_case."""
    snake = _FIRST_CAP.sub(r"\1_\2", s)
    snake = _ALL_CAP.sub(r"\1_\2", snake)
    return snake.lower()


def extract_ns_prefix(namespace: str) -> str:
    """Return the alphabetic prefix of a namespace such as ``ts0``.

    Raises ValueError when the namespace is not letters followed by digits.
    """
    match = _NS_PREFIX.fullmatch(namespace)
    if match is None:
        raise ValueError(f"failed to extract index from namespace {namespace}")
    return match.group(1)