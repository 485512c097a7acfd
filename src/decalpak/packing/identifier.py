"""Decal identifier parsing and patching."""

from __future__ import annotations

import re

from ..errors import ValidationError, E_ID_FORMAT, E_ID_RANGE
from .assembler import AssembledEntry
from .patch_table import PatchTable

__all__ = [
    "IDENTIFIER_FIELD",
    "MIN_IDENTIFIER",
    "MAX_IDENTIFIER",
    "parse_identifier",
    "format_identifier",
    "patch_identifier",
]

IDENTIFIER_FIELD = "identifier"
_DECIMAL = re.compile(r"[+-]?[0-9]+")
MIN_IDENTIFIER = 0
MAX_IDENTIFIER = 999


def parse_identifier(value: str | int) -> int:
    """Return the identifier as an int or raise :class:`ValidationError`."""
    if isinstance(value, bool):
        raise ValidationError(E_ID_FORMAT, f"Could not parse index '{value}'.")
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not _DECIMAL.fullmatch(text):
            raise ValidationError(
                E_ID_FORMAT, f"Could not parse index '{value}'."
            )
        number = int(text)
    if not MIN_IDENTIFIER <= number <= MAX_IDENTIFIER:
        raise ValidationError(
            E_ID_RANGE,
            f"Invalid index '{number}' (expected {MIN_IDENTIFIER}-{MAX_IDENTIFIER}).",
            {"index": number},
        )
    return number


def format_identifier(number: int) -> bytes:
    return f"{parse_identifier(number):03d}".encode("ascii")


def patch_identifier(
    entry: AssembledEntry, table: PatchTable, number: int
) -> int:
    """Write the 3-digit identifier to every identifier slot."""
    return entry.patch(table, IDENTIFIER_FIELD, format_identifier(number))
