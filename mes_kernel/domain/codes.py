"""
Code normalization -- the one place identifiers are case-folded.

Process codes, short codes and stock lot numbers are case-insensitive
throughout the MES.  Every public entry point passes user input through
these functions before it reaches a query or a row.
"""

from collections.abc import Iterable


def normalize_process_code(code: str) -> str:
    """Strip and uppercase a process code (``" ca "`` -> ``"CA"``)."""
    return code.strip().upper()


def normalize_short_code(short_code: str) -> str:
    return short_code.strip().upper()


def normalize_lot_number(lot_number: str) -> str:
    """Strip and uppercase a stock lot number."""
    return lot_number.strip().upper()


def normalize_process_codes(codes: Iterable[str]) -> tuple[str, ...]:
    """Normalize a sequence of process codes, preserving order."""
    return tuple(normalize_process_code(c) for c in codes)
